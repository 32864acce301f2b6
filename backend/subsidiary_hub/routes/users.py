# Overview: Flask API routes for user operations; subsidiary staff management and the MHC user list.

"""
User management routes.

SECURITY:
- Listing a subsidiary's users is open to anyone with access to that
  subsidiary.
- Creating, editing and deleting them is reserved to the subsidiary_admin
  of that subsidiary (mhc_admin uses POST /api/register instead).
- Users created here are always staff.
"""
from flask import Blueprint, g, jsonify

from ..decorators import get_json_object, require_mhc_admin, require_permission, require_subsidiary_access
from ..permissions import Action, Role
from ..services import user_service
from ..validation import ConflictError, NotFoundError, ValidationError

users_bp = Blueprint("users", __name__, url_prefix="/api")


@users_bp.get("/subsidiaries/<int:subsidiary_id>/users")
@require_subsidiary_access
@require_permission(Action.VIEW_SUBSIDIARY_USERS)
def list_subsidiary_users(subsidiary_id: int):
    users = user_service.list_users_by_subsidiary(subsidiary_id)
    return jsonify([u.to_dict() for u in users]), 200


@users_bp.post("/subsidiaries/<int:subsidiary_id>/users")
@require_subsidiary_access
@require_permission(Action.MANAGE_SUBSIDIARY_USERS, message="Only subsidiary admins can create users")
def create_subsidiary_user(subsidiary_id: int):
    data = get_json_object()

    try:
        user = user_service.create_user(
            username=data.get("username"),
            password=data.get("password"),
            role=Role.STAFF,
            subsidiary_id=subsidiary_id,
            actor_id=g.current_user.id,
        )
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409

    return jsonify(user.to_dict()), 201


@users_bp.patch("/subsidiaries/<int:subsidiary_id>/users/<int:user_id>")
@require_subsidiary_access
@require_permission(Action.MANAGE_SUBSIDIARY_USERS, message="Only subsidiary admins can modify users")
def update_subsidiary_user(subsidiary_id: int, user_id: int):
    data = get_json_object()
    data.pop("id", None)
    data.pop("subsidiaryId", None)

    try:
        user = user_service.update_user(
            user_id, data, actor_id=g.current_user.id, subsidiary_id=subsidiary_id
        )
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409

    return jsonify(user.to_dict()), 200


@users_bp.delete("/subsidiaries/<int:subsidiary_id>/users/<int:user_id>")
@require_subsidiary_access
@require_permission(Action.MANAGE_SUBSIDIARY_USERS, message="Only subsidiary admins can delete users")
def delete_subsidiary_user(subsidiary_id: int, user_id: int):
    try:
        user_service.delete_user(user_id, actor_id=g.current_user.id, subsidiary_id=subsidiary_id)
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409

    return "", 204


@users_bp.get("/users")
@require_mhc_admin
@require_permission(Action.VIEW_ALL_USERS)
def list_all_users():
    users = user_service.list_users()
    return jsonify([u.to_dict() for u in users]), 200
