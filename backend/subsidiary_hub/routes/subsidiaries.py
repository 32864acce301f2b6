# Overview: Flask API routes for subsidiary operations; MHC-managed tenant records with logo upload.

"""
Subsidiary management routes.

SECURITY:
- list/create/update require mhc_admin
- get-by-id is subsidiary-scoped (mhc_admin or a member of that subsidiary)

POST and PATCH accept either JSON or multipart/form-data; a multipart
request may carry a "logo" image (JPEG/PNG).
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import get_json_object, require_mhc_admin, require_permission, require_subsidiary_access
from ..models import Subsidiary
from ..permissions import Action
from ..services import subsidiary_service, upload_service
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    enforce_rules_subsidiary,
    validate_payload,
)

subsidiaries_bp = Blueprint("subsidiaries", __name__, url_prefix="/api/subsidiaries")


def _request_payload() -> dict:
    if request.mimetype == "multipart/form-data" or request.form:
        return {k: v for k, v in request.form.items() if k != "logo"}
    return get_json_object()


@subsidiaries_bp.get("")
@require_mhc_admin
@require_permission(Action.VIEW_ALL_SUBSIDIARIES)
def list_subsidiaries():
    subsidiaries = subsidiary_service.list_subsidiaries()
    return jsonify([s.to_dict() for s in subsidiaries]), 200


@subsidiaries_bp.post("")
@require_mhc_admin
@require_permission(Action.MANAGE_SUBSIDIARIES)
def create_subsidiary():
    try:
        patch = validate_payload(
            model=Subsidiary,
            payload=_request_payload(),
            policy=subsidiary_service.SUBSIDIARY_POLICY,
            partial=False,
        )
        enforce_rules_subsidiary(patch)
        logo = upload_service.save_logo(request.files.get("logo"))
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    try:
        subsidiary = subsidiary_service.create_subsidiary(patch=patch, actor_id=g.current_user.id, logo=logo)
    except ValidationError as e:
        upload_service.discard_logo(logo)
        return jsonify({"message": str(e)}), 400
    except ConflictError as e:
        upload_service.discard_logo(logo)
        return jsonify({"message": str(e)}), 409

    current_app.logger.info("Subsidiary %s created by user %s", subsidiary.id, g.current_user.id)
    return jsonify(subsidiary.to_dict()), 201


@subsidiaries_bp.get("/<int:subsidiary_id>")
@require_subsidiary_access
@require_permission(Action.VIEW_SUBSIDIARY)
def get_subsidiary(subsidiary_id: int):
    subsidiary = subsidiary_service.get_subsidiary(subsidiary_id)
    if not subsidiary:
        return jsonify({"message": "Subsidiary not found"}), 404
    return jsonify(subsidiary.to_dict()), 200


@subsidiaries_bp.patch("/<int:subsidiary_id>")
@require_mhc_admin
@require_permission(Action.MANAGE_SUBSIDIARIES)
def update_subsidiary(subsidiary_id: int):
    try:
        patch = validate_payload(
            model=Subsidiary,
            payload=_request_payload(),
            policy=subsidiary_service.SUBSIDIARY_POLICY,
            partial=True,
        )
        enforce_rules_subsidiary(patch)
        logo = upload_service.save_logo(request.files.get("logo"))
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    try:
        subsidiary = subsidiary_service.update_subsidiary(
            subsidiary_id, patch=patch, actor_id=g.current_user.id, logo=logo
        )
    except NotFoundError as e:
        upload_service.discard_logo(logo)
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        upload_service.discard_logo(logo)
        return jsonify({"message": str(e)}), 409

    return jsonify(subsidiary.to_dict()), 200
