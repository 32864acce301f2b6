# Overview: Flask API routes for inventory operations; subsidiary-scoped stock items.

"""
Inventory routes.

MULTI-TENANT: items live under /api/subsidiaries/<subsidiary_id>/inventory
and every handler is guarded by require_subsidiary_access. An item id that
belongs to another subsidiary answers 404.
"""
from flask import Blueprint, g, jsonify

from ..decorators import get_json_object, require_mhc_admin, require_permission, require_subsidiary_access
from ..models import InventoryItem
from ..permissions import Action
from ..services import inventory_service
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    enforce_rules_inventory,
    validate_payload,
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


@inventory_bp.get("/subsidiaries/<int:subsidiary_id>/inventory")
@require_subsidiary_access
@require_permission(Action.VIEW_SUBSIDIARY)
def list_inventory(subsidiary_id: int):
    items = inventory_service.list_inventory_by_subsidiary(subsidiary_id)
    return jsonify([i.to_dict() for i in items]), 200


@inventory_bp.post("/subsidiaries/<int:subsidiary_id>/inventory")
@require_subsidiary_access
@require_permission(Action.MANAGE_INVENTORY)
def create_inventory(subsidiary_id: int):
    payload = get_json_object()
    payload.pop("subsidiaryId", None)

    try:
        patch = validate_payload(
            model=InventoryItem,
            payload=payload,
            policy=inventory_service.INVENTORY_POLICY,
            partial=False,
        )
        enforce_rules_inventory(patch)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    try:
        item = inventory_service.create_item(subsidiary_id, patch=patch, actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404

    return jsonify(item.to_dict()), 201


@inventory_bp.get("/subsidiaries/<int:subsidiary_id>/inventory/<int:item_id>")
@require_subsidiary_access
@require_permission(Action.VIEW_SUBSIDIARY)
def get_inventory(subsidiary_id: int, item_id: int):
    try:
        item = inventory_service.get_item(subsidiary_id, item_id)
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    return jsonify(item.to_dict()), 200


@inventory_bp.patch("/subsidiaries/<int:subsidiary_id>/inventory/<int:item_id>")
@require_subsidiary_access
@require_permission(Action.MANAGE_INVENTORY)
def update_inventory(subsidiary_id: int, item_id: int):
    payload = get_json_object()
    payload.pop("subsidiaryId", None)
    payload.pop("id", None)

    try:
        patch = validate_payload(
            model=InventoryItem,
            payload=payload,
            policy=inventory_service.INVENTORY_POLICY,
            partial=True,
        )
        enforce_rules_inventory(patch)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    try:
        item = inventory_service.update_item(subsidiary_id, item_id, patch=patch, actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404

    return jsonify(item.to_dict()), 200


@inventory_bp.delete("/subsidiaries/<int:subsidiary_id>/inventory/<int:item_id>")
@require_subsidiary_access
@require_permission(Action.MANAGE_INVENTORY)
def delete_inventory(subsidiary_id: int, item_id: int):
    try:
        inventory_service.delete_item(subsidiary_id, item_id, actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409

    return "", 204


@inventory_bp.get("/inventory/total")
@require_mhc_admin
@require_permission(Action.VIEW_INVENTORY_TOTALS)
def inventory_total():
    return jsonify({"totalProducts": inventory_service.total_item_count()}), 200
