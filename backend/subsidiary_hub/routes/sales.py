# Overview: Flask API routes for sales operations; record and list sales per subsidiary.

from flask import Blueprint, g, jsonify

from ..decorators import get_json_object, require_mhc_admin, require_permission, require_subsidiary_access
from ..models import Sale
from ..permissions import Action
from ..services import sales_service
from ..services.sales_service import InsufficientStockError, SaleError
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_sale,
    validate_payload,
)

SALE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"item_id", "quantity", "sale_price"}),
    required_on_create=frozenset({"item_id", "quantity"}),
)

sales_bp = Blueprint("sales", __name__, url_prefix="/api")


@sales_bp.post("/subsidiaries/<int:subsidiary_id>/sales")
@require_subsidiary_access
@require_permission(Action.RECORD_SALES)
def create_sale(subsidiary_id: int):
    """
    Record a sale and decrement stock atomically.

    Body: itemId, quantity, optional salePrice (defaults to the item's
    current sale price). The seller is the authenticated user.
    """
    payload = get_json_object()
    for key in ("subsidiaryId", "userId", "timestamp"):
        payload.pop(key, None)

    try:
        patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False)
        enforce_rules_sale(patch)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    try:
        sale = sales_service.create_sale(
            subsidiary_id,
            item_id=patch["item_id"],
            quantity=patch["quantity"],
            sale_price=patch.get("sale_price"),
            user_id=g.current_user.id,
        )
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify({"message": str(e), "details": e.details}), 400
    except SaleError as e:
        return jsonify({"message": str(e)}), 400

    return jsonify(sale.to_dict()), 201


@sales_bp.get("/subsidiaries/<int:subsidiary_id>/sales")
@require_subsidiary_access
@require_permission(Action.VIEW_SUBSIDIARY)
def list_sales(subsidiary_id: int):
    sales = sales_service.list_sales_by_subsidiary(subsidiary_id)
    return jsonify([s.to_dict() for s in sales]), 200


@sales_bp.get("/sales")
@require_mhc_admin
@require_permission(Action.VIEW_ALL_SALES)
def list_all_sales():
    sales = sales_service.list_all_sales()
    return jsonify([s.to_dict() for s in sales]), 200
