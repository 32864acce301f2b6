# Overview: Service-layer operations for inventory; per-subsidiary stock items and totals.

"""
Inventory Service

MULTI-TENANT: every lookup takes the subsidiary_id from the route path.
An item that exists but belongs to another subsidiary is reported as not
found, never as forbidden.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import InventoryItem, Sale, Subsidiary
from ..persistence import execute_query, get_adapter
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError
from . import activity_service


INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "sku", "name", "description", "category", "cost_price", "sale_price", "quantity",
    }),
    required_on_create=frozenset({"sku", "name", "category", "cost_price", "sale_price", "quantity"}),
)


def _scoped(subsidiary_id: int, item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None or item.subsidiary_id != subsidiary_id:
        raise NotFoundError("Inventory item not found")
    return item


def get_item(subsidiary_id: int, item_id: int) -> InventoryItem:
    return execute_query(lambda: _scoped(subsidiary_id, item_id), "Get inventory item")


def list_inventory_by_subsidiary(subsidiary_id: int) -> list[InventoryItem]:
    return execute_query(
        lambda: db.session.query(InventoryItem)
        .filter(InventoryItem.subsidiary_id == subsidiary_id)
        .order_by(InventoryItem.name.asc(), InventoryItem.id.asc())
        .all(),
        "List inventory",
    )


def total_item_count() -> int:
    """Number of inventory rows across all subsidiaries."""
    return execute_query(
        lambda: db.session.query(func.count(InventoryItem.id)).scalar() or 0,
        "Count inventory",
    )


def create_item(subsidiary_id: int, *, patch: dict, actor_id: int) -> InventoryItem:
    def _op():
        if db.session.get(Subsidiary, subsidiary_id) is None:
            raise NotFoundError("Subsidiary not found")
        item = get_adapter().insert_row(InventoryItem, {**patch, "subsidiary_id": subsidiary_id})
        activity_service.record_activity(
            user_id=actor_id,
            action=activity_service.CREATE_INVENTORY,
            details=f"Created inventory item: {item.name} with quantity {item.quantity}",
            subsidiary_id=subsidiary_id,
        )
        db.session.commit()
        return item

    return execute_query(_op, "Create inventory item")


def update_item(subsidiary_id: int, item_id: int, *, patch: dict, actor_id: int) -> InventoryItem:
    def _op():
        old_quantity = _scoped(subsidiary_id, item_id).quantity

        item = get_adapter().update_row(InventoryItem, item_id, patch)
        if item is None:
            raise NotFoundError("Inventory item not found")

        activity_service.record_activity(
            user_id=actor_id,
            action=activity_service.UPDATE_INVENTORY,
            details=(
                f"Updated inventory item: {item.name} - "
                f"Quantity changed from {old_quantity} to {item.quantity}"
            ),
            subsidiary_id=subsidiary_id,
        )
        db.session.commit()
        return item

    return execute_query(_op, "Update inventory item")


def delete_item(subsidiary_id: int, item_id: int, *, actor_id: int) -> None:
    def _op():
        item = _scoped(subsidiary_id, item_id)
        if db.session.query(Sale.id).filter(Sale.item_id == item_id).first():
            raise ConflictError("Inventory item has recorded sales and cannot be deleted")

        name = item.name
        db.session.delete(item)
        db.session.flush()

        activity_service.record_activity(
            user_id=actor_id,
            action=activity_service.DELETE_INVENTORY,
            details=f"Deleted inventory item: {name}",
            subsidiary_id=subsidiary_id,
        )
        db.session.commit()

    execute_query(_op, "Delete inventory item")
