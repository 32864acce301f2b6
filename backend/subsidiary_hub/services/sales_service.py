# Overview: Service-layer operations for sales; atomic stock decrement plus sale and audit rows.

"""
Sales Service

A sale is immutable once created. Creating one is the only operation that
spans entities, and it runs as one transaction:

1. load the item (row-locked where the engine supports it)
2. conditional decrement: quantity = quantity - n WHERE quantity >= n
3. insert the sale row (sale_price snapshot defaults to the item's price)
4. insert the CREATE_SALE activity row
5. commit

Any failure before the commit rolls back every step, so a sale row never
exists without its stock decrement or its activity entry. The conditional
UPDATE, not the earlier read, decides whether stock suffices, so two
concurrent sales cannot both take the last unit.
"""

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import InventoryItem, Sale
from ..persistence import execute_query, get_adapter
from ..time_utils import utcnow
from ..validation import NotFoundError
from . import activity_service
from .concurrency import lock_for_update, run_with_retry


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InsufficientStockError(SaleError):
    pass


def _decrement_stock(item_id: int, quantity: int) -> bool:
    table = InventoryItem.__table__
    result = db.session.execute(
        update(table)
        .where(table.c.id == item_id, table.c.quantity >= quantity)
        .values(quantity=table.c.quantity - quantity)
    )
    return result.rowcount == 1


def create_sale(
    subsidiary_id: int,
    *,
    item_id: int,
    quantity: int,
    user_id: int,
    sale_price: float | None = None,
) -> Sale:
    """
    Record a sale of quantity units of item_id.

    Raises:
        NotFoundError: item missing or owned by another subsidiary
        InsufficientStockError: quantity exceeds the item's stock
    """
    def _op():
        item = lock_for_update(
            db.session.query(InventoryItem).filter(InventoryItem.id == item_id)
        ).first()
        if item is None or item.subsidiary_id != subsidiary_id:
            raise NotFoundError("Inventory item not found")

        available = item.quantity
        if quantity > available or not _decrement_stock(item_id, quantity):
            raise InsufficientStockError(
                "Insufficient stock",
                details={"itemId": item_id, "requested": quantity, "available": available},
            )

        price = item.sale_price if sale_price is None else sale_price
        sale = get_adapter().insert_row(Sale, {
            "subsidiary_id": subsidiary_id,
            "user_id": user_id,
            "item_id": item_id,
            "quantity": quantity,
            "sale_price": price,
            "timestamp": utcnow(),
        })

        activity_service.record_activity(
            user_id=user_id,
            action=activity_service.CREATE_SALE,
            details=f"Created sale: {quantity} x {item.name} at ${price:.2f}",
            subsidiary_id=subsidiary_id,
        )
        db.session.commit()
        return sale

    return execute_query(lambda: run_with_retry(_op), "Create sale")


def list_sales_by_subsidiary(subsidiary_id: int) -> list[Sale]:
    return execute_query(
        lambda: db.session.query(Sale)
        .filter(Sale.subsidiary_id == subsidiary_id)
        .order_by(Sale.timestamp.desc(), Sale.id.desc())
        .all(),
        "List sales",
    )


def list_all_sales() -> list[Sale]:
    return execute_query(
        lambda: db.session.query(Sale).order_by(Sale.timestamp.desc(), Sale.id.desc()).all(),
        "List all sales",
    )
