from __future__ import annotations

from ..extensions import db


class InventoryItem(db.Model):
    """
    Stock item held by one subsidiary.

    quantity is a mutable counter; sales decrement it in the same
    transaction that inserts the sale row.
    """
    __tablename__ = "inventory"

    id = db.Column(db.Integer, primary_key=True)
    subsidiary_id = db.Column(db.Integer, db.ForeignKey("subsidiaries.id"), nullable=False, index=True)
    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(120), nullable=False)
    cost_price = db.Column(db.Float, nullable=False)
    sale_price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    subsidiary = db.relationship("Subsidiary", backref=db.backref("inventory_items", lazy=True))

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} sku={self.sku!r} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subsidiaryId": self.subsidiary_id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "costPrice": self.cost_price,
            "salePrice": self.sale_price,
            "quantity": self.quantity,
        }
