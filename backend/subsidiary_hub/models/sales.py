from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    Immutable sale record. sale_price is a snapshot taken at sale time.
    """
    __tablename__ = "sales"

    id = db.Column(db.Integer, primary_key=True)
    subsidiary_id = db.Column(db.Integer, db.ForeignKey("subsidiaries.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("inventory.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    sale_price = db.Column(db.Float, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Sale id={self.id} item_id={self.item_id} qty={self.quantity}>"

    @property
    def total(self) -> float:
        return self.quantity * self.sale_price

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subsidiaryId": self.subsidiary_id,
            "userId": self.user_id,
            "itemId": self.item_id,
            "quantity": self.quantity,
            "salePrice": self.sale_price,
            "timestamp": to_utc_z(self.timestamp),
        }
