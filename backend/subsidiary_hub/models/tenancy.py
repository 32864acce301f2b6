from __future__ import annotations

from ..extensions import db


class Subsidiary(db.Model):
    """
    Tenant business unit owned by the Main Head Company.

    MULTI-TENANT: Inventory, sales, staff users and most activity logs hang
    off a subsidiary via subsidiary_id. Tenant isolation is enforced by the
    route guards, not by row-level security.
    """
    __tablename__ = "subsidiaries"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    tax_id = db.Column(db.String(64), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(32), nullable=False)

    # Public path of the uploaded logo ("/uploads/<file>")
    logo = db.Column(db.String(255), nullable=True)

    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    country = db.Column(db.String(120), nullable=True)

    # Active flag
    status = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Subsidiary id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "taxId": self.tax_id,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "logo": self.logo,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "status": self.status,
        }
