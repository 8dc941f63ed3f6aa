from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z


class Customer(db.Model):
    """
    Deduplicated customer contact.

    The phone number is the natural key: a credit origination for a known
    phone updates the existing record (name, address, notes) instead of
    creating a duplicate.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("phone", name="uq_customers_phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
