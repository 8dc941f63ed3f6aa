from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z


class Expense(db.Model):
    """
    Cash taken out of the drawer (water bill, lunch, supplies...).

    Immutable once recorded. The day's expenses are subtracted from the
    expected drawer balance at the cash cut.
    """
    __tablename__ = "expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    user_name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "user_name": self.user_name,
            "created_at": to_utc_z(self.created_at),
        }
