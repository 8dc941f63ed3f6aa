from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z


class CashCut(db.Model):
    """
    Daily cash cut: expected vs counted drawer balance.

    One per business day, enforced by the unique business_date. Every
    aggregate is frozen at closing time; later sales or expenses of the same
    day do not change a closed cut.

    expected_cents = opening_float_cents + cash_sales_cents - withdrawals_cents
    difference_cents = declared_cents - expected_cents
    """
    __tablename__ = "cash_cuts"
    __table_args__ = (
        db.UniqueConstraint("business_date", name="uq_cash_cuts_business_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_date = db.Column(db.Date, nullable=False)

    opening_float_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    card_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    withdrawals_cents = db.Column(db.Integer, nullable=False, default=0)

    expected_cents = db.Column(db.Integer, nullable=False)
    declared_cents = db.Column(db.Integer, nullable=False)
    difference_cents = db.Column(db.Integer, nullable=False)

    notes = db.Column(db.Text, nullable=True)
    user_name = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_date": self.business_date.isoformat(),
            "opening_float_cents": self.opening_float_cents,
            "cash_sales_cents": self.cash_sales_cents,
            "card_sales_cents": self.card_sales_cents,
            "total_sales_cents": self.total_sales_cents,
            "withdrawals_cents": self.withdrawals_cents,
            "expected_cents": self.expected_cents,
            "declared_cents": self.declared_cents,
            "difference_cents": self.difference_cents,
            "notes": self.notes,
            "user_name": self.user_name,
            "created_at": to_utc_z(self.created_at),
            "is_closed": True,
        }
