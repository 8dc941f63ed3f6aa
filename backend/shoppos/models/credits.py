from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z


STATUS_ACTIVE = "active"
STATUS_PAID = "paid"
CREDIT_STATUSES = (STATUS_ACTIVE, STATUS_PAID)

PAYMENT_METHODS = ("cash", "card")


class CreditAccount(db.Model):
    """
    Installment credit ledger for one sale on credit.

    LIFECYCLE:
    - active: created with remaining_debt_cents == total_debt_cents
    - paid: remaining debt fell to the paid threshold (50 cents)

    active -> paid happens exactly once and is never reversed.

    INVARIANTS:
    - total_debt_cents is fixed at origination
    - remaining_debt_cents only decreases, by exactly each payment amount
    - total_debt_cents - remaining_debt_cents == sum(payments.amount_cents)

    The customer's contact details are snapshotted here as they were at
    origination; customer_id links to the deduplicated Customer record.
    """
    __tablename__ = "credit_accounts"
    __table_args__ = (
        db.Index("ix_credit_accounts_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False)
    customer_address = db.Column(db.String(255), nullable=True)
    customer_notes = db.Column(db.Text, nullable=True)

    # Snapshot of the cart lines: [{product_id, name, quantity, unit_price_cents, unit_cost_cents}]
    items = db.Column(db.JSON, nullable=False, default=list)

    total_debt_cents = db.Column(db.Integer, nullable=False)
    remaining_debt_cents = db.Column(db.Integer, nullable=False)
    installment_count = db.Column(db.Integer, nullable=False)
    installment_amount_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=STATUS_ACTIVE, index=True)

    # Companion "credit" sale written alongside the account
    origin_sale_id = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    customer = db.relationship("Customer", backref=db.backref("credit_accounts", lazy=True))
    payments = db.relationship(
        "CreditPayment",
        backref="credit_account",
        lazy=True,
        order_by="CreditPayment.id",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def paid_cents(self) -> int:
        return self.total_debt_cents - self.remaining_debt_cents

    def to_dict(self, include_payments: bool = True) -> dict:
        data = {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_address": self.customer_address,
            "customer_notes": self.customer_notes,
            "items": list(self.items or []),
            "total_debt_cents": self.total_debt_cents,
            "remaining_debt_cents": self.remaining_debt_cents,
            "paid_cents": self.paid_cents,
            "installment_count": self.installment_count,
            "installment_amount_cents": self.installment_amount_cents,
            "status": self.status,
            "origin_sale_id": self.origin_sale_id,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
        }
        if include_payments:
            data["payments"] = [p.to_dict() for p in self.payments]
        return data


class CreditPayment(db.Model):
    """Append-only payment log entry of a credit account."""
    __tablename__ = "credit_payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    credit_account_id = db.Column(db.Integer, db.ForeignKey("credit_accounts.id"), nullable=False, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    method = db.Column(db.String(16), nullable=False)  # cash, card
    seller_name = db.Column(db.String(255), nullable=True)

    # Companion credit_payment_* sale (receipt)
    sale_id = db.Column(db.Integer, nullable=True)

    paid_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "credit_account_id": self.credit_account_id,
            "amount_cents": self.amount_cents,
            "method": self.method,
            "seller_name": self.seller_name,
            "sale_id": self.sale_id,
            "paid_at": to_utc_z(self.paid_at),
        }
