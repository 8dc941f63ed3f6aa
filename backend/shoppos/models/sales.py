from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z


# Payment methods recorded on a Sale
METHOD_CASH = "cash"
METHOD_CARD = "card"
METHOD_CREDIT = "credit"
METHOD_CREDIT_PAYMENT_CASH = "credit_payment_cash"
METHOD_CREDIT_PAYMENT_CARD = "credit_payment_card"

SALE_METHODS = (
    METHOD_CASH,
    METHOD_CARD,
    METHOD_CREDIT,
    METHOD_CREDIT_PAYMENT_CASH,
    METHOD_CREDIT_PAYMENT_CARD,
)

# Money that physically entered the drawer / the card terminal
CASH_DRAWER_METHODS = (METHOD_CASH, METHOD_CREDIT_PAYMENT_CASH)
CARD_METHODS = (METHOD_CARD, METHOD_CREDIT_PAYMENT_CARD)

# Payments against an existing account, not merchandise leaving the shop
CREDIT_PAYMENT_METHODS = (METHOD_CREDIT_PAYMENT_CASH, METHOD_CREDIT_PAYMENT_CARD)

WALK_IN_CUSTOMER = "Walk-in customer"
PAYMENT_TO_ACCOUNT_LABEL = "Payment to account"


class Sale(db.Model):
    """
    Sale record. Append-only: created once, never updated or deleted.

    KINDS:
    - Merchandise sale (cash / card / credit): lines are product snapshots,
      total = sum(line totals)
    - Credit payment (credit_payment_cash / credit_payment_card): one
      synthetic "Payment to account" line, total = payment amount, and the
      debtor's balance before/after for the receipt

    A "credit" sale is the companion audit entry of a credit origination;
    no money enters the drawer for it.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_method", "created_at", "payment_method"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    total_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, index=True)

    customer_name = db.Column(db.String(255), nullable=False, default=WALK_IN_CUSTOMER)
    # Attribution label of the acting user (display name or email)
    seller_name = db.Column(db.String(255), nullable=False)

    # Cash tender (cash sales only)
    tendered_cents = db.Column(db.Integer, nullable=True)
    change_cents = db.Column(db.Integer, nullable=True)

    # Credit origination
    installment_count = db.Column(db.Integer, nullable=True)
    installment_amount_cents = db.Column(db.Integer, nullable=True)

    # Credit payment receipt
    debt_previous_cents = db.Column(db.Integer, nullable=True)
    debt_remaining_cents = db.Column(db.Integer, nullable=True)

    # Plain reference: deleting an account keeps its companion sales
    credit_account_id = db.Column(db.Integer, nullable=True, index=True)

    lines = db.relationship(
        "SaleLine",
        backref="sale",
        lazy=True,
        order_by="SaleLine.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} method={self.payment_method} total_cents={self.total_cents}>"

    @property
    def is_credit_payment(self) -> bool:
        return self.payment_method in CREDIT_PAYMENT_METHODS

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": to_utc_z(self.created_at),
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "customer_name": self.customer_name,
            "seller_name": self.seller_name,
            "tendered_cents": self.tendered_cents,
            "change_cents": self.change_cents,
            "installment_count": self.installment_count,
            "installment_amount_cents": self.installment_amount_cents,
            "debt_previous_cents": self.debt_previous_cents,
            "debt_remaining_cents": self.debt_remaining_cents,
            "credit_account_id": self.credit_account_id,
            "lines": [line.to_dict() for line in self.lines],
        }


class SaleLine(db.Model):
    """Snapshot of a product at the time of sale."""
    __tablename__ = "sale_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)

    # No foreign key: products can be hard-deleted, history stays intact
    product_id = db.Column(db.Integer, nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    # Captured at sale time so later cost edits do not rewrite historical profit
    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    line_total_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "unit_cost_cents": self.unit_cost_cents,
            "line_total_cents": self.line_total_cents,
        }
