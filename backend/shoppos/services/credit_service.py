# backend/shoppos/services/credit_service.py
"""
Credit Ledger Service - installment accounts

WHY: A sale on credit hands the goods over now and collects the money in
2-3 installments. The account is the single source of truth for what the
customer still owes; every movement is mirrored by a companion Sale so the
sales history and the cash cut see it.

LIFECYCLE:
    active --(remaining <= PAID_EPSILON_CENTS)--> paid

INVARIANTS:
- remaining_debt_cents starts at total_debt_cents and only decreases
- each payment decreases it by exactly the payment amount
- total_debt_cents - remaining_debt_cents == sum of the payment log
- paid is terminal: a paid account accepts no further payments

DESIGN: origination and each payment write the account, the payment log
entry and the companion sale in one transaction. Payments lock the account
row and read the stored balance, so two cashiers taking a payment at the
same time cannot both apply it against the same "previous" balance.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import CreditAccount, CreditPayment, Sale, SaleLine
from ..models.credits import PAYMENT_METHODS, STATUS_ACTIVE, STATUS_PAID, CREDIT_STATUSES
from ..models.sales import (
    METHOD_CREDIT,
    METHOD_CREDIT_PAYMENT_CARD,
    METHOD_CREDIT_PAYMENT_CASH,
    PAYMENT_TO_ACCOUNT_LABEL,
)
from ..validation import ConflictError, NotFoundError, ValidationError, require_positive_cents
from shoppos.time_utils import utcnow
from .concurrency import finish, lock_for_update, run_with_retry
from .customer_service import get_or_create_customer

# Remaining debt at or below half a currency unit counts as settled
PAID_EPSILON_CENTS = 50

PAYMENT_SALE_METHODS = {
    "cash": METHOD_CREDIT_PAYMENT_CASH,
    "card": METHOD_CREDIT_PAYMENT_CARD,
}


class OverpaymentError(ValidationError):
    """Raised when a payment exceeds the remaining debt."""


class CreditClosedError(ConflictError):
    """Raised when paying into an account that is already paid off."""


def installment_amount(total_debt_cents: int, installment_count: int) -> int:
    """
    Per-installment amount in cents.

    Floor division; the residual (at most installment_count - 1 cents) is
    collected with the last installment.
    """
    return total_debt_cents // installment_count


def snapshot_items(items: list[dict]) -> list[dict]:
    """
    Normalize cart lines into the stored item snapshot.

    Each item: product_id (optional), name, quantity, unit_price_cents,
    unit_cost_cents (optional, default 0).
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item is required")

    snapshot = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        name = (item.get("name") or "").strip()
        if not name:
            raise ValidationError(f"items[{idx}].name is required")
        quantity = item.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"items[{idx}].quantity must be a positive integer")
        unit_price = require_positive_cents(item.get("unit_price_cents"), f"items[{idx}].unit_price_cents")
        unit_cost = item.get("unit_cost_cents") or 0
        if isinstance(unit_cost, bool) or not isinstance(unit_cost, int) or unit_cost < 0:
            raise ValidationError(f"items[{idx}].unit_cost_cents must be >= 0")

        snapshot.append({
            "product_id": item.get("product_id"),
            "name": name,
            "quantity": quantity,
            "unit_price_cents": unit_price,
            "unit_cost_cents": unit_cost,
            "line_total_cents": unit_price * quantity,
        })
    return snapshot


def _sale_lines_from_items(items: list[dict]) -> list[SaleLine]:
    return [
        SaleLine(
            product_id=item.get("product_id"),
            name=item["name"],
            quantity=item["quantity"],
            unit_price_cents=item["unit_price_cents"],
            unit_cost_cents=item.get("unit_cost_cents") or 0,
            line_total_cents=item["line_total_cents"],
        )
        for item in items
    ]


def get_credit(credit_id: int) -> CreditAccount:
    account = db.session.get(CreditAccount, credit_id)
    if account is None:
        raise NotFoundError("Credit account not found")
    return account


def originate_credit(
    customer: dict,
    items: list[dict],
    total_debt_cents: int,
    installment_count: int,
    seller_name: str,
    *,
    commit: bool = True,
    now=None,
) -> CreditAccount:
    """
    Open a credit account for a sale on credit.

    - Resolves the customer by phone (get-or-create, last write wins)
    - Creates the account with remaining == total, status active, empty log
    - Records the companion "credit" Sale (audit entry, no cash impact)

    Returns the account; the companion sale id is in origin_sale_id.

    Raises:
        ValidationError: missing customer name/phone, bad items, bad amounts,
            or total_debt_cents differing from the sum of the items
    """
    if not isinstance(customer, dict):
        raise ValidationError("customer is required")
    require_positive_cents(total_debt_cents, "total_debt_cents")
    if isinstance(installment_count, bool) or not isinstance(installment_count, int) or installment_count < 1:
        raise ValidationError("installment_count must be a positive integer")
    snapshot = snapshot_items(items)
    items_total = sum(item["line_total_cents"] for item in snapshot)
    if items_total != total_debt_cents:
        raise ValidationError(
            f"total_debt_cents ({total_debt_cents}) does not match the items total ({items_total})"
        )
    created_at = now or utcnow()
    per_installment = installment_amount(total_debt_cents, installment_count)

    def _op():
        person = get_or_create_customer(
            name=customer.get("name"),
            phone=customer.get("phone"),
            address=customer.get("address"),
            notes=customer.get("notes"),
            commit=False,
        )

        account = CreditAccount(
            customer_id=person.id,
            customer_name=person.name,
            customer_phone=person.phone,
            customer_address=person.address,
            customer_notes=person.notes,
            items=snapshot,
            total_debt_cents=total_debt_cents,
            remaining_debt_cents=total_debt_cents,
            installment_count=installment_count,
            installment_amount_cents=per_installment,
            status=STATUS_ACTIVE,
            created_at=created_at,
        )
        db.session.add(account)
        db.session.flush()

        sale = Sale(
            created_at=created_at,
            total_cents=total_debt_cents,
            payment_method=METHOD_CREDIT,
            customer_name=person.name,
            seller_name=seller_name,
            installment_count=installment_count,
            installment_amount_cents=per_installment,
            credit_account_id=account.id,
        )
        sale.lines = _sale_lines_from_items(snapshot)
        db.session.add(sale)
        db.session.flush()

        account.origin_sale_id = sale.id
        finish(commit)
        return account

    if not commit:
        return _op()
    return run_with_retry(_op)


def record_payment(
    credit_id: int,
    amount_cents: int,
    method: str,
    seller_name: str,
    expected_remaining_cents: int | None = None,
    *,
    now=None,
) -> Sale:
    """
    Apply a payment to an active credit account.

    Effects (one transaction):
    - appends a CreditPayment to the log
    - remaining = previous - amount; status -> paid when remaining <= 50 cents
    - writes a companion credit_payment_{cash|card} Sale with one
      "Payment to account" line and the previous/remaining balances

    expected_remaining_cents, when given, is the balance the cashier saw on
    screen; if the stored balance moved since, the payment is refused
    instead of being applied against a stale figure.

    Returns the companion Sale (the receipt).

    Raises:
        ValidationError: amount not a positive integer, unknown method
        NotFoundError: account does not exist
        CreditClosedError: account already paid
        ConflictError: expected_remaining_cents no longer matches
        OverpaymentError: amount exceeds the remaining debt
    """
    require_positive_cents(amount_cents, "amount_cents")
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"method must be one of: {', '.join(PAYMENT_METHODS)}")

    def _op():
        account = lock_for_update(db.session.query(CreditAccount).filter_by(id=credit_id)).first()
        if account is None:
            raise NotFoundError("Credit account not found")
        if account.status != STATUS_ACTIVE:
            raise CreditClosedError("Credit account is already paid")

        previous = account.remaining_debt_cents
        if expected_remaining_cents is not None and expected_remaining_cents != previous:
            raise ConflictError("Credit balance changed since it was displayed; reload and retry")
        if amount_cents > previous:
            raise OverpaymentError(f"Payment of {amount_cents} exceeds remaining debt of {previous}")

        paid_at = now or utcnow()
        remaining = previous - amount_cents

        sale = Sale(
            created_at=paid_at,
            total_cents=amount_cents,
            payment_method=PAYMENT_SALE_METHODS[method],
            customer_name=account.customer_name,
            seller_name=seller_name,
            debt_previous_cents=previous,
            debt_remaining_cents=remaining,
            credit_account_id=account.id,
        )
        sale.lines = [
            SaleLine(
                product_id=None,
                name=PAYMENT_TO_ACCOUNT_LABEL,
                quantity=1,
                unit_price_cents=amount_cents,
                unit_cost_cents=0,
                line_total_cents=amount_cents,
            )
        ]
        db.session.add(sale)
        db.session.flush()

        db.session.add(CreditPayment(
            credit_account_id=account.id,
            amount_cents=amount_cents,
            method=method,
            seller_name=seller_name,
            sale_id=sale.id,
            paid_at=paid_at,
        ))

        account.remaining_debt_cents = remaining
        if remaining <= PAID_EPSILON_CENTS:
            account.status = STATUS_PAID

        db.session.commit()

        if account.status == STATUS_PAID:
            current_app.logger.info(
                "Credit account %s paid off (customer %s)", account.id, account.customer_phone
            )
        return sale

    return run_with_retry(_op)


def delete_credit(credit_id: int) -> None:
    """
    Hard delete an account and its payment log.

    Companion sales stay in the history; deleting an account does not
    reverse money already collected.
    """
    def _op():
        account = get_credit(credit_id)
        db.session.delete(account)
        db.session.commit()
        current_app.logger.info("Deleted credit account %s", credit_id)

    run_with_retry(_op)


def list_credits(status: str | None = None, query: str | None = None) -> dict:
    """
    Credit accounts newest first.

    - status: active | paid
    - query: case-insensitive substring of the customer name, or phone substring

    Returns {"items", "count", "pending_total_cents"} where the pending total
    is the remaining debt summed over the listed accounts.
    """
    q = db.session.query(CreditAccount)

    if status:
        if status not in CREDIT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(CREDIT_STATUSES)}")
        q = q.filter(CreditAccount.status == status)

    if query:
        needle = query.strip()
        q = q.filter(
            db.or_(
                db.func.lower(CreditAccount.customer_name).like(f"%{needle.lower()}%"),
                CreditAccount.customer_phone.like(f"%{needle}%"),
            )
        )

    accounts = q.order_by(CreditAccount.created_at.desc(), CreditAccount.id.desc()).all()
    return {
        "items": [a.to_dict() for a in accounts],
        "count": len(accounts),
        "pending_total_cents": sum(a.remaining_debt_cents for a in accounts),
    }


def list_active(query: str | None = None) -> dict:
    return list_credits(status=STATUS_ACTIVE, query=query)


def list_paid(query: str | None = None) -> dict:
    return list_credits(status=STATUS_PAID, query=query)
