# backend/shoppos/services/cash_cut_service.py
"""
Cash Cut Service - daily drawer reconciliation

WHY: At closing the cashier counts the drawer and the system tells them
whether it matches what the day's sales say should be there.

    expected   = opening float + cash sales - expenses
    difference = declared - expected   (negative: drawer is short)

Cash sales are "cash" sales plus cash payments into credit accounts. Card
money never touches the drawer. Credit originations bring in no money.

One cut per business day (local calendar day in STORE_TIMEZONE). Once
closed, the cut is frozen; the reconciliation view shows the stored record
instead of recomputing.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CashCut, Sale
from ..models.sales import CARD_METHODS, CASH_DRAWER_METHODS
from ..validation import ConflictError, ValidationError
from shoppos.time_utils import business_date, day_bounds, utcnow
from .expense_service import total_expenses


class CashCutExistsError(ConflictError):
    """Raised when the business day already has a closed cash cut."""


def compute_expected(opening_float_cents: int, cash_sales_cents: int, withdrawals_cents: int) -> int:
    return opening_float_cents + cash_sales_cents - withdrawals_cents


def compute_difference(declared_cents: int, expected_cents: int) -> int:
    return declared_cents - expected_cents


def _sum_sales(start, end, methods) -> int:
    total = (
        db.session.query(db.func.coalesce(db.func.sum(Sale.total_cents), 0))
        .filter(
            Sale.created_at >= start,
            Sale.created_at < end,
            Sale.payment_method.in_(methods),
        )
        .scalar()
    )
    return int(total or 0)


def day_totals(day) -> dict:
    """Drawer-relevant aggregates of one business day."""
    start, end = day_bounds(day)
    cash = _sum_sales(start, end, CASH_DRAWER_METHODS)
    card = _sum_sales(start, end, CARD_METHODS)
    return {
        "business_date": day.isoformat(),
        "cash_sales_cents": cash,
        "card_sales_cents": card,
        "total_sales_cents": cash + card,
        "withdrawals_cents": total_expenses(day),
    }


def get_cut(day) -> CashCut | None:
    return db.session.query(CashCut).filter_by(business_date=day).first()


def get_or_compute_today(now=None) -> dict:
    """
    Today's cash cut.

    If it is closed, returns the frozen record (is_closed=True). Otherwise
    returns an unsaved preview of today's aggregates with is_closed=False
    and expected_cents computed for an opening float of zero.
    """
    today = business_date(now)
    existing = get_cut(today)
    if existing is not None:
        return existing.to_dict()

    preview = day_totals(today)
    preview["expected_cents"] = compute_expected(0, preview["cash_sales_cents"], preview["withdrawals_cents"])
    preview["is_closed"] = False
    return preview


def close_session(
    opening_float_cents: int,
    declared_cents: int,
    notes: str | None,
    user_name: str,
    now=None,
) -> CashCut:
    """
    Close today's cash cut and freeze its figures.

    Raises:
        ValidationError: negative or non-integer amounts
        CashCutExistsError: today already has a cut
    """
    for field, value in (("opening_float_cents", opening_float_cents), ("declared_cents", declared_cents)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{field} must be an integer amount in cents")
        if value < 0:
            raise ValidationError(f"{field} must be >= 0")

    now = now or utcnow()
    today = business_date(now)

    if get_cut(today) is not None:
        raise CashCutExistsError(f"A cash cut for {today.isoformat()} already exists")

    totals = day_totals(today)
    expected = compute_expected(opening_float_cents, totals["cash_sales_cents"], totals["withdrawals_cents"])

    cut = CashCut(
        business_date=today,
        opening_float_cents=opening_float_cents,
        cash_sales_cents=totals["cash_sales_cents"],
        card_sales_cents=totals["card_sales_cents"],
        total_sales_cents=totals["total_sales_cents"],
        withdrawals_cents=totals["withdrawals_cents"],
        expected_cents=expected,
        declared_cents=declared_cents,
        difference_cents=compute_difference(declared_cents, expected),
        notes=(notes or "").strip() or None,
        user_name=user_name,
        created_at=now,
    )
    db.session.add(cut)
    try:
        db.session.commit()
    except IntegrityError:
        # Another terminal closed the same day between our check and insert
        db.session.rollback()
        raise CashCutExistsError(f"A cash cut for {today.isoformat()} already exists")

    current_app.logger.info(
        "Cash cut closed for %s by %s: expected=%s declared=%s difference=%s",
        today.isoformat(), user_name, cut.expected_cents, cut.declared_cents, cut.difference_cents,
    )
    return cut


def list_cuts() -> list[CashCut]:
    """Cut history, newest business day first."""
    return db.session.query(CashCut).order_by(CashCut.business_date.desc()).all()
