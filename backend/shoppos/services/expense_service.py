# backend/shoppos/services/expense_service.py
"""
Expenses: cash taken out of the drawer during the day.

Recorded once, never edited. The cash cut subtracts the day's total from
the expected drawer balance.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Expense
from ..validation import ValidationError, require_positive_cents
from shoppos.time_utils import day_bounds, utcnow
from .concurrency import run_with_retry


def add_expense(description: str, amount_cents: int, user_name: str, *, now=None) -> Expense:
    description = (description or "").strip()
    if not description:
        raise ValidationError("description is required")
    require_positive_cents(amount_cents, "amount_cents")

    def _op():
        expense = Expense(
            description=description,
            amount_cents=amount_cents,
            user_name=user_name,
            created_at=now or utcnow(),
        )
        db.session.add(expense)
        db.session.commit()
        return expense

    return run_with_retry(_op)


def _expenses_query(day=None):
    q = db.session.query(Expense)
    if day is not None:
        start, end = day_bounds(day)
        q = q.filter(Expense.created_at >= start, Expense.created_at < end)
    return q


def list_expenses(day=None) -> list[Expense]:
    return _expenses_query(day).order_by(Expense.created_at.desc(), Expense.id.desc()).all()


def total_expenses(day) -> int:
    """Sum of the business day's expenses in cents."""
    start, end = day_bounds(day)
    total = (
        db.session.query(db.func.coalesce(db.func.sum(Expense.amount_cents), 0))
        .filter(Expense.created_at >= start, Expense.created_at < end)
        .scalar()
    )
    return int(total or 0)
