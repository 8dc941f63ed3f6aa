from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import CreditAccount
from ..models.credits import STATUS_ACTIVE, STATUS_PAID
from .credit_service import PAID_EPSILON_CENTS


def _expected_status(remaining_cents: int) -> str:
    return STATUS_PAID if remaining_cents <= PAID_EPSILON_CENTS else STATUS_ACTIVE


def audit_credit_accounts(*, fix: bool = False) -> list[dict]:
    """
    Reconcile every credit account against its payment log.

    Checks total - remaining == sum(payments) and that the status agrees
    with the remaining balance. With fix=True the remaining balance and
    status are recomputed from the log. A paid account is never reopened:
    its status is only reported.

    Returns one finding per inconsistent account.
    """
    findings = []
    for account in db.session.query(CreditAccount).order_by(CreditAccount.id.asc()).all():
        paid = sum(p.amount_cents for p in account.payments)
        expected_remaining = account.total_debt_cents - paid
        expected_status = _expected_status(expected_remaining)

        problems = []
        if account.remaining_debt_cents != expected_remaining:
            problems.append(
                f"remaining_debt_cents={account.remaining_debt_cents} but log implies {expected_remaining}"
            )
        if account.status != expected_status:
            problems.append(f"status={account.status} but balance implies {expected_status}")
        if not problems:
            continue

        findings.append({
            "credit_account_id": account.id,
            "customer_name": account.customer_name,
            "problems": problems,
        })

        if fix:
            account.remaining_debt_cents = expected_remaining
            if account.status == STATUS_ACTIVE:
                account.status = expected_status

    if fix and findings:
        db.session.commit()
        current_app.logger.info("Repaired %s credit account(s)", len(findings))

    return findings
