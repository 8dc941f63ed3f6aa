# Overview: Pytest coverage for the credit ledger audit.

import pytest
from shoppos.models import CreditAccount, CreditPayment
from shoppos.services import credit_service
from shoppos.services.maintenance_service import audit_credit_accounts


@pytest.fixture
def account(db_session, customer_info):
    return credit_service.originate_credit(
        customer=customer_info,
        items=[{"product_id": None, "name": "Fan", "quantity": 2, "unit_price_cents": 10000}],
        total_debt_cents=20000,
        installment_count=2,
        seller_name="Ana",
    )


def _corrupt_remaining(db_session, account_id: int, remaining: int) -> None:
    db_session.query(CreditAccount).filter_by(id=account_id).update(
        {"remaining_debt_cents": remaining}, synchronize_session=False
    )
    db_session.commit()
    db_session.expire_all()


def test_consistent_ledger_has_no_findings(db_session, account):
    credit_service.record_payment(account.id, 5000, "cash", "Ana")
    assert audit_credit_accounts() == []


def test_reports_without_fixing(db_session, account):
    account_id = account.id
    _corrupt_remaining(db_session, account_id, 12345)

    findings = audit_credit_accounts()

    assert len(findings) == 1
    assert findings[0]["credit_account_id"] == account_id
    assert db_session.get(CreditAccount, account_id).remaining_debt_cents == 12345


def test_fix_recomputes_from_payment_log(db_session, account):
    account_id = account.id
    credit_service.record_payment(account_id, 5000, "card", "Ana")
    _corrupt_remaining(db_session, account_id, 20000)

    findings = audit_credit_accounts(fix=True)

    assert len(findings) == 1
    db_session.expire_all()
    assert db_session.get(CreditAccount, account_id).remaining_debt_cents == 15000
    assert audit_credit_accounts() == []


def test_fix_never_reopens_paid_account(db_session, account):
    account_id = account.id
    credit_service.record_payment(account_id, 20000, "cash", "Ana")

    # A payment row vanishing leaves a paid account whose log implies debt
    db_session.query(CreditPayment).filter_by(credit_account_id=account_id).delete()
    db_session.commit()
    db_session.expire_all()

    findings = audit_credit_accounts(fix=True)

    assert len(findings) == 1
    assert any("status=paid" in p for p in findings[0]["problems"])
    db_session.expire_all()
    repaired = db_session.get(CreditAccount, account_id)
    assert repaired.remaining_debt_cents == 20000
    assert repaired.status == "paid"
