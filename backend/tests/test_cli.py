# Overview: Pytest coverage for the Flask CLI command groups.

from shoppos.models import CreditAccount, User
from shoppos.services import credit_service

from conftest import TEST_PASSWORD


def test_users_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create", "--email", "Luis@Shop.local", "--name", "Luis", "--password", TEST_PASSWORD,
    ])
    assert "PASS Created user: Luis (luis@shop.local)" in result.output
    assert db_session.query(User).filter_by(email="luis@shop.local").count() == 1

    result = runner.invoke(args=["users", "list"])
    assert "luis@shop.local" in result.output


def test_users_create_weak_password(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "users", "create", "--email", "luis@shop.local", "--name", "Luis", "--password", "weak",
    ])
    assert "FAIL Password validation failed" in result.output
    assert db_session.query(User).count() == 0


def test_audit_credits(app, db_session, customer_info):
    account = credit_service.originate_credit(
        customer=customer_info,
        items=[{"name": "Iron", "quantity": 1, "unit_price_cents": 9000}],
        total_debt_cents=9000,
        installment_count=3,
        seller_name="Ana",
    )
    account_id = account.id
    runner = app.test_cli_runner()

    assert "PASS All credit accounts reconcile" in runner.invoke(args=["maintenance", "audit-credits"]).output

    db_session.query(CreditAccount).filter_by(id=account_id).update(
        {"remaining_debt_cents": 1}, synchronize_session=False
    )
    db_session.commit()

    report = runner.invoke(args=["maintenance", "audit-credits"]).output
    assert f"FAIL Credit #{account_id}" in report
    assert "Re-run with --fix" in report

    fixed = runner.invoke(args=["maintenance", "audit-credits", "--fix"]).output
    assert "PASS Repaired 1 credit account(s)." in fixed
    db_session.expire_all()
    assert db_session.get(CreditAccount, account_id).remaining_debt_cents == 9000
