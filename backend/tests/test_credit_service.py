# Overview: Pytest coverage for the installment credit ledger.

"""
Credit Ledger Tests

- origination: customer get-or-create, companion credit sale
- payments: balance arithmetic, paid transition, companion receipt sale
- guards: amount validation, overpayment, closed accounts, stale balance
- listing, search and deletion
"""

import pytest
from shoppos.models import CreditAccount, CreditPayment, Customer, Sale
from shoppos.services import credit_service
from shoppos.services.credit_service import (
    CreditClosedError,
    OverpaymentError,
    installment_amount,
)
from shoppos.validation import ConflictError, NotFoundError, ValidationError


def _items(total_cents: int = 30000) -> list[dict]:
    return [{
        "product_id": None,
        "name": "Blender",
        "quantity": 1,
        "unit_price_cents": total_cents,
        "unit_cost_cents": 18000,
    }]


@pytest.fixture
def account(db_session, customer_info):
    """Active account: 300.00 in 3 installments."""
    return credit_service.originate_credit(
        customer=customer_info,
        items=_items(30000),
        total_debt_cents=30000,
        installment_count=3,
        seller_name="Ana",
    )


class TestOrigination:

    def test_opens_active_account(self, db_session, account):
        assert account.status == "active"
        assert account.total_debt_cents == 30000
        assert account.remaining_debt_cents == 30000
        assert account.installment_amount_cents == 10000
        assert account.payments == []

    def test_companion_credit_sale(self, db_session, account):
        """The credit sale is an audit entry and does not change the debt."""
        sale = db_session.get(Sale, account.origin_sale_id)
        assert sale.payment_method == "credit"
        assert sale.total_cents == 30000
        assert sale.credit_account_id == account.id
        assert sale.installment_count == 3
        assert [line.name for line in sale.lines] == ["Blender"]
        assert account.remaining_debt_cents == 30000

    def test_customer_created_then_updated_by_phone(self, db_session, account, customer_info):
        """Same phone: last write wins on name/address/notes, no duplicate."""
        corrected = dict(customer_info, name="María López", address="Calle 7 #3", notes=None)
        second = credit_service.originate_credit(
            customer=corrected,
            items=_items(5000),
            total_debt_cents=5000,
            installment_count=2,
            seller_name="Ana",
        )

        customers = db_session.query(Customer).all()
        assert len(customers) == 1
        assert customers[0].name == "María López"
        assert customers[0].address == "Calle 7 #3"
        assert customers[0].notes is None
        assert second.customer_id == account.customer_id

    def test_requires_customer_name_and_phone(self, db_session):
        with pytest.raises(ValidationError):
            credit_service.originate_credit(
                customer={"name": "No Phone"},
                items=_items(),
                total_debt_cents=30000,
                installment_count=3,
                seller_name="Ana",
            )
        assert db_session.query(CreditAccount).count() == 0

    def test_total_must_match_items(self, db_session, customer_info):
        with pytest.raises(ValidationError):
            credit_service.originate_credit(
                customer=customer_info,
                items=_items(30000),
                total_debt_cents=29999,
                installment_count=3,
                seller_name="Ana",
            )

    @pytest.mark.parametrize(
        "total,count,expected",
        [(30000, 3, 10000), (10000, 3, 3333), (999, 2, 499)],
    )
    def test_installment_amount_floors(self, total, count, expected):
        assert installment_amount(total, count) == expected


class TestRecordPayment:

    def test_partial_payment(self, db_session, account):
        """100 cash on 300 leaves 200, still active."""
        sale = credit_service.record_payment(account.id, 10000, "cash", "Ana")

        db_session.refresh(account)
        assert account.remaining_debt_cents == 20000
        assert account.status == "active"
        assert sale.payment_method == "credit_payment_cash"
        assert sale.total_cents == 10000
        assert sale.debt_previous_cents == 30000
        assert sale.debt_remaining_cents == 20000

    def test_final_payment_marks_paid(self, db_session, account):
        """Paying the rest by card closes the account."""
        credit_service.record_payment(account.id, 10000, "cash", "Ana")
        sale = credit_service.record_payment(account.id, 20000, "card", "Luis")

        db_session.refresh(account)
        assert account.remaining_debt_cents == 0
        assert account.status == "paid"
        assert sale.payment_method == "credit_payment_card"
        assert sale.debt_previous_cents == 20000
        assert sale.debt_remaining_cents == 0
        assert sale.seller_name == "Luis"

    def test_companion_sale_has_single_payment_line(self, db_session, account):
        sale = credit_service.record_payment(account.id, 2500, "cash", "Ana")
        assert len(sale.lines) == 1
        line = sale.lines[0]
        assert line.name == "Payment to account"
        assert line.quantity == 1
        assert line.line_total_cents == sale.total_cents == 2500
        assert line.product_id is None

    def test_log_matches_balance(self, db_session, account):
        """total - remaining == sum of the payment log after every payment."""
        for amount in (1000, 2500, 7000):
            credit_service.record_payment(account.id, amount, "cash", "Ana")
            db_session.refresh(account)
            logged = sum(p.amount_cents for p in account.payments)
            assert account.total_debt_cents - account.remaining_debt_cents == logged

        assert [p.amount_cents for p in account.payments] == [1000, 2500, 7000]
        assert all(p.sale_id is not None for p in account.payments)

    def test_within_epsilon_counts_as_paid(self, db_session, account):
        credit_service.record_payment(account.id, 29950, "cash", "Ana")
        db_session.refresh(account)
        assert account.remaining_debt_cents == 50
        assert account.status == "paid"

    @pytest.mark.parametrize("amount", [0, -100, None, 12.5])
    def test_rejects_non_positive_amount(self, db_session, account, amount):
        with pytest.raises(ValidationError):
            credit_service.record_payment(account.id, amount, "cash", "Ana")
        db_session.refresh(account)
        assert account.remaining_debt_cents == 30000

    def test_rejects_unknown_method(self, db_session, account):
        with pytest.raises(ValidationError):
            credit_service.record_payment(account.id, 100, "cheque", "Ana")

    def test_overpayment(self, db_session, account):
        with pytest.raises(OverpaymentError):
            credit_service.record_payment(account.id, 30001, "cash", "Ana")
        db_session.refresh(account)
        assert account.remaining_debt_cents == 30000
        assert db_session.query(CreditPayment).count() == 0
        assert db_session.query(Sale).filter_by(payment_method="credit_payment_cash").count() == 0

    def test_paid_account_rejects_payments(self, db_session, account):
        """Once paid no payment changes the balance."""
        credit_service.record_payment(account.id, 30000, "cash", "Ana")
        with pytest.raises(CreditClosedError):
            credit_service.record_payment(account.id, 100, "cash", "Ana")
        db_session.refresh(account)
        assert account.remaining_debt_cents == 0
        assert account.status == "paid"

    def test_zero_on_paid_account_is_validation_error(self, db_session, account):
        credit_service.record_payment(account.id, 30000, "cash", "Ana")
        with pytest.raises(ValidationError):
            credit_service.record_payment(account.id, 0, "cash", "Ana")

    def test_stale_expected_balance(self, db_session, account):
        """A payment taken against an outdated balance is refused."""
        credit_service.record_payment(account.id, 10000, "cash", "Ana", expected_remaining_cents=30000)
        with pytest.raises(ConflictError):
            credit_service.record_payment(account.id, 10000, "cash", "Luis", expected_remaining_cents=30000)
        db_session.refresh(account)
        assert account.remaining_debt_cents == 20000

    def test_missing_account(self, db_session):
        with pytest.raises(NotFoundError):
            credit_service.record_payment(424242, 100, "cash", "Ana")

    def test_full_payment_round_trip(self, db_session, customer_info):
        account = credit_service.originate_credit(
            customer=customer_info,
            items=_items(12345),
            total_debt_cents=12345,
            installment_count=2,
            seller_name="Ana",
        )
        credit_service.record_payment(account.id, account.remaining_debt_cents, "card", "Ana")
        db_session.refresh(account)
        assert account.status == "paid"
        assert account.remaining_debt_cents == 0


class TestListingAndDelete:

    def test_filters_and_pending_total(self, db_session, customer_info):
        first = credit_service.originate_credit(
            customer=customer_info, items=_items(30000), total_debt_cents=30000,
            installment_count=3, seller_name="Ana",
        )
        second = credit_service.originate_credit(
            customer={"name": "Pedro Ruiz", "phone": "5559990000"}, items=_items(8000),
            total_debt_cents=8000, installment_count=2, seller_name="Ana",
        )
        credit_service.record_payment(first.id, 5000, "cash", "Ana")
        credit_service.record_payment(second.id, 8000, "cash", "Ana")

        active = credit_service.list_active()
        assert [a["id"] for a in active["items"]] == [first.id]
        assert active["pending_total_cents"] == 25000

        paid = credit_service.list_paid()
        assert [a["id"] for a in paid["items"]] == [second.id]
        assert paid["pending_total_cents"] == 0

        everything = credit_service.list_credits()
        assert [a["id"] for a in everything["items"]] == [second.id, first.id]

    def test_search_by_name_or_phone(self, db_session, customer_info):
        credit_service.originate_credit(
            customer=customer_info, items=_items(1000), total_debt_cents=1000,
            installment_count=2, seller_name="Ana",
        )
        credit_service.originate_credit(
            customer={"name": "Pedro Ruiz", "phone": "5559990000"}, items=_items(1000),
            total_debt_cents=1000, installment_count=2, seller_name="Ana",
        )

        assert credit_service.list_credits(query="maria")["count"] == 1
        assert credit_service.list_credits(query="999")["items"][0]["customer_name"] == "Pedro Ruiz"
        assert credit_service.list_credits(query="nobody")["count"] == 0

    def test_bad_status_filter(self, db_session):
        with pytest.raises(ValidationError):
            credit_service.list_credits(status="overdue")

    def test_delete_keeps_companion_sales(self, db_session, account):
        account_id = account.id
        credit_service.record_payment(account_id, 1000, "cash", "Ana")
        credit_service.delete_credit(account_id)

        assert db_session.get(CreditAccount, account_id) is None
        assert db_session.query(CreditPayment).count() == 0
        assert db_session.query(Sale).count() == 2

        with pytest.raises(NotFoundError):
            credit_service.get_credit(account_id)
