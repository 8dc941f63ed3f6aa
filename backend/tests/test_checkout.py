# Overview: Pytest coverage for checkout across payment methods.

"""
Checkout Tests

- cash: tender and change, stock decrement
- card: no tender fields
- credit: installments, customer required, companion sale returned
- all-or-nothing: a failed line leaves no sale and no stock change
"""

import pytest
from shoppos.models import CreditAccount, Product, Sale
from shoppos.services import sales_service
from shoppos.services.products_service import InsufficientStockError
from shoppos.services.sales_service import InsufficientPaymentError
from shoppos.validation import NotFoundError, ValidationError


class TestCashAndCard:

    def test_cash_sale_with_change(self, db_session, make_product):
        """Sell 2 at 10.00 cash, tendered 25.00: change 5.00, stock 5 -> 3."""
        product = make_product(sale_price_cents=1000, cost_price_cents=600, stock=5)

        sale = sales_service.checkout(
            lines=[{"product_id": product.id, "quantity": 2}],
            payment_method="cash",
            seller_name="Ana",
            tendered_cents=2500,
        )

        assert sale.total_cents == 2000
        assert sale.tendered_cents == 2500
        assert sale.change_cents == 500
        assert sale.customer_name == "Walk-in customer"
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 3

    def test_lines_snapshot_price_and_cost(self, db_session, make_product):
        product = make_product(name="Shampoo", sale_price_cents=4500, cost_price_cents=3000)

        sale = sales_service.checkout(
            lines=[{"product_id": product.id, "quantity": 1}],
            payment_method="card",
            seller_name="Ana",
        )
        products_line = sale.lines[0]
        assert products_line.name == "Shampoo"
        assert products_line.unit_price_cents == 4500
        assert products_line.unit_cost_cents == 3000
        assert products_line.line_total_cents == 4500

        # Later catalog edits do not rewrite history
        product.cost_price_cents = 3500
        db_session.commit()
        db_session.expire_all()
        assert db_session.get(Sale, sale.id).lines[0].unit_cost_cents == 3000

    def test_card_sale_has_no_tender(self, db_session, make_product):
        product = make_product()
        sale = sales_service.checkout(
            lines=[{"product_id": product.id, "quantity": 1}],
            payment_method="card",
            seller_name="Ana",
            tendered_cents=5000,
        )
        assert sale.payment_method == "card"
        assert sale.tendered_cents is None
        assert sale.change_cents is None

    def test_exact_cash(self, db_session, make_product):
        product = make_product(sale_price_cents=1000)
        sale = sales_service.checkout(
            lines=[{"product_id": product.id, "quantity": 1}],
            payment_method="cash",
            seller_name="Ana",
            tendered_cents=1000,
        )
        assert sale.change_cents == 0

    def test_insufficient_cash(self, db_session, make_product):
        product = make_product(sale_price_cents=1000, stock=5)
        with pytest.raises(InsufficientPaymentError):
            sales_service.checkout(
                lines=[{"product_id": product.id, "quantity": 2}],
                payment_method="cash",
                seller_name="Ana",
                tendered_cents=1999,
            )
        assert db_session.query(Sale).count() == 0
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 5

    def test_free_form_line(self, db_session):
        """Lines without a product carry their own name and price; no stock moves."""
        sale = sales_service.checkout(
            lines=[{"name": "Gift wrap", "quantity": 2, "unit_price_cents": 300}],
            payment_method="card",
            seller_name="Ana",
        )
        assert sale.total_cents == 600
        assert sale.lines[0].product_id is None

    def test_total_is_sum_of_lines(self, db_session, make_product):
        a = make_product(name="A", sale_price_cents=1250, stock=10)
        b = make_product(name="B", sale_price_cents=399, stock=10)
        sale = sales_service.checkout(
            lines=[{"product_id": a.id, "quantity": 3}, {"product_id": b.id, "quantity": 2}],
            payment_method="card",
            seller_name="Ana",
        )
        assert sale.total_cents == sum(line.line_total_cents for line in sale.lines) == 4548


class TestBackorder:

    def test_backorder_sale_drives_stock_negative(self, db_session, make_product):
        """Stock 0, backorder: selling 3 leaves -3 units owed."""
        product = make_product(stock=0, is_backorder=True)
        sales_service.checkout(
            lines=[{"product_id": product.id, "quantity": 3}],
            payment_method="card",
            seller_name="Ana",
        )
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == -3

    def test_insufficient_stock_rolls_back_whole_sale(self, db_session, make_product):
        plenty = make_product(name="Plenty", stock=10)
        scarce = make_product(name="Scarce", stock=1)

        with pytest.raises(InsufficientStockError):
            sales_service.checkout(
                lines=[
                    {"product_id": plenty.id, "quantity": 2},
                    {"product_id": scarce.id, "quantity": 2},
                ],
                payment_method="card",
                seller_name="Ana",
            )

        db_session.expire_all()
        assert db_session.query(Sale).count() == 0
        assert db_session.get(Product, plenty.id).stock == 10
        assert db_session.get(Product, scarce.id).stock == 1


class TestCredit:

    def test_credit_checkout_opens_account(self, db_session, make_product, customer_info):
        product = make_product(sale_price_cents=10000, stock=4)

        sale = sales_service.checkout(
            lines=[{"product_id": product.id, "quantity": 3}],
            payment_method="credit",
            seller_name="Ana",
            customer=customer_info,
            installment_count=3,
        )

        assert sale.payment_method == "credit"
        assert sale.total_cents == 30000
        assert sale.installment_amount_cents == 10000
        assert sale.customer_name == "Maria Lopez"

        account = db_session.get(CreditAccount, sale.credit_account_id)
        assert account.origin_sale_id == sale.id
        assert account.remaining_debt_cents == 30000
        assert account.items[0]["product_id"] == product.id

        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 1

    @pytest.mark.parametrize("count", [None, 1, 4])
    def test_credit_requires_two_or_three_installments(self, db_session, make_product, customer_info, count):
        product = make_product()
        with pytest.raises(ValidationError):
            sales_service.checkout(
                lines=[{"product_id": product.id, "quantity": 1}],
                payment_method="credit",
                seller_name="Ana",
                customer=customer_info,
                installment_count=count,
            )

    @pytest.mark.parametrize("customer", [None, {"name": "Maria"}, {"phone": "555"}, {"name": " ", "phone": "555"}])
    def test_credit_requires_customer_name_and_phone(self, db_session, make_product, customer):
        product = make_product()
        with pytest.raises(ValidationError):
            sales_service.checkout(
                lines=[{"product_id": product.id, "quantity": 1}],
                payment_method="credit",
                seller_name="Ana",
                customer=customer,
                installment_count=2,
            )
        assert db_session.query(CreditAccount).count() == 0

    def test_credit_stock_failure_leaves_no_account(self, db_session, make_product, customer_info):
        product = make_product(stock=0)
        with pytest.raises(InsufficientStockError):
            sales_service.checkout(
                lines=[{"product_id": product.id, "quantity": 1}],
                payment_method="credit",
                seller_name="Ana",
                customer=customer_info,
                installment_count=2,
            )
        assert db_session.query(CreditAccount).count() == 0
        assert db_session.query(Sale).count() == 0


class TestValidation:

    @pytest.mark.parametrize("lines", [None, []])
    def test_empty_cart(self, db_session, lines):
        with pytest.raises(ValidationError):
            sales_service.checkout(lines=lines, payment_method="card", seller_name="Ana")

    def test_unknown_method(self, db_session, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            sales_service.checkout(
                lines=[{"product_id": product.id, "quantity": 1}],
                payment_method="voucher",
                seller_name="Ana",
            )

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.checkout(
                lines=[{"product_id": 999, "quantity": 1}],
                payment_method="card",
                seller_name="Ana",
            )

    @pytest.mark.parametrize("quantity", [0, -1, "2", None])
    def test_bad_quantity(self, db_session, make_product, quantity):
        product = make_product()
        with pytest.raises(ValidationError):
            sales_service.checkout(
                lines=[{"product_id": product.id, "quantity": quantity}],
                payment_method="card",
                seller_name="Ana",
            )


class TestHistory:

    def test_list_sales_newest_first_and_by_day(self, db_session, make_product):
        from datetime import date, datetime

        product = make_product(stock=10)
        first = sales_service.checkout(
            lines=[{"product_id": product.id, "quantity": 1}], payment_method="card",
            seller_name="Ana", now=datetime(2026, 3, 9, 12, 0),
        )
        second = sales_service.checkout(
            lines=[{"product_id": product.id, "quantity": 1}], payment_method="card",
            seller_name="Ana", now=datetime(2026, 3, 10, 12, 0),
        )

        assert [s.id for s in sales_service.list_sales()] == [second.id, first.id]
        assert [s.id for s in sales_service.list_sales(date(2026, 3, 9))] == [first.id]
        assert sales_service.get_sale(second.id).id == second.id

        with pytest.raises(NotFoundError):
            sales_service.get_sale(424242)
