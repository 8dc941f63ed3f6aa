# backend/shoppos/services/sales_service.py
"""
Checkout - turns a cart into an immutable Sale.

WHY: A Sale is the unifying event of the ledger. Every branch ends in one
persisted Sale that the receipt renderer consumes:

- cash: tendered >= total, change recorded
- card: no tender fields
- credit (2 or 3 installments): opens a credit account, the returned Sale
  is its companion "credit" sale

Stock is decremented for every line that references a product. The sale,
the credit account and all stock decrements commit together; if any
decrement fails (e.g. insufficient stock) nothing is written.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Product, Sale, SaleLine
from ..models.sales import METHOD_CARD, METHOD_CASH, METHOD_CREDIT, WALK_IN_CUSTOMER
from ..validation import NotFoundError, ValidationError, require_positive_cents
from shoppos.time_utils import day_bounds, utcnow
from .concurrency import run_with_retry
from .credit_service import originate_credit, snapshot_items
from .products_service import decrement_stock

CHECKOUT_METHODS = (METHOD_CASH, METHOD_CARD, METHOD_CREDIT)
CREDIT_INSTALLMENT_OPTIONS = (2, 3)


class InsufficientPaymentError(ValidationError):
    """Raised when cash tendered is below the sale total."""


def _resolve_lines(lines: list[dict]) -> list[dict]:
    """
    Build the price snapshot of each cart line.

    Lines with a product_id take name, sale price and cost from the catalog
    as they are right now. Lines without one are free-form items and must
    carry their own name and unit_price_cents.
    """
    if not isinstance(lines, list) or not lines:
        raise ValidationError("Cart is empty")

    resolved = []
    for idx, line in enumerate(lines):
        if not isinstance(line, dict):
            raise ValidationError(f"lines[{idx}] must be an object")
        product_id = line.get("product_id")
        if product_id is not None:
            product = db.session.get(Product, product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            resolved.append({
                "product_id": product.id,
                "name": product.name,
                "quantity": line.get("quantity"),
                "unit_price_cents": product.sale_price_cents,
                "unit_cost_cents": product.cost_price_cents or 0,
            })
        else:
            resolved.append({
                "product_id": None,
                "name": line.get("name"),
                "quantity": line.get("quantity"),
                "unit_price_cents": line.get("unit_price_cents"),
                "unit_cost_cents": line.get("unit_cost_cents") or 0,
            })

    return snapshot_items(resolved)


def checkout(
    lines: list[dict],
    payment_method: str,
    seller_name: str,
    customer: dict | None = None,
    tendered_cents: int | None = None,
    installment_count: int | None = None,
    *,
    now=None,
) -> Sale:
    """
    Record a sale for the cart and decrement stock.

    Args:
        lines: [{product_id, quantity}] or free-form [{name, quantity, unit_price_cents}]
        payment_method: cash | card | credit
        seller_name: attribution label of the cashier
        customer: {name, phone, address, notes}; name+phone required for credit
        tendered_cents: cash handed over (cash only)
        installment_count: 2 or 3 (credit only)

    Returns:
        The persisted Sale

    Raises:
        ValidationError: empty cart, bad line, unknown method, missing customer
        InsufficientPaymentError: cash tendered below total
        NotFoundError: a line references a missing product
        InsufficientStockError: a non-backorder product has too few units
    """
    if payment_method not in CHECKOUT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(CHECKOUT_METHODS)}")
    if not (seller_name or "").strip():
        raise ValidationError("seller_name is required")

    customer = customer or {}
    customer_name = (customer.get("name") or "").strip()

    if payment_method == METHOD_CREDIT:
        if installment_count not in CREDIT_INSTALLMENT_OPTIONS:
            raise ValidationError("installment_count must be 2 or 3")
        if not customer_name or not (customer.get("phone") or "").strip():
            raise ValidationError("Customer name and phone are required for credit sales")

    created_at = now or utcnow()

    def _op():
        items = _resolve_lines(lines)
        total = sum(item["line_total_cents"] for item in items)

        if payment_method == METHOD_CREDIT:
            account = originate_credit(
                customer=customer,
                items=items,
                total_debt_cents=total,
                installment_count=installment_count,
                seller_name=seller_name,
                commit=False,
                now=created_at,
            )
            sale = db.session.get(Sale, account.origin_sale_id)
        else:
            sale = Sale(
                created_at=created_at,
                total_cents=total,
                payment_method=payment_method,
                customer_name=customer_name or WALK_IN_CUSTOMER,
                seller_name=seller_name,
            )
            if payment_method == METHOD_CASH:
                tendered = require_positive_cents(tendered_cents, "tendered_cents")
                if tendered < total:
                    raise InsufficientPaymentError(
                        f"Cash tendered ({tendered}) is less than the total ({total})"
                    )
                sale.tendered_cents = tendered
                sale.change_cents = tendered - total
            sale.lines = [
                SaleLine(
                    product_id=item["product_id"],
                    name=item["name"],
                    quantity=item["quantity"],
                    unit_price_cents=item["unit_price_cents"],
                    unit_cost_cents=item["unit_cost_cents"],
                    line_total_cents=item["line_total_cents"],
                )
                for item in items
            ]
            db.session.add(sale)
            db.session.flush()

        for item in items:
            if item["product_id"] is not None:
                decrement_stock(item["product_id"], item["quantity"], commit=False)

        db.session.commit()
        return sale

    return run_with_retry(_op)


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def list_sales(day=None) -> list[Sale]:
    """Sales newest first; day (a date) limits to one business day."""
    q = db.session.query(Sale)
    if day is not None:
        start, end = day_bounds(day)
        q = q.filter(Sale.created_at >= start, Sale.created_at < end)
    return q.order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def sales_between(start, end) -> list[Sale]:
    """Sales in the UTC-naive half-open range [start, end), oldest first."""
    return (
        db.session.query(Sale)
        .filter(Sale.created_at >= start, Sale.created_at < end)
        .order_by(Sale.created_at.asc(), Sale.id.asc())
        .all()
    )
