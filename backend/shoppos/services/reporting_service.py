# backend/shoppos/services/reporting_service.py
"""
Read-only aggregations over the sales history.

Two kinds of Sale must not be double counted:
- credit payments (credit_payment_*) are money coming in for goods that
  were already counted when the credit sale was made
- credit sales (credit) are goods going out with no money coming in

So merchandise figures skip credit payments, and income figures skip
credit sales.
"""
from __future__ import annotations

from collections import defaultdict

from ..models.sales import CREDIT_PAYMENT_METHODS, METHOD_CREDIT
from ..validation import ValidationError
from shoppos.time_utils import day_bounds, month_bounds
from .sales_service import sales_between

TOP_PRODUCTS_LIMIT = 5
UNKNOWN_SELLER = "Unknown"


def _is_merchandise(sale) -> bool:
    return sale.payment_method not in CREDIT_PAYMENT_METHODS


def _sale_profit_cents(sale) -> int:
    # Old lines without a cost count their full price as profit
    return sum(
        (line.unit_price_cents - (line.unit_cost_cents or 0)) * line.quantity
        for line in sale.lines
    )


def daily_summary(day) -> dict:
    """
    The business day's sales and headline figures.

    - merchandise_total_cents: value of goods sold (cash, card and credit)
    - cash_income_cents: money actually received (everything but credit sales)
    - estimated_profit_cents: sum of (price - cost) * qty over merchandise sales
    """
    start, end = day_bounds(day)
    sales = sales_between(start, end)

    merchandise = [s for s in sales if _is_merchandise(s)]
    return {
        "date": day.isoformat(),
        "sales": [s.to_dict() for s in reversed(sales)],
        "count": len(sales),
        "merchandise_total_cents": sum(s.total_cents for s in merchandise),
        "cash_income_cents": sum(s.total_cents for s in sales if s.payment_method != METHOD_CREDIT),
        "estimated_profit_cents": sum(_sale_profit_cents(s) for s in merchandise),
    }


def monthly_dashboard(month: str) -> dict:
    """
    Admin dashboard for a calendar month ("YYYY-MM").

    - sellers: ranking by merchandise total, highest first
    - top_products: the 5 best sellers by quantity
    - merchandise_total_cents, sales_count, average_ticket_cents over
      the month's merchandise sales
    """
    try:
        start, end = month_bounds(month)
    except ValueError as e:
        raise ValidationError(str(e))

    merchandise = [s for s in sales_between(start, end) if _is_merchandise(s)]

    by_seller: dict[str, int] = defaultdict(int)
    by_product: dict[str, int] = defaultdict(int)
    for sale in merchandise:
        by_seller[sale.seller_name or UNKNOWN_SELLER] += sale.total_cents
        for line in sale.lines:
            by_product[line.name] += line.quantity

    sellers = sorted(by_seller.items(), key=lambda kv: (-kv[1], kv[0]))
    products = sorted(by_product.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_PRODUCTS_LIMIT]

    total = sum(s.total_cents for s in merchandise)
    count = len(merchandise)
    return {
        "month": month,
        "sellers": [{"name": name, "total_cents": cents} for name, cents in sellers],
        "top_products": [{"name": name, "quantity": qty} for name, qty in products],
        "merchandise_total_cents": total,
        "sales_count": count,
        "average_ticket_cents": total // count if count else 0,
    }
