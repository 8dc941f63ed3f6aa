# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/shoppos/routes/sales.py
"""
Checkout and sales history routes.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import sales_service
from ..services.products_service import InsufficientStockError
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth
from shoppos.time_utils import parse_day


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/checkout")
@require_auth
def checkout_route():
    """
    Check out a cart.

    Request body:
    {
        "lines": [{"product_id": int, "quantity": int}, ...],
        "payment_method": "cash" | "card" | "credit",
        "tendered_cents": int,          // cash only
        "installment_count": 2 | 3,     // credit only
        "customer": {"name", "phone", "address", "notes"}  // required for credit
    }

    Returns:
        201: Sale created (the receipt)
        400: Invalid cart, insufficient payment, missing customer
        404: Unknown product
        409: Insufficient stock
    """
    data = request.get_json(silent=True) or {}

    try:
        sale = sales_service.checkout(
            lines=data.get("lines"),
            payment_method=data.get("payment_method"),
            seller_name=g.actor,
            customer=data.get("customer"),
            tendered_cents=data.get("tendered_cents"),
            installment_count=data.get("installment_count"),
        )
        return jsonify(sale.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to check out sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Sales history, newest first.

    Query params:
    - date: YYYY-MM-DD (optional) - one business day
    """
    try:
        day = parse_day(request.args.get("date"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    sales = sales_service.list_sales(day)
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        return jsonify(sales_service.get_sale(sale_id).to_dict()), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
