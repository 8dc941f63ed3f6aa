# backend/shoppos/routes/expenses.py
from flask import Blueprint, request, jsonify, current_app, g

from ..services import expense_service
from ..validation import ValidationError
from ..decorators import require_auth
from shoppos.time_utils import parse_day


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@require_auth
def list_expenses_route():
    """Expenses newest first; date=YYYY-MM-DD limits to one business day and adds its total."""
    try:
        day = parse_day(request.args.get("date"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    expenses = expense_service.list_expenses(day)
    body = {"items": [e.to_dict() for e in expenses], "count": len(expenses)}
    if day is not None:
        body["total_cents"] = sum(e.amount_cents for e in expenses)
    return jsonify(body), 200


@expenses_bp.post("")
@require_auth
def add_expense_route():
    """Body: {description, amount_cents}"""
    data = request.get_json(silent=True) or {}

    try:
        expense = expense_service.add_expense(
            description=data.get("description"),
            amount_cents=data.get("amount_cents"),
            user_name=g.actor,
        )
        return jsonify(expense.to_dict()), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add expense")
        return jsonify({"error": "Internal server error"}), 500
