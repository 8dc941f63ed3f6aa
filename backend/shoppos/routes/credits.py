# Overview: Flask API routes for credit accounts; parses input and returns JSON responses.

# backend/shoppos/routes/credits.py
"""
Credit ledger routes.

Accounts are opened through checkout (payment_method=credit); these routes
list them, take payments and delete them.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import credit_service
from ..services.credit_service import CreditClosedError
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth


credits_bp = Blueprint("credits", __name__, url_prefix="/api/credits")


@credits_bp.get("")
@require_auth
def list_credits_route():
    """
    Query params:
    - status: active | paid (optional)
    - q: customer name or phone (optional)
    """
    try:
        result = credit_service.list_credits(
            status=request.args.get("status"),
            query=request.args.get("q"),
        )
        return jsonify(result), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@credits_bp.get("/<int:credit_id>")
@require_auth
def get_credit_route(credit_id: int):
    try:
        return jsonify(credit_service.get_credit(credit_id).to_dict()), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@credits_bp.post("/<int:credit_id>/payments")
@require_auth
def record_payment_route(credit_id: int):
    """
    Take a payment into a credit account.

    Request body:
    {
        "amount_cents": int,
        "method": "cash" | "card",
        "expected_remaining_cents": int (optional)  // balance shown to the cashier
    }

    Returns:
        201: companion sale (receipt) and the updated account
        400: invalid amount or overpayment
        404: account not found
        409: account already paid, or balance changed since displayed
    """
    data = request.get_json(silent=True) or {}

    try:
        sale = credit_service.record_payment(
            credit_id=credit_id,
            amount_cents=data.get("amount_cents"),
            method=data.get("method"),
            seller_name=g.actor,
            expected_remaining_cents=data.get("expected_remaining_cents"),
        )
        account = credit_service.get_credit(credit_id)
        return jsonify({"sale": sale.to_dict(), "credit": account.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except CreditClosedError as e:
        return jsonify({"error": str(e)}), 409
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to record credit payment")
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.delete("/<int:credit_id>")
@require_auth
def delete_credit_route(credit_id: int):
    try:
        credit_service.delete_credit(credit_id)
        return jsonify({"deleted": True, "id": credit_id}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete credit account")
        return jsonify({"error": "Internal server error"}), 500
