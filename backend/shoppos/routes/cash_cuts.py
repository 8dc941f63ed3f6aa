# Overview: Flask API routes for cash cuts; parses input and returns JSON responses.

# backend/shoppos/routes/cash_cuts.py
"""
Daily cash cut routes.

GET /today shows the frozen cut if today is already closed, otherwise a
live preview; POST closes today.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import cash_cut_service
from ..services.cash_cut_service import CashCutExistsError
from ..validation import ValidationError
from ..decorators import require_auth


cash_cuts_bp = Blueprint("cash_cuts", __name__, url_prefix="/api/cash-cuts")


@cash_cuts_bp.get("")
@require_auth
def list_cuts_route():
    cuts = cash_cut_service.list_cuts()
    return jsonify({"items": [c.to_dict() for c in cuts], "count": len(cuts)}), 200


@cash_cuts_bp.get("/today")
@require_auth
def today_route():
    return jsonify(cash_cut_service.get_or_compute_today()), 200


@cash_cuts_bp.post("")
@require_auth
def close_route():
    """
    Close today's cash cut.

    Request body:
    {
        "opening_float_cents": int,
        "declared_cents": int,      // counted cash in the drawer
        "notes": str (optional)
    }

    Returns:
        201: frozen cut
        400: invalid amounts
        409: today is already closed
    """
    data = request.get_json(silent=True) or {}

    try:
        cut = cash_cut_service.close_session(
            opening_float_cents=data.get("opening_float_cents", 0),
            declared_cents=data.get("declared_cents"),
            notes=data.get("notes"),
            user_name=g.actor,
        )
        return jsonify(cut.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CashCutExistsError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to close cash cut")
        return jsonify({"error": "Internal server error"}), 500
