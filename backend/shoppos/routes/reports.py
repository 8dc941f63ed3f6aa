# backend/shoppos/routes/reports.py
from flask import Blueprint, request, jsonify

from ..services import reporting_service
from ..validation import ValidationError
from ..decorators import require_auth
from shoppos.time_utils import business_date, parse_day, utcnow


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/daily")
@require_auth
def daily_route():
    """date=YYYY-MM-DD (default: today)"""
    try:
        day = parse_day(request.args.get("date")) or business_date()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(reporting_service.daily_summary(day)), 200


@reports_bp.get("/dashboard")
@require_auth
def dashboard_route():
    """month=YYYY-MM (default: current month)"""
    month = request.args.get("month") or business_date(utcnow()).strftime("%Y-%m")
    try:
        return jsonify(reporting_service.monthly_dashboard(month)), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
