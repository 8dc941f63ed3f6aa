# backend/shoppos/routes/system.py
"""
Liveness probe for the terminal and any process supervisor.

200 when the database answers, 503 otherwise. No auth: it exposes only
counts.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import CreditAccount, Product
from ..models.credits import STATUS_ACTIVE
from shoppos.time_utils import business_date, to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def _database_check() -> dict:
    started = time.perf_counter()
    try:
        db.session.execute(text("SELECT 1"))
        details = {
            "products": db.session.query(Product).count(),
            "active_credits": db.session.query(CreditAccount).filter_by(status=STATUS_ACTIVE).count(),
        }
        status = "healthy"
    except Exception:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        details = None
        status = "unhealthy"

    check = {"status": status, "latency_ms": round((time.perf_counter() - started) * 1000, 2)}
    if details is not None:
        check["details"] = details
    return check


@system_bp.get("/health")
def health():
    database = _database_check()
    body = {
        "status": database["status"],
        "timestamp": to_utc_z(utcnow()),
        "business_date": business_date().isoformat(),
        "checks": {"database": database},
    }
    return body, 200 if database["status"] == "healthy" else 503
