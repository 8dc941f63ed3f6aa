# backend/shoppos/routes/customers.py
from flask import Blueprint, request, jsonify

from ..services import customer_service
from ..decorators import require_auth


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    """Customer directory; q searches name or phone."""
    customers = customer_service.list_customers(request.args.get("q"))
    return jsonify({"items": [c.to_dict() for c in customers], "count": len(customers)}), 200
