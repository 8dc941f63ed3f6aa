# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shoppos/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
"""
from flask import Blueprint, request, current_app
from ..services import products_service
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"name", "sale_price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List products ordered by name.

    Query params:
    - q: str (optional) - name or barcode search
    - category: str (optional) - general | snacks | beauty | tools | other
    """
    try:
        return products_service.list_products(
            query=request.args.get("q"),
            category=request.args.get("category"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400


@products_bp.get("/alerts")
@require_auth
def low_stock_alerts():
    """Products at or below their minimum stock, and backorder items with units owed."""
    items = [p.to_dict() for p in products_service.low_stock_products()]
    return {"items": items, "count": len(items)}


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return created.to_dict(), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        return products_service.get_product(product_id).to_dict()
    except NotFoundError as e:
        return {"error": str(e)}, 404


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """
    Update product fields. Only the provided fields change.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(product_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return updated.to_dict()


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """
    Delete a product.

    Past sales and credit accounts keep their own snapshot of it.
    """
    try:
        products_service.delete_product(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return {"error": "Internal server error"}, 500

    return {"deleted": True, "id": product_id}
