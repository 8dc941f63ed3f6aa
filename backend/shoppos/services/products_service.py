# backend/shoppos/services/products_service.py
"""
Catalog & Stock Service

WHY: The catalog is the leaf of the ledger. Checkout and credit origination
only read it to snapshot names and prices, and write to it through a single
operation: decrement_stock.

STOCK INVARIANT:
- is_backorder=False: stock never goes below zero through a sale
- is_backorder=True: stock may go negative; -stock is the number of units owed

The decrement is one relative UPDATE with the invariant in its WHERE clause,
so two concurrent sales of the last unit cannot both succeed.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    DEFAULT_PRODUCT_CATEGORY,
    PRODUCT_CATEGORIES,
    enforce_rules_product,
)
from .concurrency import finish, run_with_retry

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "description",
    "barcode",
    "category",
    "cost_price_cents",
    "market_price_cents",
    "sale_price_cents",
    "wholesale_price_cents",
    "stock",
    "min_stock",
    "is_backorder",
}

# Non-backorder items within this many units above min_stock are flagged "warning"
STOCK_WARNING_MARGIN = 2


class InsufficientStockError(ConflictError):
    """Raised when a sale would drive a non-backorder product below zero."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def stock_status(product: Product) -> str:
    """
    Alert level shown next to a product.

    Backorder items: "owed" while stock is negative, else "on_demand".
    Stocked items: "out" (<= 0), "low" (<= min_stock),
    "warning" (<= min_stock + 2), else "ok".
    """
    stock = product.stock or 0
    if product.is_backorder:
        return "owed" if stock < 0 else "on_demand"

    min_stock = product.min_stock or 0
    if stock <= 0:
        return "out"
    if stock <= min_stock:
        return "low"
    if stock <= min_stock + STOCK_WARNING_MARGIN:
        return "warning"
    return "ok"


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def list_products(query: str | None = None, category: str | None = None) -> dict:
    """
    All products ordered by name.

    - query: case-insensitive substring of the name, or substring of the barcode
    - category: exact category; "other" also matches legacy rows without one
    """
    q = db.session.query(Product)

    if query:
        needle = f"%{query.strip().lower()}%"
        q = q.filter(
            db.or_(
                db.func.lower(Product.name).like(needle),
                Product.barcode.like(f"%{query.strip()}%"),
            )
        )

    if category:
        if category not in PRODUCT_CATEGORIES:
            raise ValidationError(f"category must be one of: {', '.join(PRODUCT_CATEGORIES)}")
        if category == DEFAULT_PRODUCT_CATEGORY:
            q = q.filter(db.or_(Product.category == category, Product.category.is_(None)))
        else:
            q = q.filter(Product.category == category)

    items = [p.to_dict() for p in q.order_by(Product.name.asc(), Product.id.asc()).all()]
    return {"items": items, "count": len(items)}


def low_stock_products() -> list[Product]:
    """
    Products that need attention:
    - stocked items at or below their min_stock (out of stock included)
    - backorder items with units owed
    """
    return (
        db.session.query(Product)
        .filter(
            db.or_(
                db.and_(Product.is_backorder.is_(False), Product.stock <= Product.min_stock),
                db.and_(Product.is_backorder.is_(True), Product.stock < 0),
            )
        )
        .order_by(Product.stock.asc(), Product.name.asc())
        .all()
    )


def create_product(patch: dict) -> Product:
    """
    Create a catalog entry.

    The patch is expected to have passed validate_payload; the business
    rules (name present, sale price > 0, price bounds, category enum) are
    enforced here as well so direct callers get the same guarantees.
    """
    data = dict(patch)
    if not (data.get("name") or "").strip():
        raise ValidationError("name is required")
    if data.get("sale_price_cents") is None:
        raise ValidationError("sale_price_cents is required")
    if data.get("category") is None:
        data["category"] = DEFAULT_PRODUCT_CATEGORY
    enforce_rules_product(data)

    def _op():
        product = Product(sale_price_cents=data["sale_price_cents"], name=data["name"].strip())
        apply_product_patch(product, data)
        db.session.add(product)
        db.session.commit()
        return product

    return run_with_retry(_op)


def update_product(product_id: int, patch: dict) -> Product:
    """
    Merge the allowed fields into an existing product.

    Only the catalog row changes: past sales and credit items keep their
    own snapshots.
    """
    enforce_rules_product(patch)

    def _op():
        product = get_product(product_id)
        apply_product_patch(product, patch)
        if not (product.name or "").strip():
            raise ValidationError("name cannot be blank")
        if (product.sale_price_cents or 0) <= 0:
            raise ValidationError("sale_price_cents must be > 0")
        db.session.commit()
        return product

    return run_with_retry(_op)


def decrement_stock(product_id: int, quantity: int, *, commit: bool = True) -> int:
    """
    Atomically subtract quantity from a product's stock.

    Issues a single relative UPDATE (stock = stock - :q) guarded by
    (is_backorder OR stock >= :q); there is no read-modify-write window.

    Returns the new stock level.

    Raises:
        ValidationError: quantity is not a positive integer
        NotFoundError: product does not exist
        InsufficientStockError: non-backorder product has fewer than quantity units
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer")

    def _op():
        updated = (
            db.session.query(Product)
            .filter(
                Product.id == product_id,
                db.or_(Product.is_backorder.is_(True), Product.stock >= quantity),
            )
            .update(
                {
                    Product.stock: Product.stock - quantity,
                    Product.version_id: Product.version_id + 1,
                },
                synchronize_session="fetch",
            )
        )

        if updated == 0:
            product = db.session.get(Product, product_id)
            if product is None:
                raise NotFoundError("Product not found")
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}",
                details={
                    "product_id": product_id,
                    "requested_quantity": quantity,
                    "stock": product.stock,
                },
            )

        new_stock = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
        finish(commit)
        return new_stock

    if not commit:
        return _op()
    return run_with_retry(_op)


def delete_product(product_id: int) -> None:
    """Hard delete. Sales and credit accounts keep their snapshots."""
    def _op():
        product = get_product(product_id)
        db.session.delete(product)
        db.session.commit()
        current_app.logger.info("Deleted product %s (%s)", product_id, product.name)

    run_with_retry(_op)
