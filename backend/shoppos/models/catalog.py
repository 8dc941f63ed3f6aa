from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z


class Product(db.Model):
    """
    Product catalog entry.

    PRICE TIERS (all in cents):
    - cost_price_cents: what the shop paid; snapshotted on every sale line
    - market_price_cents: reference street price shown to the customer
    - sale_price_cents: counter price, the one checkout charges
    - wholesale_price_cents: bulk price, informational only

    STOCK:
    - stock is a signed counter decremented atomically on sale
    - is_backorder=False: a sale may never drive stock below zero
    - is_backorder=True: negative stock is the number of units owed to customers

    Hard delete is allowed. Sales keep their own name/price/cost snapshot
    and reference the product id without a foreign key.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    barcode = db.Column(db.String(64), nullable=True, index=True)

    # general | snacks | beauty | tools | other (nullable for legacy rows)
    category = db.Column(db.String(32), nullable=True, default="other")

    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    market_price_cents = db.Column(db.Integer, nullable=False, default=0)
    sale_price_cents = db.Column(db.Integer, nullable=False)
    wholesale_price_cents = db.Column(db.Integer, nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)
    is_backorder = db.Column(db.Boolean, nullable=False, default=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        # Imported lazily: the service module imports this model.
        from ..services.products_service import stock_status

        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "barcode": self.barcode,
            "category": self.category or "other",
            "cost_price_cents": self.cost_price_cents,
            "market_price_cents": self.market_price_cents,
            "sale_price_cents": self.sale_price_cents,
            "wholesale_price_cents": self.wholesale_price_cents,
            "stock": self.stock,
            "min_stock": self.min_stock,
            "is_backorder": self.is_backorder,
            "stock_status": stock_status(self),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
