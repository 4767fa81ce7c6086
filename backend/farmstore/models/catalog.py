from __future__ import annotations

from ..extensions import db
from farmstore.time_utils import to_utc_z


class Product(db.Model):
    """
    Catalog product with its authoritative stock count.

    Prices are whole Naira (7500 = N7,500.00).

    INVARIANTS:
    - stock >= 0 (check constraint; all writes go through inventory_service)
    - bulk tiers are strictly increasing by min_quantity
    - in_stock is derived from stock, never stored
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("low_stock_threshold >= 0", name="ck_products_low_stock_non_negative"),
        db.Index("ix_products_category_name", "category", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(64), nullable=False, index=True)

    base_price = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(32), nullable=False, default="per unit")

    stock = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=0)
    reorder_point = db.Column(db.Integer, nullable=False, default=0)
    last_restocked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    image_url = db.Column(db.String(500), nullable=True)
    rating = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    bulk_tiers = db.relationship(
        "BulkPriceTier",
        order_by="BulkPriceTier.min_quantity",
        cascade="all, delete-orphan",
        lazy="selectin",
        backref="product",
    )

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.stock <= self.low_stock_threshold

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "price": self.base_price,
            "unit": self.unit,
            "stock": self.stock,
            "inStock": self.in_stock,
            "lowStockThreshold": self.low_stock_threshold,
            "reorderPoint": self.reorder_point,
            "lastRestocked": to_utc_z(self.last_restocked_at),
            "image": self.image_url,
            "rating": self.rating,
            "bulkPricing": [tier.to_dict() for tier in self.bulk_tiers],
        }


class BulkPriceTier(db.Model):
    """Price break: at or above min_quantity a verified wholesale buyer pays price_per_unit."""
    __tablename__ = "bulk_price_tiers"
    __table_args__ = (
        db.UniqueConstraint("product_id", "min_quantity", name="uq_bulk_tiers_product_min_qty"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    min_quantity = db.Column(db.Integer, nullable=False)
    price_per_unit = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "minQuantity": self.min_quantity,
            "pricePerUnit": self.price_per_unit,
        }
