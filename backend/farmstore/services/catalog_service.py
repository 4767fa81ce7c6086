# Overview: Read access to the product catalog and idempotent seeding from static catalog data.

from __future__ import annotations

from sqlalchemy import case, func

from ..extensions import db
from ..models import BulkPriceTier, Product
from ..validation import ValidationError, enforce_rules_product_price
from .pricing_service import validate_bulk_tiers


def list_products(category: str | None = None, in_stock: bool | None = None) -> list[Product]:
    query = db.session.query(Product)
    if category:
        query = query.filter(Product.category == category)
    if in_stock is True:
        query = query.filter(Product.stock > 0)
    elif in_stock is False:
        query = query.filter(Product.stock == 0)
    return query.order_by(Product.category.asc(), Product.id.asc()).all()


def list_categories() -> list[dict]:
    rows = (
        db.session.query(
            Product.category,
            func.count(Product.id),
            func.sum(case((Product.stock > 0, 1), else_=0)),
        )
        .group_by(Product.category)
        .order_by(Product.category.asc())
        .all()
    )
    return [
        {"category": category, "productCount": int(total), "inStockCount": int(in_stock or 0)}
        for category, total, in_stock in rows
    ]


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def seed_catalog(catalog: dict) -> tuple[int, int]:
    """
    Insert catalog products that do not exist yet (matched by id).

    Existing products are left alone so a re-seed never resets live stock.
    Returns (created, skipped).
    """
    created = 0
    skipped = 0
    for category, products in catalog.items():
        for item in products:
            if db.session.get(Product, item["id"]) is not None:
                skipped += 1
                continue

            enforce_rules_product_price(item["price"])
            tiers = validate_bulk_tiers(item.get("bulk_pricing") or [])
            stock = item.get("stock", 0)
            if not isinstance(stock, int) or stock < 0:
                raise ValidationError(f"product {item['id']}: stock must be a non-negative integer")

            product = Product(
                id=item["id"],
                name=item["name"],
                description=item.get("description"),
                category=category,
                base_price=item["price"],
                unit=item.get("unit") or "per unit",
                stock=stock,
                low_stock_threshold=item.get("low_stock_threshold", 0),
                reorder_point=item.get("reorder_point", 0),
                rating=item.get("rating"),
                image_url=item.get("image"),
            )
            product.bulk_tiers = [
                BulkPriceTier(min_quantity=min_qty, price_per_unit=price)
                for min_qty, price in tiers
            ]
            db.session.add(product)
            created += 1

    db.session.commit()
    return created, skipped
