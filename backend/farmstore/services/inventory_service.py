# Overview: Inventory ledger; the only code path that writes Product.stock.

"""
Inventory invariants (authoritative)

- Product.stock never goes negative. Deductions are one conditional UPDATE
  (`stock = stock - q WHERE stock >= q`) so two concurrent writers cannot
  both pass a check made against the same stale value.
- A deduction either removes the full quantity or changes nothing.
- Restocks are unconditional increments and always append a RestockRecord
  carrying the stock before and after the increment.
- Stock alerts go to the admin feed and never block the write that caused
  them:
    * entering the low-stock band (0 < stock <= low_stock_threshold) -> warning
    * reaching exactly 0 -> error
- A restock from 0 to positive notifies every restock subscriber of that
  product once and then deletes those subscriptions.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func, update

from ..extensions import db
from ..models import Product, RestockRecord, RestockSubscription, User
from ..models.notifications import (
    NOTIFICATION_ERROR,
    NOTIFICATION_INFO,
    NOTIFICATION_SUCCESS,
    NOTIFICATION_WARNING,
)
from farmstore.time_utils import utcnow
from . import notification_service
from .concurrency import run_with_retry


@dataclass(frozen=True)
class Availability:
    available: bool
    current_stock: int
    requested: int

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "currentStock": self.current_stock,
            "requested": self.requested,
        }


def check_availability(product_id: int, requested_qty: int) -> Availability:
    """Read-only stock check. Unknown products are simply unavailable."""
    stock = db.session.query(Product.stock).filter_by(id=product_id).scalar()
    if stock is None:
        return Availability(available=False, current_stock=0, requested=requested_qty)
    return Availability(available=stock >= requested_qty, current_stock=stock, requested=requested_qty)


def _publish_stock_alerts(product: Product, previous_stock: int) -> None:
    if product.stock == 0:
        notification_service.publish(
            NOTIFICATION_ERROR,
            "Out of Stock",
            f"{product.name} is now out of stock",
            product_id=product.id,
        )
    elif product.stock <= product.low_stock_threshold < previous_stock:
        notification_service.publish(
            NOTIFICATION_WARNING,
            "Low Stock Alert",
            f"{product.name} is running low ({product.stock} {product.unit} left)",
            product_id=product.id,
        )


def deduct_locked(product_id: int, quantity: int) -> bool:
    """
    Guarded deduction inside the caller's transaction. Does not commit.

    Returns False (and changes nothing) when the product is unknown or has
    less than `quantity` in stock.
    """
    if quantity <= 0:
        return False

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False

    product = db.session.get(Product, product_id)
    db.session.refresh(product)
    _publish_stock_alerts(product, previous_stock=product.stock + quantity)
    return True


def deduct_inventory(product_id: int, quantity: int) -> bool:
    """Deduct and commit. See deduct_locked for the guard."""
    def _op() -> bool:
        ok = deduct_locked(product_id, quantity)
        if ok:
            db.session.commit()
        else:
            db.session.rollback()
        return ok

    return run_with_retry(_op)


def _notify_restock_subscribers(product: Product) -> int:
    subscriptions = (
        db.session.query(RestockSubscription)
        .filter_by(product_id=product.id)
        .order_by(RestockSubscription.subscribed_at.asc(), RestockSubscription.id.asc())
        .all()
    )
    for sub in subscriptions:
        notification_service.publish(
            NOTIFICATION_SUCCESS,
            "Back in Stock!",
            f"{product.name} is back in stock. Order now before it runs out!",
            user_id=sub.user_id,
            product_id=product.id,
        )
        current_app.logger.info(
            "Back-in-stock email queued for %s (product_id=%s)", sub.user_email, product.id
        )
        db.session.delete(sub)
    return len(subscriptions)


def restock(product_id: int, quantity: int, actor_id: int | None = None, notes: str | None = None) -> bool:
    """
    Add `quantity` units, record history and notify subscribers.

    Returns False when the product does not exist or quantity is not positive.
    """
    if quantity <= 0:
        return False

    def _op() -> bool:
        now = utcnow()
        result = db.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity, last_restocked_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            return False

        product = db.session.get(Product, product_id)
        db.session.refresh(product)
        new_stock = product.stock
        previous_stock = new_stock - quantity

        db.session.add(RestockRecord(
            product_id=product_id,
            quantity=quantity,
            previous_stock=previous_stock,
            new_stock=new_stock,
            restocked_by_user_id=actor_id,
            restocked_at=now,
            notes=notes,
        ))

        notification_service.publish(
            NOTIFICATION_SUCCESS,
            "Product Restocked",
            f"{product.name} has been restocked with {quantity} units. New stock: {new_stock}",
            product_id=product_id,
        )

        if previous_stock == 0 and new_stock > 0:
            _notify_restock_subscribers(product)

        db.session.commit()
        return True

    return run_with_retry(_op)


def get_restock_history(product_id: int | None = None, limit: int | None = None) -> list[RestockRecord]:
    query = db.session.query(RestockRecord)
    if product_id is not None:
        query = query.filter_by(product_id=product_id)
    query = query.order_by(RestockRecord.restocked_at.desc(), RestockRecord.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_low_stock_products() -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.stock > 0, Product.stock <= Product.low_stock_threshold)
        .order_by(Product.stock.asc(), Product.id.asc())
        .all()
    )


def get_out_of_stock_products() -> list[Product]:
    return db.session.query(Product).filter(Product.stock == 0).order_by(Product.id.asc()).all()


def get_inventory_stats() -> dict:
    total_products, total_units, total_value = db.session.query(
        func.count(Product.id),
        func.coalesce(func.sum(Product.stock), 0),
        func.coalesce(func.sum(Product.stock * Product.base_price), 0),
    ).one()
    low = get_low_stock_products()
    out = get_out_of_stock_products()
    return {
        "totalProducts": total_products,
        "totalStock": int(total_units),
        "totalValue": int(total_value),
        "lowStockCount": len(low),
        "outOfStockCount": len(out),
        "inStockCount": total_products - len(out),
        "lowStockProducts": [p.to_dict() for p in low],
        "outOfStockProducts": [p.to_dict() for p in out],
    }


# =============================================================================
# Restock subscriptions ("notify me when back in stock")
# =============================================================================

def subscribe_to_restock(product_id: int, user: User) -> bool:
    """False if the product is unknown or the user is already subscribed."""
    product = db.session.get(Product, product_id)
    if not product:
        return False
    if is_subscribed_to_restock(product_id, user.id):
        return False

    db.session.add(RestockSubscription(product_id=product_id, user_id=user.id, user_email=user.email))
    notification_service.publish(
        NOTIFICATION_INFO,
        "Subscribed to Restock Notifications",
        f"You will be notified when {product.name} is back in stock",
        user_id=user.id,
        product_id=product_id,
    )
    db.session.commit()
    return True


def unsubscribe_from_restock(product_id: int, user_id: int) -> bool:
    deleted = (
        db.session.query(RestockSubscription)
        .filter_by(product_id=product_id, user_id=user_id)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return bool(deleted)


def is_subscribed_to_restock(product_id: int, user_id: int) -> bool:
    return (
        db.session.query(RestockSubscription.id)
        .filter_by(product_id=product_id, user_id=user_id)
        .first()
        is not None
    )


def get_restock_subscriptions(product_id: int | None = None) -> list[RestockSubscription]:
    query = db.session.query(RestockSubscription)
    if product_id is not None:
        query = query.filter_by(product_id=product_id)
    return query.order_by(RestockSubscription.subscribed_at.desc(), RestockSubscription.id.desc()).all()
