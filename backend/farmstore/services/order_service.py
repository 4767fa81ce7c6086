# Overview: Order lookups and the post-checkout lifecycle (status advance, cancellation).

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Order, OrderTimelineEvent, User
from ..models.orders import (
    ORDER_CANCELLED,
    ORDER_DELIVERED,
    ORDER_PENDING,
    ORDER_PROCESSING,
    ORDER_SHIPPED,
    ORDER_STATUSES,
)
from ..validation import AuthorizationError, ValidationError
from farmstore.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


# Allowed forward moves; anything else is rejected
NEXT_STATUS = {
    ORDER_PENDING: ORDER_PROCESSING,
    ORDER_PROCESSING: ORDER_SHIPPED,
    ORDER_SHIPPED: ORDER_DELIVERED,
}

TIMELINE_LABELS = {
    ORDER_PROCESSING: "Processing",
    ORDER_SHIPPED: "Shipped",
    ORDER_DELIVERED: "Delivered",
}


class OrderError(Exception):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class OrderNotFoundError(OrderError):
    pass


class OrderStateError(OrderError):
    pass


def get_order(order_id: int) -> Order | None:
    return db.session.get(Order, order_id)


def get_order_by_number(order_number: str) -> Order | None:
    return db.session.query(Order).filter_by(order_number=order_number).first()


def list_orders(user_id: int | None = None, status: str | None = None) -> list[Order]:
    if status and status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")
    query = db.session.query(Order)
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def can_view_order(order: Order, user: User) -> bool:
    return user.is_admin or order.user_id == user.id


def advance_order_status(order_id: int, new_status: str, actor: User) -> Order:
    """Admin-only forward move: pending -> processing -> shipped -> delivered."""
    if not actor.is_admin:
        current_app.logger.warning("Denied order status change by user_id=%s", actor.id)
        raise AuthorizationError("Only admins can update order status")

    def _op() -> Order:
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise OrderNotFoundError("Order not found")
        if NEXT_STATUS.get(order.status) != new_status:
            raise OrderStateError(
                f"Cannot move order from {order.status} to {new_status}",
                details={"status": order.status},
            )

        order.status = new_status
        label = TIMELINE_LABELS[new_status]
        for event in order.timeline:
            if event.label == label:
                event.completed = True
                event.occurred_at = utcnow()
        db.session.commit()
        return order

    return run_with_retry(_op)


def cancel_order(order_id: int, actor: User) -> Order:
    """
    Cancel an order.

    The owner may cancel while pending; admins may cancel anything not yet
    shipped. Stock is not returned automatically; admins restock explicitly.
    """
    def _op() -> Order:
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise OrderNotFoundError("Order not found")

        if actor.is_admin:
            allowed = (ORDER_PENDING, ORDER_PROCESSING)
        elif order.user_id == actor.id:
            allowed = (ORDER_PENDING,)
        else:
            raise AuthorizationError("You cannot cancel this order")

        if order.status not in allowed:
            raise OrderStateError(
                f"Order cannot be cancelled while {order.status}",
                details={"status": order.status},
            )

        order.status = ORDER_CANCELLED
        position = max((e.position for e in order.timeline), default=-1) + 1
        order.timeline.append(OrderTimelineEvent(
            position=position,
            label="Cancelled",
            completed=True,
            occurred_at=utcnow(),
        ))
        db.session.commit()
        return order

    return run_with_retry(_op)
