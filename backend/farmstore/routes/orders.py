# backend/farmstore/routes/orders.py
"""Checkout and order history routes."""

from flask import Blueprint, current_app, g, request

from ..decorators import require_admin, require_auth
from ..extensions import db
from ..responses import api_error, api_success, json_body
from ..services import checkout_service, order_service
from ..services.checkout_service import CheckoutError, InsufficientStockError
from ..services.order_service import OrderNotFoundError, OrderStateError
from ..validation import AuthorizationError, ValidationError, parse_cart_lines


orders_bp = Blueprint("orders", __name__, url_prefix="/api/v1/orders")


@orders_bp.post("/checkout")
@require_auth
def checkout_route():
    """
    Place an order.

    Body: {items?, shipping_address, payment_method, notes?}
    Without `items` the stored cart is checked out.

    409 when any line is short; nothing is deducted in that case.
    """
    data = json_body()
    try:
        raw_items = data.get("items")
        lines = parse_cart_lines(raw_items) if raw_items is not None else None
        notes = data.get("notes")

        order = checkout_service.checkout(
            g.current_user,
            lines=lines,
            shipping_address=data.get("shipping_address") or data.get("shippingAddress"),
            payment_method=data.get("payment_method") or data.get("paymentMethod"),
            notes=str(notes).strip()[:1000] if notes else None,
        )
        return api_success("Order placed successfully", order.to_dict(), status=201)

    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)
    except InsufficientStockError as e:
        return api_error(str(e), errors=e.details.get("items"), status=409, data=e.details)
    except CheckoutError as e:
        return api_error(str(e), status=400, data=e.details)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Checkout failed")
        return api_error("Internal server error", status=500)


@orders_bp.get("")
@require_auth
def list_orders_route():
    """Own orders; admins may pass all=true to see everyone's."""
    user = g.current_user
    show_all = user.is_admin and request.args.get("all", "").lower() in ("1", "true", "yes")
    try:
        orders = order_service.list_orders(
            user_id=None if show_all else user.id,
            status=request.args.get("status") or None,
        )
    except ValidationError as e:
        return api_error(str(e), status=400)
    return api_success("Orders retrieved successfully", [o.to_dict() for o in orders])


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    order = order_service.get_order(order_id)
    # Other users' orders answer 404, not 403, to avoid leaking ids
    if not order or not order_service.can_view_order(order, g.current_user):
        return api_error("Order not found", status=404)
    return api_success("Order retrieved successfully", order.to_dict())


@orders_bp.post("/<int:order_id>/cancel")
@require_auth
def cancel_order_route(order_id: int):
    try:
        order = order_service.cancel_order(order_id, g.current_user)
    except OrderNotFoundError as e:
        return api_error(str(e), status=404)
    except AuthorizationError:
        db.session.rollback()
        return api_error("Order not found", status=404)
    except OrderStateError as e:
        db.session.rollback()
        return api_error(str(e), status=409, data=e.details)
    return api_success("Order cancelled", order.to_dict())


@orders_bp.post("/<int:order_id>/status")
@require_auth
@require_admin
def update_status_route(order_id: int):
    data = json_body()
    new_status = (data.get("status") or "").strip().lower()
    if not new_status:
        return api_error("status is required", errors=[{"field": "status", "message": "status is required"}], status=400)

    try:
        order = order_service.advance_order_status(order_id, new_status, g.current_user)
    except OrderNotFoundError as e:
        return api_error(str(e), status=404)
    except AuthorizationError as e:
        return api_error(str(e), status=403)
    except OrderStateError as e:
        db.session.rollback()
        return api_error(str(e), status=409, data=e.details)
    return api_success(f"Order marked {new_status}", order.to_dict())
