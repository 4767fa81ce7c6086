# backend/farmstore/routes/cart.py
"""Server-side cart for the signed-in buyer."""

from flask import Blueprint, g

from ..decorators import require_auth
from ..responses import api_error, api_success, json_body
from ..services import cart_service
from ..services.cart_service import CartError
from ..validation import ValidationError


cart_bp = Blueprint("cart", __name__, url_prefix="/api/v1/cart")


@cart_bp.get("")
@require_auth
def get_cart_route():
    return api_success("Cart retrieved", cart_service.cart_summary(g.current_user))


@cart_bp.put("/items/<int:product_id>")
@require_auth
def set_item_route(product_id: int):
    data = json_body()
    try:
        cart_service.set_cart_item(g.current_user.id, product_id, data.get("quantity"))
    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)
    except CartError as e:
        return api_error(str(e), status=404)
    return api_success("Cart updated", cart_service.cart_summary(g.current_user))


@cart_bp.delete("/items/<int:product_id>")
@require_auth
def remove_item_route(product_id: int):
    if not cart_service.remove_cart_item(g.current_user.id, product_id):
        return api_error("Item not in cart", status=404)
    return api_success("Item removed", cart_service.cart_summary(g.current_user))


@cart_bp.delete("")
@require_auth
def clear_cart_route():
    cart_service.clear_cart(g.current_user.id)
    return api_success("Cart cleared", cart_service.cart_summary(g.current_user))
