# backend/farmstore/routes/products.py
"""Catalog, availability, price quote and restock-subscription routes."""

from flask import Blueprint, g, request

from ..decorators import optional_auth, require_auth
from ..models.auth import CLASSIFICATION_RETAIL
from ..responses import api_error, api_success
from ..services import catalog_service, inventory_service, pricing_service
from ..validation import ValidationError, require_positive_int


products_bp = Blueprint("products", __name__, url_prefix="/api/v1/products")


def _parse_bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes"):
        return True
    if lowered in ("0", "false", "no"):
        return False
    raise ValidationError(f"{name} must be true or false")


def _quantity_arg() -> int:
    return require_positive_int(request.args.get("quantity", "1"), "quantity")


@products_bp.get("")
def list_products_route():
    try:
        in_stock = _parse_bool_arg("in_stock")
    except ValidationError as e:
        return api_error(str(e), status=400)

    products = catalog_service.list_products(category=request.args.get("category"), in_stock=in_stock)
    return api_success("Products retrieved successfully", [p.to_dict() for p in products])


@products_bp.get("/categories")
def list_categories_route():
    return api_success("Categories retrieved successfully", catalog_service.list_categories())


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    product = catalog_service.get_product(product_id)
    if not product:
        return api_error("Product not found", status=404)
    return api_success("Product retrieved successfully", product.to_dict())


@products_bp.get("/<int:product_id>/availability")
def availability_route(product_id: int):
    try:
        quantity = _quantity_arg()
    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)

    if not catalog_service.get_product(product_id):
        return api_error("Product not found", status=404)
    availability = inventory_service.check_availability(product_id, quantity)
    return api_success("Availability checked", availability.to_dict())


@products_bp.get("/<int:product_id>/price")
@optional_auth
def price_quote_route(product_id: int):
    """
    Unit price for a quantity.

    Anonymous callers are quoted retail. Signed-in buyers are quoted for
    their current classification.
    """
    try:
        quantity = _quantity_arg()
    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)

    product = catalog_service.get_product(product_id)
    if not product:
        return api_error("Product not found", status=404)

    classification = g.current_user.classification if g.current_user else CLASSIFICATION_RETAIL
    quote = pricing_service.price_breakdown(product, quantity, classification)
    data = quote.to_dict()
    data["userType"] = classification
    return api_success("Price calculated", data)


@products_bp.get("/<int:product_id>/restock-subscription")
@require_auth
def restock_subscription_status_route(product_id: int):
    subscribed = inventory_service.is_subscribed_to_restock(product_id, g.current_user.id)
    return api_success("Subscription status retrieved", {"subscribed": subscribed})


@products_bp.post("/<int:product_id>/restock-subscription")
@require_auth
def subscribe_route(product_id: int):
    if not catalog_service.get_product(product_id):
        return api_error("Product not found", status=404)
    if not inventory_service.subscribe_to_restock(product_id, g.current_user):
        return api_error("Already subscribed to restock notifications for this product", status=409)
    return api_success("Subscribed to restock notifications", {"subscribed": True}, status=201)


@products_bp.delete("/<int:product_id>/restock-subscription")
@require_auth
def unsubscribe_route(product_id: int):
    if not inventory_service.unsubscribe_from_restock(product_id, g.current_user.id):
        return api_error("Subscription not found", status=404)
    return api_success("Unsubscribed from restock notifications", {"subscribed": False})
