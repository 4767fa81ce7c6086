# backend/farmstore/routes/inventory.py
"""Admin inventory routes: restock, history, stock alerts and subscriptions."""

from flask import Blueprint, current_app, g, request

from ..decorators import require_admin, require_auth
from ..extensions import db
from ..responses import api_error, api_success, json_body
from ..services import catalog_service, inventory_service
from ..validation import ValidationError, require_positive_int


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/v1/inventory")


def _optional_product_id():
    raw = request.args.get("product_id")
    if raw is None or raw == "":
        return None
    return require_positive_int(raw, "product_id", maximum=2**31 - 1)


@inventory_bp.post("/<int:product_id>/restock")
@require_auth
@require_admin
def restock_route(product_id: int):
    data = json_body()
    try:
        quantity = require_positive_int(data.get("quantity"), "quantity")
        notes = data.get("notes")
        if notes is not None:
            notes = str(notes).strip()[:500] or None

        if not inventory_service.restock(product_id, quantity, actor_id=g.current_user.id, notes=notes):
            return api_error("Product not found", status=404)

        product = catalog_service.get_product(product_id)
        return api_success(f"Restocked {quantity} units", product.to_dict())

    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to restock product %s", product_id)
        return api_error("Internal server error", status=500)


@inventory_bp.get("/restock-history")
@require_auth
@require_admin
def restock_history_route():
    try:
        product_id = _optional_product_id()
    except ValidationError as e:
        return api_error(str(e), status=400)
    history = inventory_service.get_restock_history(product_id=product_id)
    return api_success("Restock history retrieved", [r.to_dict() for r in history])


@inventory_bp.get("/low-stock")
@require_auth
@require_admin
def low_stock_route():
    products = inventory_service.get_low_stock_products()
    return api_success("Low stock products retrieved", [p.to_dict() for p in products])


@inventory_bp.get("/out-of-stock")
@require_auth
@require_admin
def out_of_stock_route():
    products = inventory_service.get_out_of_stock_products()
    return api_success("Out of stock products retrieved", [p.to_dict() for p in products])


@inventory_bp.get("/stats")
@require_auth
@require_admin
def stats_route():
    return api_success("Inventory stats retrieved", inventory_service.get_inventory_stats())


@inventory_bp.get("/subscriptions")
@require_auth
@require_admin
def subscriptions_route():
    try:
        product_id = _optional_product_id()
    except ValidationError as e:
        return api_error(str(e), status=400)
    subscriptions = inventory_service.get_restock_subscriptions(product_id=product_id)
    return api_success("Restock subscriptions retrieved", [s.to_dict() for s in subscriptions])
