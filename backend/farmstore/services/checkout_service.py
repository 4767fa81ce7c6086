"""
Checkout orchestrator

WHY: A checkout either fully succeeds or fully fails. Availability check,
pricing, stock deduction, order number allocation, order insert and cart
clearing all run in ONE database transaction. Every deduction is a guarded
conditional UPDATE, so a concurrent checkout that takes the stock between
our availability check and our deduction makes the UPDATE match zero rows
and the whole transaction is rolled back.

INVARIANTS:
- No order without the matching stock deductions, and no deduction
  without an order.
- OrderLine.unit_price is the price charged at checkout and is never
  recomputed from later catalog state.
- The buyer's classification is read from the users table, never from the
  access token.
"""

from __future__ import annotations

from collections import OrderedDict

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Order, OrderLine, OrderTimelineEvent, Product, User
from ..models.orders import ORDER_PENDING, PAYMENT_METHODS
from farmstore.time_utils import utcnow
from .cart_service import clear_cart, get_cart
from .concurrency import run_with_retry
from .document_service import next_document_number
from .inventory_service import check_availability, deduct_locked
from .pricing_service import order_totals, unit_price


TIMELINE_STAGES = ("Order Placed", "Processing", "Shipped", "Delivered")

_REQUIRED_ADDRESS_FIELDS = ("name", "address", "city", "state")


class CheckoutError(Exception):
    """Raised for checkout errors. Nothing has been committed when this is raised."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InsufficientStockError(CheckoutError):
    """One or more lines cannot be filled from current stock."""


def _normalize_address(raw) -> dict:
    if not isinstance(raw, dict):
        raise CheckoutError("shipping_address is required")
    address = {
        "name": str(raw.get("name") or "").strip(),
        "address": str(raw.get("address") or "").strip(),
        "city": str(raw.get("city") or "").strip(),
        "state": str(raw.get("state") or "").strip(),
        "zip_code": str(raw.get("zip_code") or raw.get("zipCode") or "").strip() or None,
        "phone": str(raw.get("phone") or "").strip() or None,
    }
    missing = [f for f in _REQUIRED_ADDRESS_FIELDS if not address[f]]
    if missing:
        raise CheckoutError(
            "Please complete the shipping address",
            details={"missing": missing},
        )
    return address


def _merge_lines(lines) -> "OrderedDict[int, int]":
    merged: "OrderedDict[int, int]" = OrderedDict()
    for product_id, quantity in lines:
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise CheckoutError(
                "Quantity must be a positive integer",
                details={"productId": product_id, "quantity": quantity},
            )
        merged[product_id] = merged.get(product_id, 0) + quantity
    return merged


def _initial_timeline(now) -> list[OrderTimelineEvent]:
    return [
        OrderTimelineEvent(
            position=i,
            label=label,
            completed=(i == 0),
            occurred_at=now if i == 0 else None,
        )
        for i, label in enumerate(TIMELINE_STAGES)
    ]


def checkout(
    user: User,
    *,
    shipping_address: dict,
    payment_method: str,
    lines: list[tuple[int, int]] | None = None,
    notes: str | None = None,
) -> Order:
    """
    Turn a cart into an order.

    `lines` are (product_id, quantity) pairs; when omitted the user's stored
    cart is used and cleared on success. On failure the stored cart is kept
    so the buyer can edit and retry.
    """
    address = _normalize_address(shipping_address)
    if payment_method not in PAYMENT_METHODS:
        raise CheckoutError(
            "Invalid payment method",
            details={"allowed": list(PAYMENT_METHODS)},
        )
    from_cart = lines is None

    def _op() -> Order:
        buyer = db.session.query(User).populate_existing().filter_by(id=user.id).one()

        raw_lines = (
            [(item.product_id, item.quantity) for item in get_cart(buyer.id)]
            if from_cart
            else lines
        )
        merged = _merge_lines(raw_lines)
        if not merged:
            raise CheckoutError("Your cart is empty")

        products = {
            p.id: p
            for p in db.session.query(Product)
            .populate_existing()
            .filter(Product.id.in_(list(merged.keys())))
            .all()
        }

        # 1. availability, itemized
        short = []
        for product_id, quantity in merged.items():
            availability = check_availability(product_id, quantity)
            if not availability.available:
                product = products.get(product_id)
                short.append({
                    "productId": product_id,
                    "name": product.name if product else "Unknown product",
                    "available": availability.current_stock,
                    "requested": quantity,
                })
        if short:
            raise InsufficientStockError("Insufficient stock for some items", details={"items": short})

        # 2-3. price snapshot and totals
        now = utcnow()
        order_lines = []
        subtotal = 0
        for product_id, quantity in merged.items():
            product = products[product_id]
            price = unit_price(product, quantity, buyer.classification)
            subtotal += price * quantity
            order_lines.append(OrderLine(
                product_id=product_id,
                name=product.name,
                unit=product.unit,
                category=product.category,
                quantity=quantity,
                unit_price=price,
                line_total=price * quantity,
            ))
        totals = order_totals(subtotal)

        # 4. guarded deductions; any miss aborts the whole transaction
        for product_id, quantity in merged.items():
            if not deduct_locked(product_id, quantity):
                current = check_availability(product_id, quantity)
                raise InsufficientStockError(
                    "Stock changed while placing your order. Please review your cart.",
                    details={"items": [{
                        "productId": product_id,
                        "name": products[product_id].name,
                        "available": current.current_stock,
                        "requested": quantity,
                    }]},
                )

        # 5. persist
        order_number = next_document_number(
            document_type=f"ORDER-{now.year}",
            prefix=f"ORD-{now.year}",
        )
        order = Order(
            order_number=order_number,
            status=ORDER_PENDING,
            user_id=buyer.id,
            user_email=buyer.email,
            classification=buyer.classification,
            ship_name=address["name"],
            ship_address=address["address"],
            ship_city=address["city"],
            ship_state=address["state"],
            ship_zip_code=address["zip_code"],
            ship_phone=address["phone"],
            payment_method=payment_method,
            notes=notes,
            subtotal=totals["subtotal"],
            shipping=totals["shipping"],
            tax=totals["tax"],
            total=totals["total"],
            created_at=now,
        )
        order.lines = order_lines
        order.timeline = _initial_timeline(now)
        db.session.add(order)

        if from_cart:
            clear_cart(buyer.id, commit=False)

        db.session.commit()
        return order

    try:
        return run_with_retry(_op, retry_on=(OperationalError, StaleDataError, IntegrityError))
    except CheckoutError:
        db.session.rollback()
        raise
