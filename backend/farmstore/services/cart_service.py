# Overview: Server-side shopping cart; stores quantities only, prices are computed on read.

from __future__ import annotations

from ..extensions import db
from ..models import CartItem, Product, User
from ..validation import MAX_LINE_QUANTITY, ValidationError
from .pricing_service import order_totals, price_breakdown


class CartError(Exception):
    """Raised for cart operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def get_cart(user_id: int) -> list[CartItem]:
    return (
        db.session.query(CartItem)
        .filter_by(user_id=user_id)
        .order_by(CartItem.added_at.asc(), CartItem.id.asc())
        .all()
    )


def set_cart_item(user_id: int, product_id: int, quantity: int) -> CartItem | None:
    """
    Set the quantity of one product in the cart. Quantity 0 removes the line.

    Stock is not reserved here; checkout re-checks availability.
    """
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 0:
        raise ValidationError("quantity must be a non-negative integer")
    if quantity > MAX_LINE_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_LINE_QUANTITY}")

    if db.session.get(Product, product_id) is None:
        raise CartError("Product not found", details={"productId": product_id})

    item = db.session.query(CartItem).filter_by(user_id=user_id, product_id=product_id).first()
    if quantity == 0:
        if item:
            db.session.delete(item)
            db.session.commit()
        return None

    if item:
        item.quantity = quantity
    else:
        item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
        db.session.add(item)
    db.session.commit()
    return item


def remove_cart_item(user_id: int, product_id: int) -> bool:
    deleted = (
        db.session.query(CartItem)
        .filter_by(user_id=user_id, product_id=product_id)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return bool(deleted)


def clear_cart(user_id: int, *, commit: bool = True) -> None:
    db.session.query(CartItem).filter_by(user_id=user_id).delete(synchronize_session=False)
    if commit:
        db.session.commit()


def cart_summary(user: User) -> dict:
    """Cart priced for the buyer's current classification, with shipping and VAT."""
    items = []
    subtotal = 0
    for item in get_cart(user.id):
        quote = price_breakdown(item.product, item.quantity, user.classification)
        subtotal += quote.line_total
        items.append({
            "product": item.product.to_dict(),
            "quantity": item.quantity,
            "unitPrice": quote.unit_price,
            "lineTotal": quote.line_total,
            "savings": quote.savings,
            "available": item.product.stock >= item.quantity,
        })
    summary = order_totals(subtotal)
    summary["items"] = items
    summary["itemCount"] = sum(i["quantity"] for i in items)
    return summary
