# Overview: Pricing engine; resolves the unit price a buyer pays for a quantity of a product.

"""
Pricing rules

- Only wholesale_verified buyers get bulk pricing. Retail and every
  *_pending classification pay base_price at any quantity.
- Tiers are scanned in ascending min_quantity order and every tier with
  quantity >= min_quantity overrides the price, so the last qualifying
  tier wins.
- Price lookups are pure: no DB access, no validation of quantity.
- order_totals applies the shipping and VAT policy from app config.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..models.auth import CLASSIFICATION_WHOLESALE_VERIFIED
from ..validation import ValidationError, enforce_rules_product_price


@dataclass(frozen=True)
class PriceQuote:
    unit_price: int
    quantity: int
    line_total: int
    base_price: int
    tier_min_quantity: int | None
    savings: int

    def to_dict(self) -> dict:
        return {
            "unitPrice": self.unit_price,
            "quantity": self.quantity,
            "lineTotal": self.line_total,
            "basePrice": self.base_price,
            "tierMinQuantity": self.tier_min_quantity,
            "savings": self.savings,
        }


def _applicable_tier(product, quantity: int, classification: str):
    if classification != CLASSIFICATION_WHOLESALE_VERIFIED:
        return None
    applied = None
    for tier in product.bulk_tiers or ():
        if quantity >= tier.min_quantity:
            applied = tier
    return applied


def unit_price(product, quantity: int, classification: str) -> int:
    tier = _applicable_tier(product, quantity, classification)
    if tier is None:
        return product.base_price
    return tier.price_per_unit


def price_breakdown(product, quantity: int, classification: str) -> PriceQuote:
    """Unit price plus the tier that produced it and savings against base price."""
    tier = _applicable_tier(product, quantity, classification)
    price = product.base_price if tier is None else tier.price_per_unit
    return PriceQuote(
        unit_price=price,
        quantity=quantity,
        line_total=price * quantity,
        base_price=product.base_price,
        tier_min_quantity=tier.min_quantity if tier is not None else None,
        savings=(product.base_price - price) * quantity,
    )


def validate_bulk_tiers(tiers: list[dict]) -> list[tuple[int, int]]:
    """
    Check a tier list from catalog data and return (min_quantity, price) pairs.

    min_quantity must be positive and strictly increasing.
    """
    pairs: list[tuple[int, int]] = []
    previous = 0
    for i, tier in enumerate(tiers or []):
        min_qty = tier.get("min_quantity", tier.get("minQuantity"))
        price = tier.get("price_per_unit", tier.get("pricePerUnit"))
        if not isinstance(min_qty, int) or isinstance(min_qty, bool) or min_qty <= 0:
            raise ValidationError(f"bulk tier {i}: min_quantity must be a positive integer")
        if min_qty <= previous:
            raise ValidationError(f"bulk tier {i}: min_quantity must be strictly increasing")
        enforce_rules_product_price(price, field=f"bulk tier {i} price")
        pairs.append((min_qty, price))
        previous = min_qty
    return pairs


def round_half_up_div(numerator: int, denominator: int) -> int:
    """Integer division rounding halves up (non-negative inputs)."""
    return (numerator * 2 + denominator) // (denominator * 2)


def compute_totals(
    subtotal: int,
    *,
    free_shipping_threshold: int,
    flat_shipping_fee: int,
    vat_rate_bps: int,
) -> dict:
    """
    Order totals in whole Naira.

    Shipping is free only when subtotal is strictly above the threshold.
    VAT is given in basis points (800 = 8%).
    """
    shipping = 0 if subtotal > free_shipping_threshold else flat_shipping_fee
    tax = round_half_up_div(subtotal * vat_rate_bps, 10_000)
    return {
        "subtotal": subtotal,
        "shipping": shipping,
        "tax": tax,
        "total": subtotal + shipping + tax,
    }


def order_totals(subtotal: int) -> dict:
    config = current_app.config
    return compute_totals(
        subtotal,
        free_shipping_threshold=config["FREE_SHIPPING_THRESHOLD"],
        flat_shipping_fee=config["FLAT_SHIPPING_FEE"],
        vat_rate_bps=config["VAT_RATE_BPS"],
    )
