from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: N999,999,999 (whole Naira)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE = 999_999_999

# Upper bound for a single cart line or restock
MAX_LINE_QUANTITY = 1_000_000

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[0-9][0-9 \-()]{6,19}$")


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


class AuthorizationError(Exception):
    """403-level: the actor's role does not allow the operation."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or not re.fullmatch(r"-?\d+", stripped):
                raise ValidationError(f"{col.key} must be an integer")
            return int(stripped)
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                errors=[{"field": f, "message": f"{f} is required"} for f in missing],
            )

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for required text fields
        if isinstance(col.type, (String, Text)) and (not col.nullable or k in required):
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank", errors=[{"field": k, "message": f"{k} cannot be blank"}])

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def require_positive_int(value: Any, field: str, *, maximum: int = MAX_LINE_QUANTITY) -> int:
    """Coerce a JSON value to a strictly positive int or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, str) and re.fullmatch(r"\d+", value.strip()):
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", errors=[{"field": field, "message": "must be an integer"}])
    if value <= 0:
        raise ValidationError(f"{field} must be > 0", errors=[{"field": field, "message": "must be > 0"}])
    if value > maximum:
        raise ValidationError(f"{field} cannot exceed {maximum}")
    return value


def non_string_errors(**fields: Any) -> list[dict]:
    """Error entries for supplied values that are not strings."""
    return [
        {"field": name, "message": f"{name} must be a string"}
        for name, value in fields.items()
        if value is not None and not isinstance(value, str)
    ]


def enforce_rules_registration(data: dict) -> dict:
    """Normalize and check the public registration payload."""
    errors = non_string_errors(email=data.get("email"), password=data.get("password"))
    if errors:
        raise ValidationError("Validation failed", errors=errors)

    email = str(data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    name = str(data.get("name") or "").strip()
    phone = data.get("phone")

    if not EMAIL_RE.match(email):
        errors.append({"field": "email", "message": "Please provide a valid email address"})
    if not password:
        errors.append({"field": "password", "message": "Password is required"})
    if len(name) < 2 or len(name) > 100:
        errors.append({"field": "name", "message": "Name must be between 2 and 100 characters"})
    if phone is not None and str(phone).strip():
        phone = str(phone).strip()
        if not PHONE_RE.match(phone):
            errors.append({"field": "phone", "message": "Please provide a valid phone number"})
    else:
        phone = None

    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return {"email": email, "password": password, "name": name, "phone": phone}


def enforce_rules_profile(data: dict) -> dict:
    errors = []
    patch: dict = {}
    if "name" in data:
        name = str(data.get("name") or "").strip()
        if len(name) < 2 or len(name) > 100:
            errors.append({"field": "name", "message": "Name must be between 2 and 100 characters"})
        patch["name"] = name
    if "phone" in data:
        phone = data.get("phone")
        if phone is not None and str(phone).strip():
            phone = str(phone).strip()
            if not PHONE_RE.match(phone):
                errors.append({"field": "phone", "message": "Please provide a valid phone number"})
            patch["phone"] = phone
        else:
            patch["phone"] = None
    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return patch


def enforce_rules_product_price(price: Any, field: str = "price") -> None:
    if not isinstance(price, int) or isinstance(price, bool):
        raise ValidationError(f"{field} must be an integer")
    if price < 0:
        raise ValidationError(f"{field} must be >= 0")
    if price > MAX_PRICE:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE}")


def parse_cart_lines(raw: Any) -> list[tuple[int, int]]:
    """
    Parse [{"product_id": .., "quantity": ..}] into (product_id, quantity) pairs.
    """
    if not isinstance(raw, list):
        raise ValidationError("items must be a list")
    lines = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{i}] must be an object")
        product_id = item.get("product_id", item.get("productId"))
        quantity = item.get("quantity", item.get("qty"))
        lines.append((
            require_positive_int(product_id, f"items[{i}].product_id", maximum=2**31 - 1),
            require_positive_int(quantity, f"items[{i}].quantity"),
        ))
    return lines
