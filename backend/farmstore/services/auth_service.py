# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication service

WHY: Every buyer action must be attributable. Uses bcrypt for password
hashing and validates password strength on register and change-password.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, 12 by default)
- Minimum 8 characters; upper, lower, digit and special char required
- One live refresh token per user (hash stored); logout revokes it
- Inactive users cannot log in or refresh
"""

from __future__ import annotations

import hmac
import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..models.auth import CLASSIFICATION_RETAIL, ROLE_USER
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_profile,
    enforce_rules_registration,
    non_string_errors,
    validate_payload,
)
from farmstore.time_utils import utcnow
from . import token_service
from .token_service import TokenError


_SPECIAL_CHARS = r"[@$!%*?&#^()_+\-=\[\]{};':\"\\|,.<>/]"

# Buyers may edit only these; classification and role have their own workflows
PROFILE_POLICY = ModelValidationPolicy(writable_fields={"name", "phone"})


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


class AuthError(Exception):
    """401-level: bad credentials, deactivated account or unusable refresh token."""
    pass


def password_strength_errors(password: str) -> list[str]:
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not re.search(_SPECIAL_CHARS, password):
        errors.append("Password must contain at least one special character")
    return errors


def validate_password_strength(password: str) -> None:
    errors = password_strength_errors(password or "")
    if errors:
        raise PasswordValidationError(", ".join(errors), errors=errors)


def hash_password(password: str) -> str:
    """Validate strength, then bcrypt-hash. Returned as str for storage."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config["BCRYPT_ROUNDS"])
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _start_session(user: User) -> tuple[str, str]:
    """Issue a token pair and make the new refresh token the only valid one. Does not commit."""
    access_token, refresh_token = token_service.issue_token_pair(user)
    user.refresh_token_hash = token_service.hash_token(refresh_token)
    return access_token, refresh_token


def create_user(
    email: str,
    password: str,
    name: str | None = None,
    phone: str | None = None,
    role: str = ROLE_USER,
) -> User:
    """Create a user (retail classification). Raises ConflictError on duplicate email."""
    email = email.strip().lower()
    if db.session.query(User.id).filter_by(email=email).first() is not None:
        raise ConflictError("User with this email already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        phone=phone,
        classification=CLASSIFICATION_RETAIL,
        role=role,
    )
    db.session.add(user)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("User with this email already exists")
    return user


def register(data: dict) -> tuple[User, str, str]:
    fields = enforce_rules_registration(data)
    user = create_user(
        email=fields["email"],
        password=fields["password"],
        name=fields["name"],
        phone=fields["phone"],
    )
    user.last_login_at = utcnow()
    access_token, refresh_token = _start_session(user)
    db.session.commit()
    return user, access_token, refresh_token


def authenticate(email: str, password: str) -> User | None:
    """Return the active user for these credentials, or None."""
    if not isinstance(email, str) or not isinstance(password, str):
        return None
    user = db.session.query(User).filter_by(email=(email or "").strip().lower()).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password or "", user.password_hash):
        return None
    return user


def login(email: str, password: str) -> tuple[User, str, str]:
    errors = non_string_errors(email=email, password=password)
    if errors:
        raise ValidationError("Email and password must be strings", errors=errors)
    user = db.session.query(User).filter_by(email=(email or "").strip().lower()).first()
    if user and not user.is_active:
        raise AuthError("Account is deactivated. Please contact support.")
    if not authenticate(email, password):
        raise AuthError("Invalid email or password")

    user.last_login_at = utcnow()
    access_token, refresh_token = _start_session(user)
    db.session.commit()
    return user, access_token, refresh_token


def refresh(refresh_token: str) -> tuple[User, str, str]:
    """
    Exchange a refresh token for a new pair (rotation).

    The presented token must be the one stored for the user; a replayed
    older token or one revoked by logout is rejected.
    """
    try:
        claims = token_service.decode_refresh_token(refresh_token)
    except TokenError as exc:
        raise AuthError(str(exc))

    user = db.session.get(User, claims["userId"])
    if not user or not user.refresh_token_hash:
        raise AuthError("Invalid refresh token")
    if not hmac.compare_digest(user.refresh_token_hash, token_service.hash_token(refresh_token)):
        raise AuthError("Invalid refresh token")
    if not user.is_active:
        raise AuthError("Account is deactivated")

    access_token, new_refresh_token = _start_session(user)
    db.session.commit()
    return user, access_token, new_refresh_token


def logout(user: User) -> None:
    user.refresh_token_hash = None
    db.session.commit()


def update_profile(user: User, data: dict) -> User:
    patch = validate_payload(model=User, payload=data, policy=PROFILE_POLICY, partial=True)
    patch = enforce_rules_profile(patch)
    for key, value in patch.items():
        setattr(user, key, value)
    db.session.commit()
    return user


def change_password(user: User, current_password: str, new_password: str) -> None:
    errors = non_string_errors(currentPassword=current_password, newPassword=new_password)
    if errors:
        raise ValidationError("Passwords must be strings", errors=errors)
    if not current_password or not new_password:
        raise ValidationError(
            "Current password and new password are required",
            errors=[
                {"field": f, "message": f"{f} is required"}
                for f, v in (("currentPassword", current_password), ("newPassword", new_password))
                if not v
            ],
        )
    if not verify_password(current_password, user.password_hash):
        raise AuthError("Current password is incorrect")
    if new_password == current_password:
        raise ValidationError(
            "New password must be different from current password",
            errors=[{"field": "newPassword", "message": "must differ from current password"}],
        )
    user.password_hash = hash_password(new_password)
    db.session.commit()
