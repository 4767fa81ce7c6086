# Overview: Signs and verifies JWT access/refresh tokens (PyJWT, HS256).

"""
Signed token service

Access tokens are short lived and carry {userId, email, role, userType}.
Refresh tokens carry the same claims, are signed with a separate secret
and are single-use: the user row stores only the SHA-256 of the current
one, and every refresh replaces it.

SECURITY NOTES:
- iss/aud are verified on decode
- the `type` claim stops a refresh token being replayed as an access token
- `jti` makes two tokens issued in the same second distinct
- claims are informational; authorization always re-reads the user row
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ..models import User


TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


class TokenError(Exception):
    """Raised when a token is missing, malformed, expired or of the wrong type."""
    pass


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: signed tokens are already high-entropy.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _secret(token_type: str) -> str:
    if token_type == TOKEN_TYPE_ACCESS:
        return current_app.config["JWT_ACCESS_SECRET"]
    return current_app.config["JWT_REFRESH_SECRET"]


def _lifetime(token_type: str) -> timedelta:
    if token_type == TOKEN_TYPE_ACCESS:
        return timedelta(minutes=current_app.config["JWT_ACCESS_EXPIRES_MINUTES"])
    return timedelta(days=current_app.config["JWT_REFRESH_EXPIRES_DAYS"])


def _issue(user: User, token_type: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user.id,
        "email": user.email,
        "role": user.role,
        "userType": user.classification,
        "type": token_type,
        "jti": secrets.token_hex(16),
        "iss": current_app.config["JWT_ISSUER"],
        "aud": current_app.config["JWT_AUDIENCE"],
        "iat": now,
        "exp": now + _lifetime(token_type),
    }
    return jwt.encode(payload, _secret(token_type), algorithm=current_app.config["JWT_ALGORITHM"])


def issue_access_token(user: User) -> str:
    return _issue(user, TOKEN_TYPE_ACCESS)


def issue_refresh_token(user: User) -> str:
    return _issue(user, TOKEN_TYPE_REFRESH)


def issue_token_pair(user: User) -> tuple[str, str]:
    return issue_access_token(user), issue_refresh_token(user)


def _decode(token: str, token_type: str) -> dict:
    if not token:
        raise TokenError("Token is required")
    try:
        claims = jwt.decode(
            token,
            _secret(token_type),
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            audience=current_app.config["JWT_AUDIENCE"],
            issuer=current_app.config["JWT_ISSUER"],
            options={"require": ["exp", "iat", "iss", "aud"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError:
        raise TokenError("Invalid token")

    if claims.get("type") != token_type:
        raise TokenError("Invalid token type")
    if not isinstance(claims.get("userId"), int):
        raise TokenError("Invalid token")
    return claims


def decode_access_token(token: str) -> dict:
    return _decode(token, TOKEN_TYPE_ACCESS)


def decode_refresh_token(token: str) -> dict:
    return _decode(token, TOKEN_TYPE_REFRESH)
