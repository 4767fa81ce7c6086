# backend/farmstore/config.py
from __future__ import annotations
import os


DEFAULT_ACCESS_SECRET = "access-secret-key"
DEFAULT_REFRESH_SECRET = "refresh-secret-key"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/farmstore.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///farmstore.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Signed token settings (access tokens are short lived, refresh tokens rotate)
    JWT_ACCESS_SECRET = os.environ.get("JWT_ACCESS_SECRET", DEFAULT_ACCESS_SECRET)
    JWT_REFRESH_SECRET = os.environ.get("JWT_REFRESH_SECRET", DEFAULT_REFRESH_SECRET)
    JWT_ACCESS_EXPIRES_MINUTES = _int_env("JWT_ACCESS_EXPIRES_MINUTES", 15)
    JWT_REFRESH_EXPIRES_DAYS = _int_env("JWT_REFRESH_EXPIRES_DAYS", 7)
    JWT_ISSUER = os.environ.get("JWT_ISSUER", "kuyashfarm-api")
    JWT_AUDIENCE = os.environ.get("JWT_AUDIENCE", "kuyashfarm-client")
    JWT_ALGORITHM = "HS256"

    REFRESH_COOKIE_NAME = "refreshToken"
    REFRESH_COOKIE_SECURE = os.environ.get("FLASK_ENV", "development") == "production"

    BCRYPT_ROUNDS = _int_env("BCRYPT_ROUNDS", 12)

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get("CORS_ORIGIN", "http://localhost:3000").split(",")
        if origin.strip()
    ]

    # Checkout policy, all amounts in whole Naira
    FREE_SHIPPING_THRESHOLD = _int_env("FREE_SHIPPING_THRESHOLD", 50_000)
    FLAT_SHIPPING_FEE = _int_env("FLAT_SHIPPING_FEE", 2_500)
    VAT_RATE_BPS = _int_env("VAT_RATE_BPS", 800)  # 8.00%

    # Newest N notifications kept per audience
    NOTIFICATION_RETENTION = _int_env("NOTIFICATION_RETENTION", 100)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
