# backend/storefront/config.py
from __future__ import annotations
import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else default


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///storefront.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Kara catalog source
    KARA_API_URL = os.environ.get("KARA_API_URL", "http://localhost:3001/api")
    KARA_API_KEY = os.environ.get("KARA_API_KEY", "")
    KARA_TIMEOUT_SECONDS = _env_float("KARA_TIMEOUT_SECONDS", 30.0)

    # Admin routes (sync trigger, order status) are disabled while this is empty
    ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY", "")

    # Pricing defaults; system_settings rows override these at call time
    TAX_RATE = _env_float("TAX_RATE", 0.09)
    FREE_SHIPPING_THRESHOLD = _env_int("FREE_SHIPPING_THRESHOLD", 200_000)
    BULK_DISCOUNT_THRESHOLD = _env_int("BULK_DISCOUNT_THRESHOLD", 1_000_000)
    BULK_DISCOUNT_RATE = _env_float("BULK_DISCOUNT_RATE", 0.05)
    B2B_MIN_ORDER = _env_int("B2B_MIN_ORDER", 500_000)
    B2C_MIN_ORDER = _env_int("B2C_MIN_ORDER", 50_000)

    # method -> user class -> flat cost
    SHIPPING_RATES = {
        "standard": {"b2b": 0, "b2c": 25_000},
        "express": {"b2b": 50_000, "b2c": 45_000},
        "pickup": {"b2b": 0, "b2c": 0},
    }

    MAX_PRODUCT_QUANTITY = 1000
    MAX_CART_ITEMS = 100
