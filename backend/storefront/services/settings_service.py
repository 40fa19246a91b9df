# Overview: Store-wide settings; resolves pricing policy from app config overridden by system_settings rows.

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import SystemSetting
from ..validation import ValidationError, coerce_decimal


# setting key -> app config key
PRICING_KEYS = {
    "tax_rate": "TAX_RATE",
    "free_shipping_threshold": "FREE_SHIPPING_THRESHOLD",
    "bulk_discount_threshold": "BULK_DISCOUNT_THRESHOLD",
    "bulk_discount_rate": "BULK_DISCOUNT_RATE",
    "b2b_min_order": "B2B_MIN_ORDER",
    "b2c_min_order": "B2C_MIN_ORDER",
}

RATE_KEYS = {"tax_rate", "bulk_discount_rate"}

# Seeded by `flask system init`
DEFAULT_SETTINGS = [
    {"key": "tax_rate", "value": 0.09, "description": "نرخ مالیات بر ارزش افزوده", "is_public": True},
    {"key": "free_shipping_threshold", "value": 200_000, "description": "حداقل مبلغ برای ارسال رایگان", "is_public": True},
    {"key": "b2b_min_order", "value": 500_000, "description": "حداقل مبلغ سفارش عمده", "is_public": True},
    {"key": "b2c_min_order", "value": 50_000, "description": "حداقل مبلغ سفارش خرده", "is_public": True},
    {"key": "bulk_discount_threshold", "value": 1_000_000, "description": "آستانه تخفیف حجمی عمده", "is_public": False},
    {"key": "bulk_discount_rate", "value": 0.05, "description": "نرخ تخفیف حجمی عمده", "is_public": False},
]


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = Decimal("0.09")
    free_shipping_threshold: Decimal = Decimal("200000")
    bulk_discount_threshold: Decimal = Decimal("1000000")
    bulk_discount_rate: Decimal = Decimal("0.05")
    b2b_min_order: Decimal = Decimal("500000")
    b2c_min_order: Decimal = Decimal("50000")
    shipping_rates: dict = field(default_factory=dict)

    def min_order_for(self, user_class: str) -> Decimal:
        return self.b2b_min_order if user_class == "b2b" else self.b2c_min_order


def _normalize(key: str, value: Any) -> Decimal:
    number = coerce_decimal(value, key)
    if number < 0:
        raise ValidationError(f"{key} must not be negative")
    if key in RATE_KEYS and number > 1:
        raise ValidationError(f"{key} must be a fraction between 0 and 1")
    return number


def get_setting(key: str, default: Any = None) -> Any:
    row = db.session.query(SystemSetting).filter_by(key=key).first()
    if row is None or row.value_json is None:
        return default
    return row.value_json


def list_settings(*, public_only: bool = False) -> list[dict]:
    query = db.session.query(SystemSetting)
    if public_only:
        query = query.filter(SystemSetting.is_public.is_(True))
    return [row.to_dict() for row in query.order_by(SystemSetting.key.asc()).all()]


def set_setting(
    key: str,
    value: Any,
    *,
    description: str | None = None,
    is_public: bool | None = None,
    commit: bool = True,
) -> SystemSetting:
    """Upsert one setting; pricing keys are validated before they are stored."""
    if not key or not str(key).strip():
        raise ValidationError("key is required")
    key = str(key).strip()
    if key in PRICING_KEYS:
        # JSON keeps numbers; Decimal is not JSON serializable
        normalized = _normalize(key, value)
        value = float(normalized) if key in RATE_KEYS else int(normalized)

    row = db.session.query(SystemSetting).filter_by(key=key).first()
    if row is None:
        row = SystemSetting(key=key)
        db.session.add(row)
    row.value_json = value
    if description is not None:
        row.description = description
    if is_public is not None:
        row.is_public = bool(is_public)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return row


def seed_default_settings() -> int:
    """Insert missing default rows; existing values are left alone."""
    existing = {key for (key,) in db.session.query(SystemSetting.key).all()}
    created = 0
    for spec in DEFAULT_SETTINGS:
        if spec["key"] in existing:
            continue
        db.session.add(
            SystemSetting(
                key=spec["key"],
                value_json=spec["value"],
                description=spec["description"],
                is_public=spec["is_public"],
            )
        )
        created += 1
    if created:
        db.session.commit()
    return created


def get_pricing_policy() -> PricingPolicy:
    """
    Resolve pricing inputs at call time.

    Precedence: system_settings row > app config. Malformed stored values are
    ignored with a warning so checkout keeps working on config defaults.
    """
    config = current_app.config
    values: dict[str, Decimal] = {
        key: _normalize(key, config[config_key]) for key, config_key in PRICING_KEYS.items()
    }

    rows = db.session.query(SystemSetting).filter(SystemSetting.key.in_(list(PRICING_KEYS))).all()
    for row in rows:
        if row.value_json is None:
            continue
        try:
            values[row.key] = _normalize(row.key, row.value_json)
        except ValidationError as exc:
            current_app.logger.warning("Ignoring setting %s=%r: %s", row.key, row.value_json, exc.message)

    return PricingPolicy(shipping_rates=dict(config.get("SHIPPING_RATES") or {}), **values)
