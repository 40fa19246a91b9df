# Overview: Price tier resolution and cart/order totals (bulk discount, tax, shipping, checkout gate).

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from .. import messages
from ..extensions import db
from ..identity import Identity, RegisteredIdentity
from ..models import Profile, ProductPrice
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import ValidationError, money_to_json
from .settings_service import PricingPolicy, get_pricing_policy


USER_CLASSES = ("b2b", "b2c")
PRICE_TYPES = ("wholesale", "retail")

_TIER_BY_CLASS = {"b2b": "wholesale", "b2c": "retail"}

WHOLE_UNIT = Decimal("1")
ZERO = Decimal("0")


def normalize_user_class(user_type: str | None) -> str:
    """Map a profile user_type onto a pricing class; admins and unknowns buy at retail."""
    return "b2b" if (user_type or "").strip().lower() == "b2b" else "b2c"


def tier_for_user_class(user_class: str) -> str:
    return _TIER_BY_CLASS[normalize_user_class(user_class)]


def user_class_for_identity(identity: Identity) -> str:
    if isinstance(identity, RegisteredIdentity):
        user_type = db.session.query(Profile.user_type).filter_by(id=identity.user_id).scalar()
        return normalize_user_class(user_type)
    return "b2c"


def round_currency(amount: Decimal) -> Decimal:
    """Whole currency units, half-up (Rial/Toman have no displayed sub-units)."""
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def _is_effective(row: ProductPrice, now: datetime) -> bool:
    if not row.is_active:
        return False
    starts = parse_iso_datetime(row.effective_from)
    ends = parse_iso_datetime(row.effective_to)
    if starts is not None and starts > now:
        return False
    if ends is not None and ends <= now:
        return False
    return True


def effective_rows(
    rows: Iterable[ProductPrice],
    price_type: str,
    now: datetime | None = None,
) -> list[ProductPrice]:
    now = parse_iso_datetime(now) if now is not None else utcnow()
    return sorted(
        (row for row in rows if row.price_type == price_type and _is_effective(row, now)),
        key=lambda row: row.min_quantity,
    )


def resolve_price_for_tier(
    rows: Iterable[ProductPrice],
    price_type: str,
    quantity: int | None = None,
    now: datetime | None = None,
) -> Optional[ProductPrice]:
    """
    Pick the currently effective row of one tier.

    Without a quantity the entry row (lowest min_quantity) is returned. With a
    quantity, the highest volume break not above it; when the quantity is
    below every break the entry row is returned and the caller enforces the
    floor. None means unavailable, never zero-priced.
    """
    if price_type not in PRICE_TYPES:
        raise ValidationError(messages.INVALID_PRICE_TYPE)
    candidates = effective_rows(rows, price_type, now)
    if not candidates:
        return None
    if quantity is not None:
        qualifying = [row for row in candidates if row.min_quantity <= quantity]
        if qualifying:
            return qualifying[-1]
    return candidates[0]


def resolve_price(
    rows: Iterable[ProductPrice],
    user_class: str,
    quantity: int | None = None,
    now: datetime | None = None,
) -> Optional[ProductPrice]:
    return resolve_price_for_tier(rows, tier_for_user_class(user_class), quantity=quantity, now=now)


@dataclass(frozen=True)
class PricingSummary:
    subtotal: Decimal
    bulk_discount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    total_amount: Decimal
    free_shipping_remaining: Optional[Decimal]
    min_order_amount: Decimal
    can_checkout: bool
    item_count: int

    def to_dict(self) -> dict:
        return {
            "subtotal": money_to_json(self.subtotal),
            "bulk_discount": money_to_json(self.bulk_discount),
            "discount_amount": money_to_json(self.discount_amount),
            "taxable_amount": money_to_json(self.taxable_amount),
            "tax_amount": money_to_json(self.tax_amount),
            "shipping_cost": money_to_json(self.shipping_cost),
            "total_amount": money_to_json(self.total_amount),
            "free_shipping_remaining": money_to_json(self.free_shipping_remaining),
            "min_order_amount": money_to_json(self.min_order_amount),
            "can_checkout": self.can_checkout,
            "item_count": self.item_count,
        }


def calculate_totals(
    subtotal: Decimal | int,
    user_class: str,
    *,
    item_count: int,
    shipping_cost: Decimal | int = 0,
    policy: PricingPolicy | None = None,
) -> PricingSummary:
    """
    Totals for a cart/order subtotal.

    Order of application: bulk discount (b2b, subtotal strictly above the
    threshold) -> tax on (subtotal - discounts), rounded to whole units ->
    shipping added after tax.
    """
    policy = policy or get_pricing_policy()
    user_class = normalize_user_class(user_class)
    subtotal = Decimal(subtotal)
    shipping_cost = Decimal(shipping_cost)

    bulk_discount = ZERO
    if user_class == "b2b" and subtotal > policy.bulk_discount_threshold:
        bulk_discount = subtotal * policy.bulk_discount_rate

    discount_amount = bulk_discount
    taxable = subtotal - discount_amount
    tax_amount = round_currency(taxable * policy.tax_rate)
    total = taxable + tax_amount + shipping_cost

    free_shipping_remaining = None
    if user_class == "b2c":
        free_shipping_remaining = max(policy.free_shipping_threshold - subtotal, ZERO)

    min_order = policy.min_order_for(user_class)
    return PricingSummary(
        subtotal=subtotal,
        bulk_discount=bulk_discount,
        discount_amount=discount_amount,
        taxable_amount=taxable,
        tax_amount=tax_amount,
        shipping_cost=shipping_cost,
        total_amount=total,
        free_shipping_remaining=free_shipping_remaining,
        min_order_amount=min_order,
        can_checkout=item_count > 0 and subtotal >= min_order,
        item_count=item_count,
    )


def shipping_cost_for(
    method: str,
    user_class: str,
    subtotal: Decimal | int,
    policy: PricingPolicy | None = None,
) -> Decimal:
    """
    Flat cost per shipping method and user class.

    Consumer standard shipping is free once the subtotal reaches the
    free-shipping threshold.
    """
    policy = policy or get_pricing_policy()
    user_class = normalize_user_class(user_class)
    rates = policy.shipping_rates.get(method)
    if rates is None:
        raise ValidationError(messages.INVALID_SHIPPING_METHOD)
    if method == "standard" and user_class == "b2c" and Decimal(subtotal) >= policy.free_shipping_threshold:
        return ZERO
    return Decimal(str(rates.get(user_class, 0)))
