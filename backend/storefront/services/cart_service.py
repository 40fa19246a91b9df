# Overview: Cart aggregation per identity; merge-by-(product, tier), quantity rules and totals.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from .. import messages
from ..extensions import db
from ..identity import Identity, identity_filter
from ..models import CartItem, Product, ProductPrice
from ..validation import (
    BusinessRuleError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    coerce_int,
    coerce_positive_int,
    money_to_json,
)
from .inventory_service import get_available_quantities, get_available_quantity
from .pricing_service import (
    PRICE_TYPES,
    PricingSummary,
    calculate_totals,
    resolve_price_for_tier,
    shipping_cost_for,
    tier_for_user_class,
    user_class_for_identity,
)
from .settings_service import get_pricing_policy


@dataclass(frozen=True)
class CartSnapshot:
    user_class: str
    items: list
    total_quantity: int
    total_weight: Decimal
    summary: PricingSummary

    def to_dict(self) -> dict:
        return {
            "user_class": self.user_class,
            "items": [item.to_dict() for item in self.items],
            "total_quantity": self.total_quantity,
            "total_weight": money_to_json(self.total_weight),
            "summary": self.summary.to_dict(),
        }


def _load_product(product_id) -> Product:
    if product_id in (None, ""):
        raise ValidationError(messages.PRODUCT_ID_REQUIRED)
    product_id = coerce_positive_int(product_id, "product_id")
    product = db.session.get(Product, product_id)
    if product is None or not product.is_active:
        raise NotFoundError(messages.PRODUCT_NOT_FOUND, details={"product_id": product_id})
    return product


def _resolve_tier(user_class: str, price_type: str | None) -> str:
    if price_type in (None, ""):
        return tier_for_user_class(user_class)
    price_type = str(price_type).strip().lower()
    if price_type not in PRICE_TYPES:
        raise ValidationError(messages.INVALID_PRICE_TYPE)
    if price_type == "wholesale" and user_class != "b2b":
        raise BusinessRuleError(messages.WHOLESALE_NOT_ALLOWED)
    return price_type


def _price_for(product: Product, price_type: str, quantity: int) -> ProductPrice:
    row = resolve_price_for_tier(product.prices, price_type, quantity=quantity)
    if row is None:
        raise BusinessRuleError(messages.PRICE_UNAVAILABLE, details={"product_id": product.id})
    return row


def _validate_line(product: Product, price_row: ProductPrice, quantity: int, available: int) -> None:
    """Line-level rules, checked on every add, merge and update."""
    ceiling = int(current_app.config.get("MAX_PRODUCT_QUANTITY", 1000))
    if product.max_order_quantity:
        ceiling = min(ceiling, product.max_order_quantity)
    if quantity > ceiling:
        raise BusinessRuleError(messages.ABOVE_PRODUCT_MAXIMUM.format(max_quantity=ceiling))

    if product.min_order_quantity and quantity < product.min_order_quantity:
        raise BusinessRuleError(messages.BELOW_PRODUCT_MINIMUM.format(min_quantity=product.min_order_quantity))

    # Wholesale floor is rejected, never clamped
    if price_row.price_type == "wholesale" and quantity < price_row.min_quantity:
        raise BusinessRuleError(
            messages.BELOW_TIER_MINIMUM.format(min_quantity=price_row.min_quantity),
            details={"min_quantity": price_row.min_quantity},
        )

    if quantity > available:
        raise InsufficientStockError(
            messages.INSUFFICIENT_STOCK.format(available=available),
            product_id=product.id,
            requested=quantity,
            available=available,
        )


def _find_line(identity: Identity, product_id: int, price_type: str) -> CartItem | None:
    return (
        db.session.query(CartItem)
        .filter(identity_filter(CartItem, identity))
        .filter(CartItem.product_id == product_id, CartItem.price_type == price_type)
        .populate_existing()
        .first()
    )


def _line_count(identity: Identity) -> int:
    return db.session.query(func.count(CartItem.id)).filter(identity_filter(CartItem, identity)).scalar() or 0


def get_cart(identity: Identity) -> list[CartItem]:
    return (
        db.session.query(CartItem)
        .filter(identity_filter(CartItem, identity))
        .order_by(CartItem.created_at.asc(), CartItem.id.asc())
        .all()
    )


def _merge(line_id: int, product: Product, price_type: str, quantity: int) -> CartItem:
    """
    Add `quantity` to an existing line.

    The increment is one UPDATE so concurrent adds cannot overwrite each
    other; the summed quantity is then re-validated and the transaction
    rolled back if it breaks a rule.
    """
    try:
        db.session.execute(
            update(CartItem)
            .where(CartItem.id == line_id)
            .values(quantity=CartItem.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        line = db.session.query(CartItem).filter_by(id=line_id).populate_existing().one()
        price_row = _price_for(product, price_type, line.quantity)
        _validate_line(product, price_row, line.quantity, get_available_quantity(product.id))
        line.unit_price = price_row.price
        line.price_id = price_row.id
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return line


def add_item(identity: Identity, product_id, quantity, price_type: str | None = None) -> tuple[CartItem, bool]:
    """
    Add a product to the cart.

    Returns (line, merged). Adding an existing (product, tier) sums the
    quantities into the same line; the whole add fails if the sum breaks a
    rule, nothing is partially merged.
    """
    quantity = coerce_positive_int(quantity, "quantity")
    product = _load_product(product_id)
    user_class = user_class_for_identity(identity)
    price_type = _resolve_tier(user_class, price_type)

    existing = _find_line(identity, product.id, price_type)
    if existing is not None:
        return _merge(existing.id, product, price_type, quantity), True

    max_items = int(current_app.config.get("MAX_CART_ITEMS", 100))
    if _line_count(identity) >= max_items:
        raise BusinessRuleError(messages.CART_FULL.format(max_items=max_items))

    price_row = _price_for(product, price_type, quantity)
    _validate_line(product, price_row, quantity, get_available_quantity(product.id))

    line = CartItem(
        **identity.column_values,
        product_id=product.id,
        quantity=quantity,
        price_type=price_type,
        unit_price=price_row.price,
        price_id=price_row.id,
    )
    db.session.add(line)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent add created the line first; merge into it instead
        db.session.rollback()
        existing = _find_line(identity, product.id, price_type)
        if existing is None:
            raise
        return _merge(existing.id, product, price_type, quantity), True
    return line, False


def update_item(identity: Identity, product_id, quantity, price_type: str | None = None) -> CartItem | None:
    """
    Set a line's quantity; quantity <= 0 removes the line and returns None.

    The unit price snapshot is refreshed from the current catalog.
    """
    quantity = coerce_int(quantity, "quantity")
    if quantity <= 0:
        remove_item(identity, product_id, price_type)
        return None

    product = _load_product(product_id)
    user_class = user_class_for_identity(identity)
    price_type = _resolve_tier(user_class, price_type)

    line = _find_line(identity, product.id, price_type)
    if line is None:
        raise NotFoundError(messages.CART_ITEM_NOT_FOUND, details={"product_id": product.id})

    price_row = _price_for(product, price_type, quantity)
    _validate_line(product, price_row, quantity, get_available_quantity(product.id))

    line.quantity = quantity
    line.unit_price = price_row.price
    line.price_id = price_row.id
    db.session.commit()
    return line


def remove_item(identity: Identity, product_id, price_type: str | None = None) -> int:
    """Delete the identity's lines for a product (one tier, or all tiers)."""
    if product_id in (None, ""):
        raise ValidationError(messages.PRODUCT_ID_REQUIRED)
    product_id = coerce_positive_int(product_id, "product_id")
    query = db.session.query(CartItem).filter(identity_filter(CartItem, identity)).filter(
        CartItem.product_id == product_id
    )
    if price_type not in (None, ""):
        if price_type not in PRICE_TYPES:
            raise ValidationError(messages.INVALID_PRICE_TYPE)
        query = query.filter(CartItem.price_type == price_type)
    deleted = query.delete(synchronize_session=False)
    db.session.commit()
    return deleted


def clear_cart(identity: Identity, *, commit: bool = True) -> int:
    deleted = (
        db.session.query(CartItem)
        .filter(identity_filter(CartItem, identity))
        .delete(synchronize_session=False)
    )
    if commit:
        db.session.commit()
    return deleted


def summarize_lines(
    lines: list[CartItem],
    user_class: str,
    *,
    shipping_method: str | None = None,
) -> CartSnapshot:
    policy = get_pricing_policy()
    subtotal = sum((Decimal(line.unit_price) * line.quantity for line in lines), Decimal("0"))
    total_weight = sum(
        (Decimal(line.product.weight or 0) * line.quantity for line in lines if line.product is not None),
        Decimal("0"),
    )
    shipping = Decimal("0")
    if shipping_method:
        shipping = shipping_cost_for(shipping_method, user_class, subtotal, policy)
    summary = calculate_totals(
        subtotal,
        user_class,
        item_count=len(lines),
        shipping_cost=shipping,
        policy=policy,
    )
    return CartSnapshot(
        user_class=user_class,
        items=lines,
        total_quantity=sum(line.quantity for line in lines),
        total_weight=total_weight,
        summary=summary,
    )


def summarize(identity: Identity, *, shipping_method: str | None = None) -> CartSnapshot:
    return summarize_lines(get_cart(identity), user_class_for_identity(identity), shipping_method=shipping_method)


def availability_for_cart(identity: Identity) -> dict[int, int]:
    lines = get_cart(identity)
    return get_available_quantities(sorted({line.product_id for line in lines}))
