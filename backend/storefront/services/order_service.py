# Overview: Order assembly from carts, order lifecycle (status transitions, cancellation) and listing.

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

from flask import current_app
from sqlalchemy import update
from sqlalchemy.orm.exc import StaleDataError

from .. import messages
from ..extensions import db
from ..identity import Identity, identity_filter
from ..models import Order, OrderItem
from ..models.orders import ORDER_STATUSES, PAYMENT_METHODS
from ..time_utils import utcnow
from ..validation import (
    BusinessRuleError,
    NotFoundError,
    ValidationError,
    coerce_int,
    coerce_positive_int,
    money_to_json,
)
from .cart_service import clear_cart, get_cart, summarize_lines
from .concurrency import run_with_retry
from .inventory_service import release, reserve
from .pricing_service import user_class_for_identity
from .sequence_service import next_order_number
"""
Order lifecycle

    pending -> confirmed -> processing -> shipped -> delivered -> returned
       |           |            |
       +-----------+------------+--> cancelled

- Totals and item snapshots (name, SKU, unit price) are written once at
  creation and never recomputed.
- Unit prices come from the cart line snapshot, not a fresh catalog lookup.
- Header, items, inventory reservation and cart clearing commit together.
  Insufficient stock aborts the whole order and leaves the cart intact.
- Cancelling releases the reserved quantity of every item.
"""


TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": {"returned"},
    "cancelled": set(),
    "returned": set(),
}

CANCELLABLE_STATUSES = {"pending", "confirmed", "processing"}

MAX_PAGE_SIZE = 100


def _clean(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _validate_checkout_input(customer_info: dict | None, payment_method, shipping_method) -> tuple[dict, str, str]:
    customer_info = customer_info or {}
    if not isinstance(customer_info, dict):
        raise ValidationError(messages.CUSTOMER_INFO_REQUIRED)
    if not _clean(customer_info.get("name")) or not _clean(customer_info.get("phone")):
        raise ValidationError(messages.CUSTOMER_INFO_REQUIRED)

    payment_method = _clean(payment_method) or "cash"
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(messages.INVALID_PAYMENT_METHOD)

    shipping_method = _clean(shipping_method) or "standard"
    if shipping_method not in (current_app.config.get("SHIPPING_RATES") or {}):
        raise ValidationError(messages.INVALID_SHIPPING_METHOD)
    return customer_info, payment_method, shipping_method


def create_order(
    identity: Identity,
    customer_info: dict,
    shipping_info: dict | None = None,
    payment_method: str | None = None,
    shipping_method: str | None = None,
) -> Order:
    """
    Turn the identity's cart into an order.

    All-or-nothing: on any failure nothing is persisted and the cart is kept.
    """
    customer_info, payment_method, shipping_method = _validate_checkout_input(
        customer_info, payment_method, shipping_method
    )
    shipping_info = shipping_info or {}

    def _op() -> Order:
        lines = get_cart(identity)
        if not lines:
            raise BusinessRuleError(messages.EMPTY_CART)
        for line in lines:
            if line.product is None or not line.product.is_active:
                raise NotFoundError(messages.PRODUCT_NOT_FOUND, details={"product_id": line.product_id})

        user_class = user_class_for_identity(identity)
        snapshot = summarize_lines(lines, user_class, shipping_method=shipping_method)
        summary = snapshot.summary
        if not summary.can_checkout:
            raise BusinessRuleError(
                messages.BELOW_MIN_ORDER.format(min_amount=money_to_json(summary.min_order_amount)),
                details={
                    "subtotal": money_to_json(summary.subtotal),
                    "min_order_amount": money_to_json(summary.min_order_amount),
                },
            )

        # Allocated first: a lost insert race on the counter rolls back the session
        order_number = next_order_number()

        order = Order(
            **identity.column_values,
            order_number=order_number,
            status="pending",
            order_type=user_class,
            customer_name=_clean(customer_info.get("name")),
            customer_email=_clean(customer_info.get("email")),
            customer_phone=_clean(customer_info.get("phone")),
            customer_company=_clean(customer_info.get("company")),
            customer_tax_id=_clean(customer_info.get("tax_id")),
            shipping_address=_clean(shipping_info.get("address")) or _clean(customer_info.get("address")) or "",
            shipping_city=_clean(shipping_info.get("city")),
            shipping_postal_code=_clean(shipping_info.get("postal_code")),
            shipping_notes=_clean(shipping_info.get("notes")),
            shipping_method=shipping_method,
            total_items=snapshot.total_quantity,
            total_weight=snapshot.total_weight,
            subtotal=summary.subtotal,
            discount_amount=summary.discount_amount,
            tax_amount=summary.tax_amount,
            shipping_cost=summary.shipping_cost,
            total_amount=summary.total_amount,
            payment_method=payment_method,
            payment_status="pending",
        )
        quantities: dict[int, int] = defaultdict(int)
        for line in lines:
            unit_price = Decimal(line.unit_price)
            order.items.append(
                OrderItem(
                    product_id=line.product_id,
                    product_kara_id=line.product.kara_id,
                    product_name=line.product.name,
                    product_sku=line.product.sku,
                    quantity=line.quantity,
                    price_type=line.price_type,
                    unit_price=unit_price,
                    total_price=unit_price * line.quantity,
                )
            )
            quantities[line.product_id] += line.quantity

        try:
            db.session.add(order)
            db.session.flush()
            for product_id in sorted(quantities):
                reserve(product_id, quantities[product_id], commit=False)
            clear_cart(identity, commit=False)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(
            "Created order %s (%s items, total %s)", order.order_number, order.total_items, order.total_amount
        )
        return order

    return run_with_retry(_op)


def get_order(order_id, identity: Identity | None = None) -> Order:
    """Load an order; with an identity, orders of other owners are reported as missing."""
    if order_id in (None, ""):
        raise ValidationError(messages.ORDER_ID_REQUIRED)
    order_id = coerce_positive_int(order_id, "order_id")
    query = db.session.query(Order).filter(Order.id == order_id)
    if identity is not None:
        query = query.filter(identity_filter(Order, identity))
    order = query.first()
    if order is None:
        raise NotFoundError(messages.ORDER_NOT_FOUND, details={"order_id": order_id})
    return order


def list_orders(
    identity: Identity | None = None,
    *,
    status: str | None = None,
    page=1,
    limit=10,
) -> tuple[list[Order], int]:
    """Newest first. Returns (orders, total matching)."""
    page = coerce_int(page, "page")
    limit = coerce_int(limit, "limit")
    if page < 1:
        raise ValidationError("page must be at least 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

    query = db.session.query(Order)
    if identity is not None:
        query = query.filter(identity_filter(Order, identity))
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError(messages.INVALID_STATUS)
        query = query.filter(Order.status == status)

    total = query.count()
    orders = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return orders, total


def _release_items(order: Order) -> None:
    quantities: dict[int, int] = defaultdict(int)
    for item in order.items:
        if item.product_id is not None:
            quantities[item.product_id] += item.quantity
    for product_id in sorted(quantities):
        try:
            release(product_id, quantities[product_id], commit=False)
        except NotFoundError:
            current_app.logger.warning(
                "Order %s: no inventory rows left for product %s; nothing released",
                order.order_number,
                product_id,
            )


def cancel_order(order_id) -> Order:
    """
    Cancel a pending/confirmed/processing order and release its stock.

    The status change is a conditional UPDATE on (status, version_id), so two
    concurrent cancels cannot both release inventory.
    """
    def _op() -> Order:
        order = get_order(order_id)
        if order.status == "cancelled":
            raise BusinessRuleError(messages.ORDER_ALREADY_CANCELLED)
        if order.status not in CANCELLABLE_STATUSES:
            raise BusinessRuleError(messages.ORDER_NOT_CANCELLABLE)

        try:
            result = db.session.execute(
                update(Order)
                .where(
                    Order.id == order.id,
                    Order.status == order.status,
                    Order.version_id == order.version_id,
                )
                .values(status="cancelled", cancelled_at=utcnow(), version_id=Order.version_id + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise StaleDataError(f"Order {order.id} changed while cancelling")
            _release_items(order)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        db.session.refresh(order)
        current_app.logger.info("Cancelled order %s", order.order_number)
        return order

    return run_with_retry(_op)


def update_status(order_id, new_status, *, tracking_number: str | None = None) -> Order:
    """
    Move an order along the transition table.

    Setting "cancelled" goes through cancel_order so stock is released.
    """
    new_status = _clean(new_status)
    if not new_status or new_status not in ORDER_STATUSES:
        raise ValidationError(messages.INVALID_STATUS)
    if new_status == "cancelled":
        return cancel_order(order_id)

    def _op() -> Order:
        order = get_order(order_id)
        if new_status not in TRANSITIONS.get(order.status, set()):
            raise BusinessRuleError(
                messages.INVALID_TRANSITION.format(current=order.status, target=new_status),
                details={"current": order.status, "target": new_status},
            )

        now = utcnow()
        order.status = new_status
        if new_status == "shipped":
            order.shipped_at = now
            if tracking_number:
                order.tracking_number = str(tracking_number).strip()
        elif new_status == "delivered":
            order.delivered_at = now

        # version_id_col turns a concurrent change into StaleDataError -> retry
        db.session.commit()
        current_app.logger.info("Order %s -> %s", order.order_number, new_status)
        return order

    return run_with_retry(_op)
