# Overview: Inventory ledger; available quantity, reservation and release across warehouse rows.

from __future__ import annotations

from flask import current_app
from sqlalchemy import case, func, update

from .. import messages
from ..extensions import db
from ..models import ProductInventory
from ..time_utils import utcnow
from ..validation import InsufficientStockError, NotFoundError, coerce_positive_int
"""
Inventory ledger invariants (authoritative)

- One ProductInventory row per (product, warehouse).
- available = quantity - reserved_quantity, per row; product availability is
  the sum over its warehouse rows.
- 0 <= reserved_quantity <= quantity always holds (enforced by check
  constraints and by every write below).
- reserve() never reads-then-writes: each warehouse decrement is a single
  conditional UPDATE guarded by quantity - reserved_quantity >= n. A guard
  miss means a concurrent reservation won; the whole reservation fails.
- release() floors reserved_quantity at zero. Releasing more than is
  reserved is logged as an anomaly and reported, never raised.
- Only the order assembler calls reserve/release; reconciliation replaces
  on-hand quantity but keeps reserved_quantity.
"""


_AVAILABLE = ProductInventory.quantity - ProductInventory.reserved_quantity


def _inventory_rows(product_id: int, order_by) -> list[ProductInventory]:
    return (
        db.session.query(ProductInventory)
        .filter(ProductInventory.product_id == product_id)
        .order_by(order_by, ProductInventory.id.asc())
        .populate_existing()
        .all()
    )


def get_available_quantity(product_id: int) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(_AVAILABLE), 0))
        .filter(ProductInventory.product_id == product_id)
        .scalar()
    )
    return max(int(total or 0), 0)


def get_available_quantities(product_ids: list[int]) -> dict[int, int]:
    if not product_ids:
        return {}
    rows = (
        db.session.query(ProductInventory.product_id, func.sum(_AVAILABLE))
        .filter(ProductInventory.product_id.in_(product_ids))
        .group_by(ProductInventory.product_id)
        .all()
    )
    found = {product_id: max(int(total or 0), 0) for product_id, total in rows}
    return {product_id: found.get(product_id, 0) for product_id in product_ids}


def reserve(product_id: int, quantity, *, commit: bool = True) -> list[dict]:
    """
    Reserve `quantity` units of a product, largest warehouse availability first.

    Raises InsufficientStockError without changing anything when the product
    does not have enough available stock. With commit=False the caller owns
    the transaction and must roll back on error.
    """
    quantity = coerce_positive_int(quantity, "quantity")
    rows = _inventory_rows(product_id, _AVAILABLE.desc())
    available = sum(max(row.quantity - row.reserved_quantity, 0) for row in rows)
    if available < quantity:
        raise InsufficientStockError(
            messages.INSUFFICIENT_STOCK.format(available=available),
            product_id=product_id,
            requested=quantity,
            available=available,
        )

    allocations: list[dict] = []
    remaining = quantity
    try:
        for row in rows:
            if remaining <= 0:
                break
            take = min(remaining, row.quantity - row.reserved_quantity)
            if take <= 0:
                continue
            result = db.session.execute(
                update(ProductInventory)
                .where(ProductInventory.id == row.id, _AVAILABLE >= take)
                .values(reserved_quantity=ProductInventory.reserved_quantity + take, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Lost a race against another reservation on this row
                current = get_available_quantity(product_id)
                raise InsufficientStockError(
                    messages.INSUFFICIENT_STOCK.format(available=current),
                    product_id=product_id,
                    requested=quantity,
                    available=current,
                )
            allocations.append({"warehouse_id": row.warehouse_kara_id, "quantity": take})
            remaining -= take
            db.session.expire(row)
    except Exception:
        if commit:
            db.session.rollback()
        raise

    if commit:
        db.session.commit()
    return allocations


def release(product_id: int, quantity, *, commit: bool = True) -> dict:
    """
    Return reserved units of a product to availability.

    Warehouses with the most reserved stock are released first. Over-release
    is floored at zero per row and reported in the result.
    """
    quantity = coerce_positive_int(quantity, "quantity")
    rows = _inventory_rows(product_id, ProductInventory.reserved_quantity.desc())
    if not rows:
        raise NotFoundError(messages.INVENTORY_NOT_FOUND, details={"product_id": product_id})

    remaining = quantity
    for row in rows:
        if remaining <= 0:
            break
        take = min(remaining, row.reserved_quantity)
        if take <= 0:
            continue
        db.session.execute(
            update(ProductInventory)
            .where(ProductInventory.id == row.id)
            .values(
                reserved_quantity=case(
                    (ProductInventory.reserved_quantity >= take, ProductInventory.reserved_quantity - take),
                    else_=0,
                ),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        remaining -= take
        db.session.expire(row)

    if remaining > 0:
        current_app.logger.warning(
            "Over-release on product %s: requested %s, only %s was reserved",
            product_id,
            quantity,
            quantity - remaining,
        )

    if commit:
        db.session.commit()
    return {
        "product_id": product_id,
        "requested": quantity,
        "released": quantity - remaining,
        "over_released": remaining,
    }
