# backend/storefront/services/products_service.py
"""
Catalog read paths for the storefront.

Prices shown in listings are the entry price (lowest min_quantity) of the
caller's tier that is currently effective. Products without such a price
are still listed with price=None; they cannot be added to a cart.
"""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, or_

from .. import messages
from ..extensions import db
from ..models import Brand, Category, Product, ProductInventory
from ..validation import NotFoundError, ValidationError, coerce_positive_int, money_to_json
from .pricing_service import resolve_price_for_tier, tier_for_user_class

SORT_FIELDS = {"name", "price", "created_at"}
MAX_PER_PAGE = 100


def _price_payload(product: Product, price_type: str) -> dict | None:
    row = resolve_price_for_tier(product.prices, price_type)
    if row is None:
        return None
    return {
        "price_type": row.price_type,
        "price": money_to_json(row.price),
        "compare_price": money_to_json(row.compare_price),
        "min_quantity": row.min_quantity,
        "currency": row.currency,
    }


def serialize_product(product: Product, user_class: str) -> dict:
    data = product.to_dict(include_relations=True)
    data["price"] = _price_payload(product, tier_for_user_class(user_class))
    return data


def _display_price(product: Product, price_type: str) -> Decimal | None:
    row = resolve_price_for_tier(product.prices, price_type)
    return Decimal(row.price) if row is not None else None


def list_products(
    *,
    user_class: str = "b2c",
    category_id: int | None = None,
    brand_id: int | None = None,
    search: str | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    in_stock: bool = False,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> dict:
    """
    Active products with filters, sorting and pagination.

    Price filters and price sorting use the caller's tier price, so they are
    applied after loading the SQL-filtered set; other filters and sorts run
    in the database.
    """
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"sort_by must be one of {', '.join(sorted(SORT_FIELDS))}")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sort_order must be asc or desc")
    if page < 1:
        raise ValidationError("page must be at least 1")
    if limit < 1 or limit > MAX_PER_PAGE:
        raise ValidationError(f"limit must be between 1 and {MAX_PER_PAGE}")
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationError("min_price must not exceed max_price")

    query = db.session.query(Product).filter(Product.is_active.is_(True))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if brand_id is not None:
        query = query.filter(Product.brand_id == brand_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(Product.name.ilike(pattern), Product.description.ilike(pattern), Product.sku.ilike(pattern))
        )
    if in_stock:
        stocked = (
            db.select(ProductInventory.product_id)
            .group_by(ProductInventory.product_id)
            .having(func.sum(ProductInventory.quantity - ProductInventory.reserved_quantity) > 0)
        )
        query = query.filter(Product.id.in_(stocked))

    price_type = tier_for_user_class(user_class)
    descending = sort_order == "desc"

    if sort_by == "price" or min_price is not None or max_price is not None:
        products = query.order_by(Product.id.asc()).all()
        priced = [(product, _display_price(product, price_type)) for product in products]
        if min_price is not None:
            priced = [(p, price) for p, price in priced if price is not None and price >= min_price]
        if max_price is not None:
            priced = [(p, price) for p, price in priced if price is not None and price <= max_price]
        if sort_by == "price":
            # Unpriced products always sort last
            with_price = sorted((pair for pair in priced if pair[1] is not None), key=lambda pair: pair[1], reverse=descending)
            priced = with_price + [pair for pair in priced if pair[1] is None]
        elif sort_by == "name":
            priced.sort(key=lambda pair: pair[0].name, reverse=descending)
        else:
            priced.sort(key=lambda pair: (pair[0].created_at, pair[0].id), reverse=descending)
        total = len(priced)
        page_items = [product for product, _ in priced[(page - 1) * limit: page * limit]]
    else:
        column = Product.name if sort_by == "name" else Product.created_at
        ordering = column.desc() if descending else column.asc()
        total = query.count()
        page_items = query.order_by(ordering, Product.id.asc()).offset((page - 1) * limit).limit(limit).all()

    total_pages = (total + limit - 1) // limit if total > 0 else 1
    return {
        "items": [serialize_product(product, user_class) for product in page_items],
        "count": len(page_items),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id, *, user_class: str = "b2c") -> dict:
    product_id = coerce_positive_int(product_id, "product_id")
    product = db.session.get(Product, product_id)
    if product is None or not product.is_active:
        raise NotFoundError(messages.PRODUCT_NOT_FOUND, details={"product_id": product_id})
    return serialize_product(product, user_class)


def list_categories(*, include_inactive: bool = False) -> list[dict]:
    query = db.session.query(Category)
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    return [c.to_dict() for c in query.order_by(Category.sort_order.asc(), Category.name.asc()).all()]


def list_brands(*, include_inactive: bool = False) -> list[dict]:
    query = db.session.query(Brand)
    if not include_inactive:
        query = query.filter(Brand.is_active.is_(True))
    return [b.to_dict() for b in query.order_by(Brand.name.asc()).all()]
