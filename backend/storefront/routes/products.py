# Overview: Flask API routes for the catalog; product listing with filters, categories and brands.

from flask import Blueprint, current_app, request

from .. import messages
from ..identity import resolve_identity
from ..responses import error_response, storefront_error_response, success_response
from ..services import products_service
from ..services.pricing_service import user_class_for_identity
from ..validation import StorefrontError, coerce_decimal, coerce_int, coerce_positive_int


products_bp = Blueprint("products", __name__, url_prefix="/api")


def _caller_user_class() -> str:
    """Anonymous browsing sees retail prices; a user_id selects the profile's tier."""
    user_id = request.args.get("user_id")
    if not user_id:
        return "b2c"
    return user_class_for_identity(resolve_identity(user_id=user_id))


def _optional(name: str, coerce):
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    return coerce(raw, name)


def _flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in ("1", "true", "yes")


@products_bp.get("/products")
def list_products_route():
    """
    List active products.

    Query params:
    - category_id, brand_id: int (optional)
    - search: matches name, description or SKU
    - min_price, max_price: bounds on the caller's tier price
    - in_stock: true to hide products without available stock
    - page (default 1), limit (default 20, max 100)
    - sort_by: name | price | created_at (default), sort_order: asc | desc (default)
    - user_id: optional; selects wholesale prices for b2b profiles
    """
    try:
        page = _optional("page", coerce_int)
        limit = _optional("limit", coerce_int)
        result = products_service.list_products(
            user_class=_caller_user_class(),
            category_id=_optional("category_id", coerce_positive_int),
            brand_id=_optional("brand_id", coerce_positive_int),
            search=request.args.get("search") or None,
            min_price=_optional("min_price", coerce_decimal),
            max_price=_optional("max_price", coerce_decimal),
            in_stock=_flag("in_stock"),
            page=1 if page is None else page,
            limit=20 if limit is None else limit,
            sort_by=request.args.get("sort_by") or "created_at",
            sort_order=request.args.get("sort_order") or "desc",
        )
        return success_response(
            messages.PRODUCTS_FETCHED,
            result["items"],
            count=result["count"],
            pagination=result["pagination"],
        )
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to list products")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@products_bp.get("/products/<int:product_id>")
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id, user_class=_caller_user_class())
        return success_response(messages.PRODUCT_FETCHED, product)
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to load product")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@products_bp.get("/categories")
def list_categories_route():
    try:
        return success_response(messages.CATEGORIES_FETCHED, products_service.list_categories())
    except Exception as e:
        current_app.logger.exception("Failed to list categories")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@products_bp.get("/brands")
def list_brands_route():
    try:
        return success_response(messages.BRANDS_FETCHED, products_service.list_brands())
    except Exception as e:
        current_app.logger.exception("Failed to list brands")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))
