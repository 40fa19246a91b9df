# Overview: Flask API routes for orders; checkout, lookup, listing, status changes and cancellation.

from flask import Blueprint, current_app, request

from .. import messages
from ..decorators import identity_from_request, is_admin_request, require_admin_key
from ..responses import error_response, storefront_error_response, success_response
from ..services import order_service
from ..validation import StorefrontError, coerce_int


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _owner_scope(data: dict | None = None):
    """Admins see every order; everyone else is scoped to their identity."""
    if is_admin_request():
        data = data or {}
        keys = ("user_id", "session_id")
        if any(data.get(k) or request.args.get(k) for k in keys):
            return identity_from_request(data)
        return None
    return identity_from_request(data)


@orders_bp.post("")
def create_order_route():
    """
    Check out the caller's cart.

    Body: user_id | session_id, customer_info {name, phone, email, company,
    tax_id, address}, shipping_info {address, city, postal_code, notes},
    payment_method (cash|card|transfer|credit), shipping_method.
    """
    try:
        data = request.get_json(silent=True) or {}
        identity = identity_from_request(data)
        order = order_service.create_order(
            identity,
            data.get("customer_info"),
            data.get("shipping_info"),
            payment_method=data.get("payment_method"),
            shipping_method=data.get("shipping_method"),
        )
        return success_response(messages.ORDER_CREATED, order.to_dict(), status=201)
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to create order")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id, _owner_scope())
        return success_response(messages.ORDER_FETCHED, order.to_dict())
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to load order")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@orders_bp.get("")
def list_orders_route():
    """
    Newest orders first.

    Query params: user_id | session_id (optional for admins), status,
    page (default 1), limit (default 10, max 100).
    """
    try:
        page = coerce_int(request.args.get("page", 1), "page")
        limit = coerce_int(request.args.get("limit", 10), "limit")
        orders, total = order_service.list_orders(
            _owner_scope(),
            status=request.args.get("status") or None,
            page=page,
            limit=limit,
        )
        return success_response(
            messages.ORDERS_FETCHED,
            [order.to_dict(include_items=True) for order in orders],
            total=total,
            page=page,
            limit=limit,
        )
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to list orders")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@orders_bp.patch("/<int:order_id>/status")
@require_admin_key
def update_status_route(order_id: int):
    """Admin only. Body: status, tracking_number (optional, used when shipping)."""
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.update_status(
            order_id,
            data.get("status"),
            tracking_number=data.get("tracking_number"),
        )
        message = messages.ORDER_CANCELLED if order.status == "cancelled" else messages.ORDER_STATUS_UPDATED
        return success_response(message, order.to_dict())
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to update order status")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@orders_bp.post("/<int:order_id>/cancel")
def cancel_order_route(order_id: int):
    """Owner (by identity) or admin may cancel while the order has not shipped."""
    try:
        data = request.get_json(silent=True) or {}
        scope = _owner_scope(data)
        if scope is not None:
            # Ownership check; other owners' orders look missing
            order_service.get_order(order_id, scope)
        order = order_service.cancel_order(order_id)
        return success_response(messages.ORDER_CANCELLED, order.to_dict())
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to cancel order")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))
