# Overview: Flask API routes for the shopping cart; parses input and returns JSON envelopes.

from flask import Blueprint, current_app, request

from .. import messages
from ..decorators import identity_from_request
from ..responses import error_response, storefront_error_response, success_response
from ..services import cart_service
from ..validation import StorefrontError, ValidationError


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


def _cart_payload(identity, shipping_method=None) -> dict:
    snapshot = cart_service.summarize(identity, shipping_method=shipping_method)
    data = snapshot.to_dict()
    data["availability"] = {
        str(product_id): available
        for product_id, available in cart_service.availability_for_cart(identity).items()
    }
    return data


@cart_bp.get("")
def get_cart_route():
    """
    Cart lines with totals for the caller's identity.

    Query params: user_id | session_id, shipping_method (optional).
    """
    try:
        identity = identity_from_request()
        data = _cart_payload(identity, request.args.get("shipping_method"))
        return success_response(messages.CART_FETCHED, data)
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to load cart")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@cart_bp.post("/items")
def add_item_route():
    """
    Add a product; an existing (product, tier) line is merged.

    Body: user_id | session_id, product_id, quantity, price_type (optional).
    Returns 201 for a new line, 200 for a merge.
    """
    try:
        data = request.get_json(silent=True) or {}
        identity = identity_from_request(data)
        if data.get("product_id") in (None, "") or data.get("quantity") in (None, ""):
            raise ValidationError(messages.PRODUCT_AND_QUANTITY_REQUIRED)

        line, merged = cart_service.add_item(
            identity,
            data.get("product_id"),
            data.get("quantity"),
            data.get("price_type"),
        )
        payload = {"item": line.to_dict(), "cart": _cart_payload(identity)}
        if merged:
            return success_response(messages.CART_ITEM_MERGED, payload)
        return success_response(messages.CART_ITEM_ADDED, payload, status=201)
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to add cart item")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@cart_bp.patch("/items/<int:product_id>")
def update_item_route(product_id: int):
    """Set a line's quantity; quantity <= 0 removes the line."""
    try:
        data = request.get_json(silent=True) or {}
        identity = identity_from_request(data)
        if data.get("quantity") in (None, ""):
            raise ValidationError(messages.PRODUCT_AND_QUANTITY_REQUIRED)

        line = cart_service.update_item(identity, product_id, data.get("quantity"), data.get("price_type"))
        payload = {"item": line.to_dict() if line else None, "cart": _cart_payload(identity)}
        message = messages.CART_UPDATED if line else messages.CART_ITEM_REMOVED
        return success_response(message, payload)
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to update cart item")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@cart_bp.delete("/items/<int:product_id>")
def remove_item_route(product_id: int):
    try:
        data = request.get_json(silent=True) or {}
        identity = identity_from_request(data)
        price_type = data.get("price_type", request.args.get("price_type"))
        removed = cart_service.remove_item(identity, product_id, price_type)
        return success_response(messages.CART_ITEM_REMOVED, {"removed": removed, "cart": _cart_payload(identity)})
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to remove cart item")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@cart_bp.delete("")
def clear_cart_route():
    try:
        identity = identity_from_request(request.get_json(silent=True) or {})
        removed = cart_service.clear_cart(identity)
        return success_response(messages.CART_CLEARED, {"removed": removed})
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to clear cart")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))
