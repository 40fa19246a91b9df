# Overview: Request decorators and request-scoped helpers for API routes.

import hmac
from functools import wraps

from flask import current_app, request

from . import messages
from .identity import Identity, resolve_identity
from .responses import error_response


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip()


def is_admin_request() -> bool:
    expected = current_app.config.get("ADMIN_API_KEY") or ""
    token = _bearer_token()
    # An empty key disables admin access entirely
    if not expected or not token:
        return False
    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


def require_admin_key(f):
    """
    Require `Authorization: Bearer <ADMIN_API_KEY>`.

    Returns 401 when the header is missing, wrong, or no admin key is
    configured.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_admin_request():
            return error_response(messages.UNAUTHORIZED, 401)
        return f(*args, **kwargs)
    return decorated_function


def identity_from_request(payload: dict | None = None) -> Identity:
    """
    Resolve the cart/order owner from the JSON body, then the query string.

    Raises ValidationError when neither user_id nor session_id is present.
    """
    payload = payload or {}
    user_id = payload.get("user_id", request.args.get("user_id"))
    session_id = payload.get("session_id", request.args.get("session_id"))
    return resolve_identity(user_id=user_id, session_id=session_id)
