# Overview: JSON envelope helpers; every API response is {success, message, data?, error?}.

from __future__ import annotations

from typing import Any

from flask import jsonify

from .validation import StorefrontError


def success_response(message: str, data: Any = None, status: int = 200, **extra):
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def error_response(message: str, status: int, error: str | None = None, details: dict | None = None):
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    if details:
        body["details"] = details
    return jsonify(body), status


def storefront_error_response(exc: StorefrontError):
    """Map a service-layer error onto its HTTP status; the message is user-facing."""
    return error_response(exc.message, exc.status_code, error=type(exc).__name__, details=exc.details)
