from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any


class StorefrontError(Exception):
    """Base for errors a caller can act on; carries a display message."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(StorefrontError):
    """400-level input problem, raised before any storage access."""


class NotFoundError(StorefrontError):
    """404-level: referenced product/order does not exist or is inactive."""

    status_code = 404


class BusinessRuleError(StorefrontError):
    """400-level business rule violation (stock, checkout gate, transitions)."""


class InsufficientStockError(BusinessRuleError):
    """Raised when a reservation or cart quantity exceeds available stock."""

    def __init__(self, message: str, *, product_id: int, requested: int, available: int):
        super().__init__(
            message,
            details={"product_id": product_id, "requested": requested, "available": available},
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for request input.

    Rejects floats, booleans, decimals and scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_positive_int(value: Any, field: str) -> int:
    number = coerce_int(value, field)
    if number <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return number


def coerce_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            # str() first so floats keep their printed value
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return number


def money_to_json(value: Decimal | int | None):
    """Whole currency units serialize as int, anything else as float."""
    if value is None:
        return None
    if not isinstance(value, Decimal):
        value = Decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)
