# Overview: HTTP client for the Kara catalog source (categories, brands, products, prices, inventory).

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

import httpx
from flask import current_app

from .. import messages


class KaraApiError(Exception):
    """Raised when the Kara source is unreachable or answers with a failure."""

    def __init__(self, message: str, *, endpoint: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


# =============================================================================
# Record types
# =============================================================================

def _require(data: dict, key: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{key} is required")
    return value


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_decimal(value: Any, field: str, *, required: bool = True) -> Optional[Decimal]:
    if value is None or value == "":
        if required:
            raise ValueError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field} must be a number")
    if not number.is_finite():
        raise ValueError(f"{field} must be a finite number")
    return number


def _to_int(value: Any, field: str, default: int | None = None) -> int:
    if value is None or value == "":
        if default is None:
            raise ValueError(f"{field} is required")
        return default
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field} must be an integer")
    if not number.is_finite() or number != number.to_integral_value():
        raise ValueError(f"{field} must be an integer")
    return int(number)


_TRUE_STRINGS = ("true", "1", "yes")
_FALSE_STRINGS = ("false", "0", "no")


def _to_bool(value: Any, field: str, default: bool = True) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"{field} must be a boolean")


@dataclass(frozen=True)
class KaraCategory:
    id: str
    name: str
    parent_id: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "KaraCategory":
        return cls(
            id=str(_require(data, "id")),
            name=str(_require(data, "name")).strip(),
            parent_id=_optional_str(data.get("parent_id")),
            description=data.get("description"),
            is_active=_to_bool(data.get("is_active"), "is_active"),
        )


@dataclass(frozen=True)
class KaraBrand:
    id: str
    name: str
    description: Optional[str] = None
    country: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "KaraBrand":
        return cls(
            id=str(_require(data, "id")),
            name=str(_require(data, "name")).strip(),
            description=data.get("description"),
            country=_optional_str(data.get("country")),
            is_active=_to_bool(data.get("is_active"), "is_active"),
        )


@dataclass(frozen=True)
class KaraProduct:
    id: str
    name: str
    sku: str
    barcode: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    is_active: bool = True
    weight: Optional[Decimal] = None
    dimensions: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "KaraProduct":
        return cls(
            id=str(_require(data, "id")),
            name=str(_require(data, "name")).strip(),
            sku=str(_require(data, "sku")).strip(),
            barcode=_optional_str(data.get("barcode")),
            description=data.get("description"),
            category_id=_optional_str(data.get("category_id")),
            brand_id=_optional_str(data.get("brand_id")),
            is_active=_to_bool(data.get("is_active"), "is_active"),
            weight=_to_decimal(data.get("weight"), "weight", required=False),
            dimensions=_optional_str(data.get("dimensions")),
        )


@dataclass(frozen=True)
class KaraPrice:
    product_id: str
    price_type: str
    price: Decimal
    compare_price: Optional[Decimal] = None
    min_quantity: int = 1
    effective_from: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "KaraPrice":
        price_type = str(_require(data, "price_type")).strip().lower()
        if price_type not in ("wholesale", "retail"):
            raise ValueError(f"price_type must be wholesale or retail, got {price_type!r}")
        price = _to_decimal(data.get("price"), "price")
        if price < 0:
            raise ValueError("price must not be negative")
        min_quantity = _to_int(data.get("min_quantity"), "min_quantity", default=1)
        if min_quantity < 1:
            raise ValueError("min_quantity must be at least 1")
        return cls(
            product_id=str(_require(data, "product_id")),
            price_type=price_type,
            price=price,
            compare_price=_to_decimal(data.get("compare_price"), "compare_price", required=False),
            min_quantity=min_quantity,
            effective_from=_optional_str(data.get("effective_from")),
        )


@dataclass(frozen=True)
class KaraInventory:
    product_id: str
    warehouse_id: str
    quantity: int
    reserved_quantity: int = 0
    min_stock_level: int = 0
    last_updated: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "KaraInventory":
        quantity = _to_int(data.get("quantity"), "quantity")
        reserved = _to_int(data.get("reserved_quantity"), "reserved_quantity", default=0)
        if quantity < 0:
            raise ValueError("quantity must not be negative")
        if reserved < 0:
            raise ValueError("reserved_quantity must not be negative")
        return cls(
            product_id=str(_require(data, "product_id")),
            warehouse_id=str(data.get("warehouse_id") or "main"),
            quantity=quantity,
            reserved_quantity=reserved,
            min_stock_level=_to_int(data.get("min_stock_level"), "min_stock_level", default=0),
            last_updated=_optional_str(data.get("last_updated")),
        )


RECORD_TYPES = {
    "categories": KaraCategory,
    "brands": KaraBrand,
    "products": KaraProduct,
    "prices": KaraPrice,
    "inventory": KaraInventory,
}


# =============================================================================
# Client
# =============================================================================

class KaraClient:
    """
    Read-only client for the Kara REST API.

    fetch_* methods raise KaraApiError and are used by synchronization so
    failures show up in sync logs. get_* methods swallow KaraApiError and
    return an empty list for display paths.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.base_url = base_url.rstrip("/")
        self.logger = logger or logging.getLogger("storefront.kara")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, endpoint: str, params: dict | None = None) -> dict:
        query = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        try:
            response = self._client.get(f"/{endpoint}", params=query or None)
        except httpx.TimeoutException as exc:
            raise KaraApiError(f"Timed out requesting {endpoint}", endpoint=endpoint) from exc
        except httpx.HTTPError as exc:
            raise KaraApiError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc

        if not response.is_success:
            raise KaraApiError(
                f"HTTP error! status: {response.status_code}",
                endpoint=endpoint,
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise KaraApiError(f"Invalid JSON from {endpoint}", endpoint=endpoint) from exc
        if not isinstance(payload, dict):
            raise KaraApiError(f"Unexpected payload from {endpoint}", endpoint=endpoint)
        if not payload.get("success", False):
            raise KaraApiError(
                payload.get("message") or f"{endpoint} reported failure",
                endpoint=endpoint,
                status_code=response.status_code,
            )
        return payload

    def _fetch_list(self, endpoint: str, params: dict | None = None) -> list[dict]:
        data = self._request(endpoint, params).get("data")
        if data is None:
            return []
        if not isinstance(data, list):
            raise KaraApiError(f"Expected a list from {endpoint}", endpoint=endpoint)
        return data

    @staticmethod
    def _since_param(updated_since: datetime | str | None) -> str | None:
        if updated_since is None:
            return None
        if isinstance(updated_since, datetime):
            return updated_since.isoformat()
        return str(updated_since)

    # -- sync paths -----------------------------------------------------------

    def fetch_categories(self, updated_since: datetime | str | None = None) -> list[dict]:
        return self._fetch_list("categories", {"updated_since": self._since_param(updated_since)})

    def fetch_brands(self, updated_since: datetime | str | None = None) -> list[dict]:
        return self._fetch_list("brands", {"updated_since": self._since_param(updated_since)})

    def fetch_products(
        self,
        updated_since: datetime | str | None = None,
        *,
        category_id: str | None = None,
        brand_id: str | None = None,
        search: str | None = None,
    ) -> list[dict]:
        return self._fetch_list(
            "products",
            {
                "updated_since": self._since_param(updated_since),
                "category_id": category_id,
                "brand_id": brand_id,
                "search": search,
            },
        )

    def fetch_prices(
        self,
        updated_since: datetime | str | None = None,
        *,
        product_ids: Iterable[str] | None = None,
    ) -> list[dict]:
        return self._fetch_list(
            "prices",
            {
                "updated_since": self._since_param(updated_since),
                "product_ids": ",".join(str(p) for p in product_ids) if product_ids else None,
            },
        )

    def fetch_inventory(
        self,
        updated_since: datetime | str | None = None,
        *,
        product_ids: Iterable[str] | None = None,
    ) -> list[dict]:
        return self._fetch_list(
            "inventory",
            {
                "updated_since": self._since_param(updated_since),
                "product_ids": ",".join(str(p) for p in product_ids) if product_ids else None,
            },
        )

    def fetch(self, entity_type: str, updated_since: datetime | str | None = None) -> list[dict]:
        fetchers = {
            "categories": self.fetch_categories,
            "brands": self.fetch_brands,
            "products": self.fetch_products,
            "prices": self.fetch_prices,
            "inventory": self.fetch_inventory,
        }
        if entity_type not in fetchers:
            raise ValueError(f"Unknown entity type: {entity_type}")
        return fetchers[entity_type](updated_since)

    # -- display paths --------------------------------------------------------

    def _safe(self, label: str, fetcher, *args, **kwargs) -> list[dict]:
        try:
            return fetcher(*args, **kwargs)
        except KaraApiError as exc:
            self.logger.warning("Kara %s unavailable: %s", label, exc)
            return []

    def get_categories(self) -> list[dict]:
        return self._safe("categories", self.fetch_categories)

    def get_brands(self) -> list[dict]:
        return self._safe("brands", self.fetch_brands)

    def get_products(self, *, category_id=None, brand_id=None, search=None) -> list[dict]:
        return self._safe(
            "products", self.fetch_products, category_id=category_id, brand_id=brand_id, search=search
        )

    def get_prices(self, product_ids: Iterable[str] | None = None) -> list[dict]:
        return self._safe("prices", self.fetch_prices, product_ids=product_ids)

    def get_inventory(self, product_ids: Iterable[str] | None = None) -> list[dict]:
        return self._safe("inventory", self.fetch_inventory, product_ids=product_ids)

    def health_check(self) -> dict:
        """Never raises; unreachable or malformed answers become success=False."""
        fallback = {"success": False, "message": messages.KARA_UNREACHABLE, "version": "unknown"}
        try:
            response = self._client.get("/health")
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self.logger.warning("Kara health check failed: %s", exc)
            return fallback
        if not isinstance(payload, dict):
            return fallback
        return {
            "success": bool(payload.get("success")) and response.is_success,
            "message": payload.get("message") or fallback["message"],
            "version": payload.get("version") or "unknown",
        }

    def check_connection(self) -> bool:
        return self.health_check()["success"]


def init_kara_client(app, *, transport: httpx.BaseTransport | None = None) -> KaraClient:
    """Build the per-process client from app config and register it on the app."""
    client = KaraClient(
        app.config["KARA_API_URL"],
        app.config.get("KARA_API_KEY", ""),
        timeout=float(app.config.get("KARA_TIMEOUT_SECONDS", 30.0)),
        transport=transport,
        logger=app.logger,
    )
    app.extensions["kara_client"] = client
    return client


def get_kara_client(app=None) -> KaraClient:
    if app is None:
        app = current_app
    return app.extensions["kara_client"]
