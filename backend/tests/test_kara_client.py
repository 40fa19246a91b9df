"""
Kara client tests (HTTP stubbed with httpx.MockTransport).

Verifies:
- Request shape: base path, bearer key, updated_since and filter params
- Failure mapping: non-2xx, success=false, invalid JSON, network errors
- Display paths swallow failures; health check never raises
- Record parsing validates required fields
"""

from decimal import Decimal

import httpx
import pytest

from storefront.services.kara_client import (
    KaraApiError,
    KaraBrand,
    KaraCategory,
    KaraClient,
    KaraInventory,
    KaraPrice,
    KaraProduct,
)


def client_for(handler, api_key="secret"):
    return KaraClient("http://kara.test/api", api_key, transport=httpx.MockTransport(handler))


def ok(data):
    return httpx.Response(200, json={"success": True, "data": data})


class TestRequests:

    def test_fetch_sends_key_and_since(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["auth"] = request.headers.get("Authorization")
            return ok([{"id": "C1", "name": "Tools"}])

        records = client_for(handler).fetch_categories("2026-01-01T00:00:00")
        assert records == [{"id": "C1", "name": "Tools"}]
        assert seen["path"] == "/api/categories"
        assert seen["params"] == {"updated_since": "2026-01-01T00:00:00"}
        assert seen["auth"] == "Bearer secret"

    def test_product_ids_are_joined(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return ok([])

        client_for(handler).fetch_prices(product_ids=["P1", "P2"])
        assert seen["params"] == {"product_ids": "P1,P2"}

    def test_no_key_no_auth_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return ok([])

        client_for(handler, api_key="").fetch_brands()
        assert seen["auth"] is None

    def test_fetch_dispatches_by_entity_type(self):
        def handler(request):
            return ok([{"path": request.url.path}])

        assert client_for(handler).fetch("inventory") == [{"path": "/api/inventory"}]
        with pytest.raises(ValueError):
            client_for(handler).fetch("customers")


class TestFailures:

    def test_non_2xx_status(self):
        client = client_for(lambda request: httpx.Response(502, json={"success": False}))
        with pytest.raises(KaraApiError) as exc:
            client.fetch_products()
        assert str(exc.value) == "HTTP error! status: 502"
        assert exc.value.status_code == 502
        assert exc.value.endpoint == "products"

    def test_reported_failure(self):
        client = client_for(lambda request: httpx.Response(200, json={"success": False, "message": "maintenance"}))
        with pytest.raises(KaraApiError, match="maintenance"):
            client.fetch_brands()

    def test_invalid_json(self):
        client = client_for(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(KaraApiError):
            client.fetch_categories()

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(KaraApiError):
            client_for(handler).fetch_inventory()

    def test_get_paths_return_empty_list(self):
        client = client_for(lambda request: httpx.Response(500))
        assert client.get_products(search="hammer") == []
        assert client.get_categories() == []


class TestHealth:

    def test_healthy(self):
        client = client_for(lambda request: httpx.Response(200, json={"success": True, "message": "ok", "version": "2.4.0"}))
        assert client.health_check() == {"success": True, "message": "ok", "version": "2.4.0"}
        assert client.check_connection() is True

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        health = client_for(handler).health_check()
        assert health["success"] is False
        assert health["version"] == "unknown"


class TestRecords:

    def test_product_requires_sku(self):
        with pytest.raises(ValueError):
            KaraProduct.from_dict({"id": "P1", "name": "Hammer"})

    def test_price_parsing(self):
        price = KaraPrice.from_dict({"product_id": 7, "price_type": "Wholesale", "price": "900", "min_quantity": "10"})
        assert price.product_id == "7"
        assert price.price_type == "wholesale"
        assert price.price == Decimal("900")
        assert price.min_quantity == 10

    @pytest.mark.parametrize("payload", [
        {"product_id": "P1", "price_type": "vip", "price": 1},
        {"product_id": "P1", "price_type": "retail", "price": -1},
        {"product_id": "P1", "price_type": "retail", "price": 1, "min_quantity": 0},
        {"product_id": "P1", "price_type": "retail", "price": "NaN"},
        {"product_id": "P1", "price_type": "retail", "price": "Infinity"},
        {"product_id": "P1", "price_type": "retail", "price": 1, "min_quantity": "Infinity"},
        {"product_id": "P1", "price_type": "retail", "price": 1, "compare_price": "-Infinity"},
    ])
    def test_invalid_prices(self, payload):
        with pytest.raises(ValueError):
            KaraPrice.from_dict(payload)

    def test_inventory_defaults_to_main_warehouse(self):
        row = KaraInventory.from_dict({"product_id": "P1", "quantity": 3})
        assert row.warehouse_id == "main"
        assert row.reserved_quantity == 0

    @pytest.mark.parametrize("quantity", ["Infinity", "-Infinity", "NaN"])
    def test_inventory_quantity_must_be_finite(self, quantity):
        with pytest.raises(ValueError):
            KaraInventory.from_dict({"product_id": "P1", "quantity": quantity})

    @pytest.mark.parametrize("raw,expected", [
        (None, True),
        (True, True),
        (False, False),
        (0, False),
        (1, True),
        ("false", False),
        ("0", False),
        (" True ", True),
        ("yes", True),
    ])
    def test_is_active_parsing(self, raw, expected):
        brand = KaraBrand.from_dict({"id": "B1", "name": "Ronix", "is_active": raw})
        assert brand.is_active is expected

    @pytest.mark.parametrize("raw", ["maybe", 2, 1.5, []])
    def test_is_active_rejects_other_values(self, raw):
        with pytest.raises(ValueError):
            KaraCategory.from_dict({"id": "C1", "name": "Tools", "is_active": raw})


class TestDisplayPaths:

    def test_brands_prices_inventory(self):
        seen = []

        def handler(request):
            seen.append((request.url.path, dict(request.url.params)))
            return ok([{"id": "X"}])

        client = client_for(handler)
        assert client.get_brands() == [{"id": "X"}]
        assert client.get_prices(["P1", "P2"]) == [{"id": "X"}]
        assert client.get_inventory(["P3"]) == [{"id": "X"}]
        assert seen == [
            ("/api/brands", {}),
            ("/api/prices", {"product_ids": "P1,P2"}),
            ("/api/inventory", {"product_ids": "P3"}),
        ]

    def test_failures_become_empty_lists(self):
        client = client_for(lambda request: httpx.Response(503))
        assert client.get_brands() == []
        assert client.get_prices(["P1"]) == []
        assert client.get_inventory() == []
