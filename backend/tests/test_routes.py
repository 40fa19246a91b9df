"""
HTTP API tests.

Verifies:
- Every response uses the {success, message, data?, error?} envelope
- Status codes: 201 on create, 400 validation, 401 admin, 404, 405
- Cart -> checkout -> cancel through the API
- Catalog listing with tier prices and filters
"""

import pytest

from conftest import auth_headers, make_product, make_profile


SESSION = {"session_id": "api-session"}


def _add(client, product_id, quantity, **extra):
    return client.post("/api/cart/items", json={**SESSION, "product_id": product_id, "quantity": quantity, **extra})


# =============================================================================
# ENVELOPE AND STATUS CODES
# =============================================================================


class TestEnvelope:

    def test_unknown_route_is_json_404(self, client, db_session):
        resp = client.get("/api/nowhere")
        assert resp.status_code == 404
        assert resp.json["success"] is False
        assert resp.json["message"]

    def test_wrong_method_is_json_405(self, client, db_session):
        resp = client.put("/api/cart")
        assert resp.status_code == 405
        assert resp.json["success"] is False

    def test_missing_identity_is_400(self, client, db_session):
        resp = client.get("/api/cart")
        assert resp.status_code == 400
        assert resp.json["success"] is False
        assert resp.json["error"] == "ValidationError"

    def test_missing_product_is_404(self, client, db_session):
        resp = _add(client, 999, 1)
        assert resp.status_code == 404
        assert resp.json["error"] == "NotFoundError"

    def test_health_reports_components(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["data"]["checks"]["database"]["status"] == "healthy"
        assert resp.json["data"]["checks"]["kara"]["status"] == "healthy"


# =============================================================================
# CART AND CHECKOUT
# =============================================================================


class TestCartApi:

    def test_add_then_merge(self, client, db_session):
        product = make_product(db_session, retail=1000)
        first = _add(client, product.id, 2)
        assert first.status_code == 201
        second = _add(client, product.id, 3)
        assert second.status_code == 200
        assert second.json["data"]["item"]["quantity"] == 5
        assert len(second.json["data"]["cart"]["items"]) == 1

    def test_product_and_quantity_required(self, client, db_session):
        resp = client.post("/api/cart/items", json=SESSION)
        assert resp.status_code == 400

    def test_cart_summary(self, client, db_session):
        product = make_product(db_session, retail=10_000, stock=12)
        _add(client, product.id, 6)
        resp = client.get("/api/cart", query_string=SESSION)
        data = resp.json["data"]
        assert resp.status_code == 200
        assert data["summary"]["subtotal"] == 60000
        assert data["summary"]["tax_amount"] == 5400
        assert data["summary"]["can_checkout"] is True
        assert data["availability"] == {str(product.id): 12}

    def test_patch_and_delete_line(self, client, db_session):
        product = make_product(db_session, retail=1000)
        _add(client, product.id, 2)
        resp = client.patch(f"/api/cart/items/{product.id}", json={**SESSION, "quantity": 4})
        assert resp.json["data"]["item"]["quantity"] == 4
        resp = client.delete(f"/api/cart/items/{product.id}", json=SESSION)
        assert resp.json["data"]["removed"] == 1

    def test_checkout_and_cancel(self, client, db_session):
        product = make_product(db_session, retail=10_000)
        _add(client, product.id, 6)
        resp = client.post("/api/orders", json={
            **SESSION,
            "customer_info": {"name": "Reza", "phone": "09121111111"},
            "shipping_info": {"address": "Shiraz"},
            "shipping_method": "pickup",
        })
        assert resp.status_code == 201
        order = resp.json["data"]
        assert order["order_number"].endswith("-1001")
        assert order["total_amount"] == 65400
        assert order["items"][0]["unit_price"] == 10000

        listed = client.get("/api/orders", query_string=SESSION)
        assert listed.json["total"] == 1

        other = client.post(f"/api/orders/{order['id']}/cancel", json={"session_id": "intruder"})
        assert other.status_code == 404

        cancelled = client.post(f"/api/orders/{order['id']}/cancel", json=SESSION)
        assert cancelled.status_code == 200
        assert cancelled.json["data"]["status"] == "cancelled"

    def test_business_checkout_below_minimum(self, client, db_session):
        buyer = make_profile(db_session, user_type="b2b")
        product = make_product(db_session, retail=1000, wholesale=900)
        client.post("/api/cart/items", json={"user_id": buyer.id, "product_id": product.id, "quantity": 20})

        cart = client.get("/api/cart", query_string={"user_id": buyer.id}).json["data"]
        assert cart["summary"]["total_amount"] == 19620
        assert cart["summary"]["can_checkout"] is False

        resp = client.post("/api/orders", json={
            "user_id": buyer.id,
            "customer_info": {"name": "Acme", "phone": "02100000000"},
        })
        assert resp.status_code == 400
        assert resp.json["error"] == "BusinessRuleError"


# =============================================================================
# ADMIN
# =============================================================================


class TestAdminRoutes:

    @pytest.mark.parametrize("method,path", [
        ("POST", "/api/sync"),
        ("GET", "/api/sync/logs"),
        ("PATCH", "/api/orders/1/status"),
    ])
    def test_requires_admin_key(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path, json={})
        assert resp.status_code == 401
        wrong = getattr(client, method.lower())(path, json={}, headers=auth_headers("wrong"))
        assert wrong.status_code == 401

    def test_sync_run_and_logs(self, client, db_session, admin_headers):
        resp = client.post("/api/sync", json={"sync_type": "categories"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "success"

        logs = client.get("/api/sync/logs", headers=admin_headers)
        assert [log["entity_type"] for log in logs.json["data"]] == ["categories"]

    def test_invalid_sync_type(self, client, db_session, admin_headers):
        resp = client.post("/api/sync", json={"sync_type": "everything"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_admin_status_update(self, client, db_session, admin_headers):
        product = make_product(db_session, retail=10_000)
        _add(client, product.id, 6)
        order = client.post("/api/orders", json={
            **SESSION, "customer_info": {"name": "Reza", "phone": "09121111111"},
        }).json["data"]

        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "confirmed"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "confirmed"

        bad = client.patch(f"/api/orders/{order['id']}/status", json={"status": "delivered"}, headers=admin_headers)
        assert bad.status_code == 400

        everyone = client.get("/api/orders", headers=admin_headers)
        assert everyone.json["total"] == 1


# =============================================================================
# CATALOG
# =============================================================================


class TestCatalog:

    def test_listing_shows_tier_price(self, client, db_session):
        buyer = make_profile(db_session, user_type="b2b")
        product = make_product(db_session, retail=1000, wholesale=900)

        retail = client.get("/api/products").json
        assert retail["data"][0]["price"]["price"] == 1000
        assert retail["pagination"]["total"] == 1

        wholesale = client.get("/api/products", query_string={"user_id": buyer.id}).json
        assert wholesale["data"][0]["price"]["price"] == 900

        detail = client.get(f"/api/products/{product.id}").json
        assert detail["data"]["sku"] == "SKU-1"

    def test_price_filter_and_sort(self, client, db_session):
        make_product(db_session, sku="CHEAP", retail=500)
        make_product(db_session, sku="MID", retail=1500)
        make_product(db_session, sku="DEAR", retail=5000)
        make_product(db_session, sku="NOPRICE")

        resp = client.get("/api/products", query_string={"sort_by": "price", "sort_order": "asc"})
        assert [p["sku"] for p in resp.json["data"]] == ["CHEAP", "MID", "DEAR", "NOPRICE"]

        resp = client.get("/api/products", query_string={"min_price": 1000, "max_price": 2000})
        assert [p["sku"] for p in resp.json["data"]] == ["MID"]

    def test_in_stock_and_search(self, client, db_session):
        make_product(db_session, sku="HAMMER-1", name="Hammer", retail=100, stock=5)
        make_product(db_session, sku="SAW-1", name="Saw", retail=100, stock=0)

        stocked = client.get("/api/products", query_string={"in_stock": "true"}).json["data"]
        assert [p["sku"] for p in stocked] == ["HAMMER-1"]

        found = client.get("/api/products", query_string={"search": "saw"}).json["data"]
        assert [p["sku"] for p in found] == ["SAW-1"]

    def test_bad_sort_field(self, client, db_session):
        resp = client.get("/api/products", query_string={"sort_by": "popularity"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("params", [
        {"page": 0},
        {"limit": 0},
        {"limit": 101},
        {"min_price": "NaN"},
        {"max_price": "Infinity"},
    ])
    def test_rejected_listing_params(self, client, db_session, params):
        resp = client.get("/api/products", query_string=params)
        assert resp.status_code == 400
        assert resp.json["error"] == "ValidationError"

    def test_listing_defaults_to_first_page(self, client, db_session):
        make_product(db_session, retail=100)
        pagination = client.get("/api/products").json["pagination"]
        assert (pagination["page"], pagination["limit"]) == (1, 20)
