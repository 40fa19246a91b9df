"""
Kara reconciliation tests.

Verifies:
- Full runs upsert every entity type in dependency order
- Bad records fail alone; the batch and the log report partial success
- A fetch failure for one entity type does not stop the others
- Inventory sync keeps ledger reservations, clamping when stock shrinks
- Incremental runs start from the last successful sync
"""

from decimal import Decimal

import pytest

from storefront.models import Brand, Category, Product, ProductInventory, ProductPrice, SyncLog
from storefront.services import sync_service
from storefront.validation import ValidationError

from conftest import FakeKaraClient, make_product


CATEGORIES = [
    {"id": "C2", "name": "Hand Tools", "parent_id": "C1"},
    {"id": "C1", "name": "Tools"},
]
BRANDS = [{"id": "B1", "name": "Ronix", "country": "IR"}]
PRODUCTS = [
    {"id": "P1", "name": "Hammer", "sku": "HM-1", "category_id": "C2", "brand_id": "B1", "weight": "450"},
    {"id": "P2", "name": "Wrench", "sku": "WR-1", "category_id": "C2"},
]
PRICES = [
    {"product_id": "P1", "price_type": "retail", "price": 1000},
    {"product_id": "P1", "price_type": "wholesale", "price": 900, "min_quantity": 10},
    {"product_id": "P2", "price_type": "retail", "price": "2500.50"},
]
INVENTORY = [
    {"product_id": "P1", "warehouse_id": "main", "quantity": 40},
    {"product_id": "P1", "warehouse_id": "north", "quantity": 5},
    {"product_id": "P2", "quantity": 7},
]


def full_catalog(**overrides):
    responses = {
        "categories": CATEGORIES,
        "brands": BRANDS,
        "products": PRODUCTS,
        "prices": PRICES,
        "inventory": INVENTORY,
    }
    responses.update(overrides)
    return FakeKaraClient(**responses)


# =============================================================================
# FULL RUNS
# =============================================================================


class TestFullSync:

    def test_full_run_imports_catalog(self, db_session):
        client = full_catalog()
        run = sync_service.run_sync(client, "full")

        assert run.status == "success"
        assert [entity for entity, _ in client.calls] == list(sync_service.ENTITY_ORDER)

        tools = db_session.query(Category).filter_by(kara_id="C1").one()
        hand_tools = db_session.query(Category).filter_by(kara_id="C2").one()
        assert hand_tools.parent_id == tools.id
        assert hand_tools.slug == "hand-tools"

        hammer = db_session.query(Product).filter_by(kara_id="P1").one()
        assert hammer.category_id == hand_tools.id
        assert hammer.brand_id == db_session.query(Brand.id).filter_by(kara_id="B1").scalar()
        assert hammer.weight == Decimal("450")
        assert db_session.query(ProductPrice).filter_by(product_id=hammer.id).count() == 2
        assert db_session.query(ProductInventory).filter_by(product_id=hammer.id).count() == 2

        logs = db_session.query(SyncLog).all()
        assert sorted(log.entity_type for log in logs) == sorted(sync_service.ENTITY_ORDER)
        assert {log.status for log in logs} == {"success"}

    def test_second_run_updates_instead_of_creating(self, db_session):
        sync_service.run_sync(full_catalog(), "full")
        renamed = [dict(PRODUCTS[0], name="Claw Hammer"), PRODUCTS[1]]
        run = sync_service.run_sync(full_catalog(products=renamed), "products")

        result = run.results[0]
        assert (result.created, result.updated) == (0, 2)
        assert db_session.query(Product).filter_by(kara_id="P1").one().name == "Claw Hammer"
        assert db_session.query(Product).count() == 2

    def test_unknown_sync_type(self, db_session):
        with pytest.raises(ValidationError):
            sync_service.run_sync(full_catalog(), "customers")


# =============================================================================
# PARTIAL FAILURE
# =============================================================================


class TestPartialFailure:

    def test_one_bad_record_in_ten(self, db_session):
        records = [{"id": f"P{i}", "name": f"Item {i}", "sku": f"SKU-{i}"} for i in range(9)]
        records.insert(4, {"id": "BROKEN", "name": "No SKU"})
        run = sync_service.run_sync(FakeKaraClient(products=records), "products")

        result = run.results[0]
        assert result.processed == 10
        assert result.synced == 9
        assert result.failed == 1
        assert result.status == "partial"
        assert run.status == "partial"
        assert db_session.query(Product).count() == 9

        log = db_session.query(SyncLog).one()
        assert log.status == "partial"
        assert log.records_failed == 1
        assert log.records_created == 9
        assert log.error_details["errors"][0]["record"] == "BROKEN"

    def test_every_record_failing_is_an_error(self, db_session):
        result = sync_service.reconcile("prices", [{"product_id": "NOPE", "price_type": "retail", "price": 5}])
        assert result.failed == 1
        assert result.status == "error"

    def test_fetch_failure_does_not_stop_other_entities(self, db_session, kara_down):
        run = sync_service.run_sync(full_catalog(products=kara_down, prices=[], inventory=[]), "full")

        statuses = {result.entity_type: result.status for result in run.results}
        assert statuses["categories"] == "success"
        assert statuses["brands"] == "success"
        assert statuses["products"] == "error"
        assert statuses["inventory"] == "success"
        assert run.status == "partial"

        products_log = db_session.query(SyncLog).filter_by(entity_type="products").one()
        assert products_log.status == "error"
        assert "503" in products_log.error_message
        assert db_session.query(SyncLog).count() == 5

    def test_non_finite_price_fails_alone(self, db_session):
        make_product(db_session, kara_id="KA", sku="KA-1", stock=None)
        make_product(db_session, kara_id="KB", sku="KB-1", stock=None)
        prices = [
            {"product_id": "KA", "price_type": "retail", "price": 100},
            {"product_id": "KA", "price_type": "wholesale", "price": "NaN", "min_quantity": 10},
            {"product_id": "KB", "price_type": "retail", "price": 200},
        ]
        run = sync_service.run_sync(FakeKaraClient(prices=prices), "prices")

        result = run.results[0]
        assert (result.processed, result.created, result.failed) == (3, 2, 1)
        assert result.status == "partial"
        assert result.errors[0]["record"] == "KA:wholesale"
        assert db_session.query(ProductPrice).count() == 2

        log = db_session.query(SyncLog).one()
        assert log.status == "partial"
        assert (log.records_processed, log.records_created, log.records_failed) == (3, 2, 1)

    @pytest.mark.parametrize("bad", ["Infinity", "-Infinity", "NaN", "sNaN"])
    def test_non_finite_quantity_fails_alone(self, db_session, bad):
        make_product(db_session, kara_id="KA", sku="KA-1", stock=None)
        make_product(db_session, kara_id="KB", sku="KB-1", stock=None)
        result = sync_service.reconcile("inventory", [
            {"product_id": "KA", "warehouse_id": "main", "quantity": 5},
            {"product_id": "KA", "warehouse_id": "north", "quantity": bad},
            {"product_id": "KB", "quantity": 3},
        ])
        assert (result.processed, result.created, result.failed) == (3, 2, 1)
        assert db_session.query(ProductInventory).count() == 2

    def test_sku_owned_by_another_product(self, db_session):
        make_product(db_session, sku="HM-1")
        result = sync_service.reconcile("products", [PRODUCTS[0]])
        assert result.failed == 1
        assert "HM-1" in result.errors[0]["error"]

    def test_non_object_record(self, db_session):
        result = sync_service.reconcile("brands", ["not a record", BRANDS[0]])
        assert result.failed == 1
        assert result.created == 1


# =============================================================================
# CATEGORIES AND SLUGS
# =============================================================================


class TestCategories:

    def test_duplicate_names_get_distinct_slugs(self, db_session):
        sync_service.reconcile("categories", [{"id": "A", "name": "Paint"}, {"id": "B", "name": "Paint"}])
        slugs = {c.kara_id: c.slug for c in db_session.query(Category).all()}
        assert slugs == {"A": "paint", "B": "paint-B"}

    def test_parent_cycle_is_not_linked(self, db_session):
        result = sync_service.reconcile(
            "categories",
            [{"id": "X", "name": "X", "parent_id": "Y"}, {"id": "Y", "name": "Y", "parent_id": "X"}],
        )
        assert result.created == 2
        assert any("cycle" in error["error"] for error in result.errors)
        x = db_session.query(Category).filter_by(kara_id="X").one()
        y = db_session.query(Category).filter_by(kara_id="Y").one()
        assert x.parent_id == y.id
        assert y.parent_id is None


# =============================================================================
# INVENTORY
# =============================================================================


class TestInventorySync:

    def test_reservations_survive_sync(self, db_session):
        product = make_product(db_session, kara_id="P9", sku="SKU-9", stock=10, reserved=4)
        sync_service.reconcile("inventory", [{"product_id": "P9", "warehouse_id": "main", "quantity": 25}])
        db_session.expire_all()
        row = db_session.query(ProductInventory).filter_by(product_id=product.id).one()
        assert row.quantity == 25
        assert row.reserved_quantity == 4

    def test_shrinking_stock_clamps_reservation(self, db_session):
        product = make_product(db_session, kara_id="P9", sku="SKU-9", stock=10, reserved=6)
        sync_service.reconcile("inventory", [{"product_id": "P9", "warehouse_id": "main", "quantity": 2}])
        db_session.expire_all()
        row = db_session.query(ProductInventory).filter_by(product_id=product.id).one()
        assert row.quantity == 2
        assert row.reserved_quantity == 2
        assert row.available_quantity == 0

    def test_negative_quantity_rejected(self, db_session):
        make_product(db_session, kara_id="P9", sku="SKU-9", stock=10)
        result = sync_service.reconcile("inventory", [{"product_id": "P9", "quantity": -1}])
        assert result.failed == 1


# =============================================================================
# INCREMENTAL
# =============================================================================


class TestIncremental:

    def test_uses_last_successful_sync(self, db_session):
        sync_service.run_sync(full_catalog(), "full")
        last = sync_service.last_successful_sync()

        client = full_catalog()
        sync_service.run_sync(client, "incremental")
        assert {since for _, since in client.calls} == {last.completed_at}

    def test_falls_back_to_given_since(self, db_session):
        client = full_catalog()
        run = sync_service.run_sync(client, "incremental", since="2026-01-01T00:00:00Z")
        assert run.since.isoformat() == "2026-01-01T00:00:00"
        assert all(since == run.since for _, since in client.calls)

    def test_logs_listing_newest_first(self, db_session):
        sync_service.run_sync(full_catalog(), "categories")
        sync_service.run_sync(full_catalog(), "brands")
        logs = sync_service.list_sync_logs(limit=1)
        assert [log.entity_type for log in logs] == ["brands"]
