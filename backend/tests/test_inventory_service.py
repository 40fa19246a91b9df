"""
Inventory ledger tests.

Verifies:
- Availability is summed across warehouse rows
- Reservations beyond availability fail without changing stock
- Reservations spread over warehouses, largest availability first
- Over-release floors reserved stock at zero
"""

import pytest

from storefront.models import ProductInventory
from storefront.services import inventory_service
from storefront.validation import InsufficientStockError, NotFoundError, ValidationError

from conftest import make_product


def _rows(session, product_id):
    session.expire_all()
    return {
        row.warehouse_kara_id: row
        for row in session.query(ProductInventory).filter_by(product_id=product_id).all()
    }


class TestAvailability:

    def test_sums_warehouses(self, db_session):
        product = make_product(db_session, stock=10, reserved=4)
        db_session.add(ProductInventory(product_id=product.id, warehouse_kara_id="north", quantity=5))
        db_session.commit()
        assert inventory_service.get_available_quantity(product.id) == 11

    def test_products_without_rows_have_nothing(self, db_session):
        product = make_product(db_session, stock=None)
        assert inventory_service.get_available_quantity(product.id) == 0
        assert inventory_service.get_available_quantities([product.id]) == {product.id: 0}


class TestReserve:

    def test_reserve_moves_units_to_reserved(self, db_session):
        product = make_product(db_session, stock=10)
        allocations = inventory_service.reserve(product.id, 4)
        assert allocations == [{"warehouse_id": "main", "quantity": 4}]
        row = _rows(db_session, product.id)["main"]
        assert row.reserved_quantity == 4
        assert row.available_quantity == 6

    def test_reserve_beyond_availability_changes_nothing(self, db_session):
        product = make_product(db_session, stock=5, reserved=2)
        with pytest.raises(InsufficientStockError) as exc:
            inventory_service.reserve(product.id, 4)
        assert exc.value.available == 3
        assert exc.value.requested == 4
        assert _rows(db_session, product.id)["main"].reserved_quantity == 2

    def test_reserve_spans_warehouses(self, db_session):
        product = make_product(db_session, stock=3)
        db_session.add(ProductInventory(product_id=product.id, warehouse_kara_id="north", quantity=8))
        db_session.commit()

        allocations = inventory_service.reserve(product.id, 10)
        assert allocations == [
            {"warehouse_id": "north", "quantity": 8},
            {"warehouse_id": "main", "quantity": 2},
        ]
        rows = _rows(db_session, product.id)
        assert rows["north"].reserved_quantity == 8
        assert rows["main"].reserved_quantity == 2
        assert inventory_service.get_available_quantity(product.id) == 1

    def test_quantity_must_be_positive(self, db_session):
        product = make_product(db_session, stock=5)
        with pytest.raises(ValidationError):
            inventory_service.reserve(product.id, 0)


class TestRelease:

    def test_release_returns_units(self, db_session):
        product = make_product(db_session, stock=10, reserved=6)
        result = inventory_service.release(product.id, 4)
        assert result == {"product_id": product.id, "requested": 4, "released": 4, "over_released": 0}
        assert _rows(db_session, product.id)["main"].reserved_quantity == 2

    def test_over_release_floors_at_zero(self, db_session):
        product = make_product(db_session, stock=10, reserved=3)
        result = inventory_service.release(product.id, 5)
        assert result["released"] == 3
        assert result["over_released"] == 2
        assert _rows(db_session, product.id)["main"].reserved_quantity == 0

    def test_release_without_inventory_rows(self, db_session):
        product = make_product(db_session, stock=None)
        with pytest.raises(NotFoundError):
            inventory_service.release(product.id, 1)
