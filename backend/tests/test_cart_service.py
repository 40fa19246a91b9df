"""
Cart tests.

Verifies:
- One line per (owner, product, tier); repeated adds merge
- Tier pricing by user class, wholesale restricted to b2b
- Quantity rules: stock, product min/max, wholesale tier floor
- Cart totals end to end
"""

from decimal import Decimal

import pytest

from storefront.identity import AnonymousIdentity, RegisteredIdentity
from storefront.models import CartItem, Product
from storefront.services import cart_service
from storefront.validation import BusinessRuleError, InsufficientStockError, NotFoundError

from conftest import make_product


GUEST = AnonymousIdentity(session_id="guest-session-1")


# =============================================================================
# ADD / MERGE
# =============================================================================


class TestAddItem:

    def test_new_line_uses_retail_for_guests(self, db_session):
        product = make_product(db_session, retail=1000, wholesale=900)
        line, merged = cart_service.add_item(GUEST, product.id, 2)
        assert merged is False
        assert line.price_type == "retail"
        assert line.unit_price == Decimal("1000")
        assert line.session_id == "guest-session-1"
        assert line.user_id is None

    def test_b2b_profile_gets_wholesale(self, db_session, b2b_user):
        product = make_product(db_session, retail=1000, wholesale=900)
        line, _ = cart_service.add_item(RegisteredIdentity(b2b_user.id), product.id, 2)
        assert line.price_type == "wholesale"
        assert line.unit_price == Decimal("900")

    def test_repeated_add_merges_into_one_line(self, db_session):
        product = make_product(db_session, retail=1000)
        cart_service.add_item(GUEST, product.id, 2)
        line, merged = cart_service.add_item(GUEST, product.id, 3)
        assert merged is True
        assert line.quantity == 5
        assert db_session.query(CartItem).count() == 1

    def test_failed_merge_keeps_previous_quantity(self, db_session):
        product = make_product(db_session, retail=1000, stock=10)
        cart_service.add_item(GUEST, product.id, 6)
        with pytest.raises(InsufficientStockError):
            cart_service.add_item(GUEST, product.id, 6)
        lines = cart_service.get_cart(GUEST)
        assert [line.quantity for line in lines] == [6]

    def test_guest_and_user_carts_are_separate(self, db_session, b2c_user):
        product = make_product(db_session, retail=1000)
        cart_service.add_item(GUEST, product.id, 1)
        cart_service.add_item(RegisteredIdentity(b2c_user.id), product.id, 4)
        assert [line.quantity for line in cart_service.get_cart(GUEST)] == [1]
        assert [line.quantity for line in cart_service.get_cart(RegisteredIdentity(b2c_user.id))] == [4]

    def test_cart_line_limit(self, app, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "MAX_CART_ITEMS", 1)
        first = make_product(db_session, sku="SKU-A", retail=1000)
        second = make_product(db_session, sku="SKU-B", retail=1000)
        cart_service.add_item(GUEST, first.id, 1)
        with pytest.raises(BusinessRuleError):
            cart_service.add_item(GUEST, second.id, 1)


class TestLineRules:

    def test_wholesale_not_available_to_consumers(self, db_session, b2c_user):
        product = make_product(db_session, retail=1000, wholesale=900)
        with pytest.raises(BusinessRuleError):
            cart_service.add_item(RegisteredIdentity(b2c_user.id), product.id, 1, "wholesale")

    def test_wholesale_tier_floor_is_rejected(self, db_session, b2b_user):
        product = make_product(db_session, wholesale=900, wholesale_min=10)
        with pytest.raises(BusinessRuleError) as exc:
            cart_service.add_item(RegisteredIdentity(b2b_user.id), product.id, 5)
        assert exc.value.details["min_quantity"] == 10
        assert db_session.query(CartItem).count() == 0

    def test_more_than_available_stock(self, db_session):
        product = make_product(db_session, retail=1000, stock=3)
        with pytest.raises(InsufficientStockError) as exc:
            cart_service.add_item(GUEST, product.id, 4)
        assert exc.value.available == 3

    def test_product_maximum(self, db_session):
        product = make_product(db_session, retail=1000, max_order_quantity=5)
        with pytest.raises(BusinessRuleError):
            cart_service.add_item(GUEST, product.id, 6)

    def test_product_minimum(self, db_session):
        product = make_product(db_session, retail=1000, min_order_quantity=3)
        with pytest.raises(BusinessRuleError):
            cart_service.add_item(GUEST, product.id, 2)

    def test_unpriced_product_cannot_be_added(self, db_session):
        product = make_product(db_session)
        with pytest.raises(BusinessRuleError):
            cart_service.add_item(GUEST, product.id, 1)

    def test_inactive_product_not_found(self, db_session):
        product = make_product(db_session, retail=1000)
        db_session.get(Product, product.id).is_active = False
        db_session.commit()
        with pytest.raises(NotFoundError):
            cart_service.add_item(GUEST, product.id, 1)


# =============================================================================
# UPDATE / REMOVE
# =============================================================================


class TestUpdateAndRemove:

    def test_update_sets_quantity(self, db_session):
        product = make_product(db_session, retail=1000)
        cart_service.add_item(GUEST, product.id, 2)
        line = cart_service.update_item(GUEST, product.id, 7)
        assert line.quantity == 7

    def test_update_to_zero_removes_line(self, db_session):
        product = make_product(db_session, retail=1000)
        cart_service.add_item(GUEST, product.id, 2)
        assert cart_service.update_item(GUEST, product.id, 0) is None
        assert cart_service.get_cart(GUEST) == []

    def test_update_missing_line(self, db_session):
        product = make_product(db_session, retail=1000)
        with pytest.raises(NotFoundError):
            cart_service.update_item(GUEST, product.id, 3)

    def test_remove_and_clear(self, db_session):
        first = make_product(db_session, sku="SKU-A", retail=1000)
        second = make_product(db_session, sku="SKU-B", retail=1000)
        cart_service.add_item(GUEST, first.id, 1)
        cart_service.add_item(GUEST, second.id, 1)
        assert cart_service.remove_item(GUEST, first.id) == 1
        assert cart_service.clear_cart(GUEST) == 1
        assert cart_service.get_cart(GUEST) == []


# =============================================================================
# TOTALS
# =============================================================================


class TestSummary:

    def test_wholesale_cart_below_business_minimum(self, db_session, b2b_user):
        product = make_product(db_session, retail=1000, wholesale=900, weight=250)
        identity = RegisteredIdentity(b2b_user.id)
        cart_service.add_item(identity, product.id, 20)

        snapshot = cart_service.summarize(identity)
        assert snapshot.user_class == "b2b"
        assert snapshot.total_quantity == 20
        assert snapshot.total_weight == Decimal("5000")
        assert snapshot.summary.subtotal == Decimal("18000")
        assert snapshot.summary.tax_amount == Decimal("1620")
        assert snapshot.summary.total_amount == Decimal("19620")
        assert snapshot.summary.can_checkout is False

    def test_shipping_method_adds_cost(self, db_session):
        product = make_product(db_session, retail=10_000)
        cart_service.add_item(GUEST, product.id, 6)
        snapshot = cart_service.summarize(GUEST, shipping_method="standard")
        assert snapshot.summary.shipping_cost == Decimal("25000")
        assert snapshot.summary.total_amount == Decimal("60000") + Decimal("5400") + Decimal("25000")

    def test_availability_per_line(self, db_session):
        product = make_product(db_session, retail=1000, stock=9, reserved=2)
        cart_service.add_item(GUEST, product.id, 1)
        assert cart_service.availability_for_cart(GUEST) == {product.id: 7}
