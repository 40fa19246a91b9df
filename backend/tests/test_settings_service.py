"""
Store settings tests.

Verifies:
- Pricing policy falls back to app config
- system_settings rows override config at call time
- Invalid pricing values are rejected on write and ignored on read
- Default seeding is idempotent
"""

from decimal import Decimal

import pytest

from storefront.models import SystemSetting
from storefront.services import settings_service
from storefront.validation import ValidationError


class TestPricingPolicy:

    def test_defaults_come_from_config(self, db_session):
        policy = settings_service.get_pricing_policy()
        assert policy.tax_rate == Decimal("0.09")
        assert policy.b2b_min_order == Decimal("500000")
        assert policy.b2c_min_order == Decimal("50000")
        assert "standard" in policy.shipping_rates

    def test_setting_row_overrides_config(self, db_session):
        settings_service.set_setting("tax_rate", 0.1)
        settings_service.set_setting("b2c_min_order", 75_000)
        policy = settings_service.get_pricing_policy()
        assert policy.tax_rate == Decimal("0.1")
        assert policy.b2c_min_order == Decimal("75000")

    def test_malformed_stored_value_is_ignored(self, db_session):
        db_session.add(SystemSetting(key="tax_rate", value_json="not-a-number"))
        db_session.commit()
        assert settings_service.get_pricing_policy().tax_rate == Decimal("0.09")


class TestSetSetting:

    def test_negative_pricing_value_rejected(self, db_session):
        with pytest.raises(ValidationError):
            settings_service.set_setting("free_shipping_threshold", -1)

    def test_rate_above_one_rejected(self, db_session):
        with pytest.raises(ValidationError):
            settings_service.set_setting("bulk_discount_rate", 5)

    def test_non_pricing_keys_are_stored_as_given(self, db_session):
        row = settings_service.set_setting("store_name", "Tahrir", is_public=True)
        assert row.value_json == "Tahrir"
        assert settings_service.get_setting("store_name") == "Tahrir"
        assert settings_service.get_setting("missing", "fallback") == "fallback"

    def test_upsert_keeps_one_row(self, db_session):
        settings_service.set_setting("tax_rate", 0.08)
        settings_service.set_setting("tax_rate", 0.07)
        assert db_session.query(SystemSetting).filter_by(key="tax_rate").count() == 1
        assert settings_service.get_setting("tax_rate") == 0.07


class TestSeeding:

    def test_seed_is_idempotent(self, db_session):
        first = settings_service.seed_default_settings()
        second = settings_service.seed_default_settings()
        assert first == len(settings_service.DEFAULT_SETTINGS)
        assert second == 0

    def test_seed_leaves_existing_values(self, db_session):
        settings_service.set_setting("tax_rate", 0.1)
        settings_service.seed_default_settings()
        assert settings_service.get_setting("tax_rate") == 0.1

    def test_public_only_listing(self, db_session):
        settings_service.seed_default_settings()
        public_keys = {row["key"] for row in settings_service.list_settings(public_only=True)}
        assert "tax_rate" in public_keys
        assert "bulk_discount_rate" not in public_keys
