from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class SystemSetting(db.Model):
    """
    Store-wide key/value settings.

    Pricing keys (tax_rate, free_shipping_threshold, bulk_discount_threshold,
    bulk_discount_rate, b2b_min_order, b2c_min_order) override the app config
    when present. is_public marks values safe to expose to shoppers.
    """
    __tablename__ = "system_settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), nullable=False, unique=True)
    value_json = db.Column(db.JSON, nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_public = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "key": self.key,
            "value_json": self.value_json,
            "description": self.description,
            "is_public": self.is_public,
            "updated_at": to_utc_z(self.updated_at),
        }
