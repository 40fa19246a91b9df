from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import money_to_json


class CartItem(db.Model):
    """
    One cart line per (owner, product, price tier).

    The owner is either a registered user or an anonymous session, never
    both. unit_price is the tier price when the line was added, refreshed on
    quantity updates; orders are priced from it.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", "price_type", name="uq_cart_items_user_line"),
        db.UniqueConstraint("session_id", "product_id", "price_type", name="uq_cart_items_session_line"),
        db.CheckConstraint(
            "(user_id IS NOT NULL AND session_id IS NULL) OR (user_id IS NULL AND session_id IS NOT NULL)",
            name="ck_cart_items_single_owner",
        ),
        db.CheckConstraint("quantity > 0", name="ck_cart_items_quantity"),
        db.CheckConstraint("price_type IN ('wholesale', 'retail')", name="ck_cart_items_price_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=True, index=True)
    session_id = db.Column(db.String(255), nullable=True, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price_type = db.Column(db.String(20), nullable=False)
    unit_price = db.Column(db.Numeric(15, 2), nullable=False)
    price_id = db.Column(db.Integer, db.ForeignKey("product_prices.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product")

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "product_id": self.product_id,
            "product": {
                "id": self.product.id,
                "name": self.product.name,
                "sku": self.product.sku,
                "weight": money_to_json(self.product.weight),
            } if self.product else None,
            "quantity": self.quantity,
            "price_type": self.price_type,
            "unit_price": money_to_json(self.unit_price),
            "total_price": money_to_json(self.line_total),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
