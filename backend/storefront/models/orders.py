from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import money_to_json


ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled", "returned")
PAYMENT_METHODS = ("cash", "card", "transfer", "credit")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded", "partial")


class Order(db.Model):
    """
    Order header.

    Customer/shipping snapshot and financial totals are written once at
    creation. Afterwards only status, payment and logistics fields change.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        db.CheckConstraint(
            "status IN ('pending', 'confirmed', 'processing', 'shipped', 'delivered', 'cancelled', 'returned')",
            name="ck_orders_status",
        ),
        db.CheckConstraint("order_type IN ('b2b', 'b2c')", name="ck_orders_order_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable order number (e.g., "MT-20261018-1001")
    order_number = db.Column(db.String(50), nullable=False, unique=True)

    user_id = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    session_id = db.Column(db.String(255), nullable=True, index=True)

    status = db.Column(db.String(20), nullable=False, default="pending")
    order_type = db.Column(db.String(10), nullable=False, default="b2c")

    # Customer snapshot
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(20), nullable=False)
    customer_company = db.Column(db.String(255), nullable=True)
    customer_tax_id = db.Column(db.String(50), nullable=True)

    # Shipping snapshot
    shipping_address = db.Column(db.Text, nullable=False, default="")
    shipping_city = db.Column(db.String(100), nullable=True)
    shipping_postal_code = db.Column(db.String(20), nullable=True)
    shipping_notes = db.Column(db.Text, nullable=True)
    shipping_method = db.Column(db.String(20), nullable=False, default="standard")

    # Totals (computed once)
    total_items = db.Column(db.Integer, nullable=False)
    total_weight = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    subtotal = db.Column(db.Numeric(15, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    shipping_cost = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(15, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="IRR")

    payment_method = db.Column(db.String(20), nullable=False, default="cash")
    payment_status = db.Column(db.String(20), nullable=False, default="pending")

    # Logistics
    tracking_number = db.Column(db.String(255), nullable=True)
    shipped_at = db.Column(db.DateTime(timezone=True), nullable=True)
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    admin_notes = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number!r} status={self.status}>"

    def to_dict(self, *, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "status": self.status,
            "order_type": self.order_type,
            "customer": {
                "name": self.customer_name,
                "email": self.customer_email,
                "phone": self.customer_phone,
                "company": self.customer_company,
                "tax_id": self.customer_tax_id,
            },
            "shipping": {
                "address": self.shipping_address,
                "city": self.shipping_city,
                "postal_code": self.shipping_postal_code,
                "notes": self.shipping_notes,
                "method": self.shipping_method,
            },
            "total_items": self.total_items,
            "total_weight": money_to_json(self.total_weight),
            "subtotal": money_to_json(self.subtotal),
            "discount_amount": money_to_json(self.discount_amount),
            "tax_amount": money_to_json(self.tax_amount),
            "shipping_cost": money_to_json(self.shipping_cost),
            "total_amount": money_to_json(self.total_amount),
            "currency": self.currency,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "tracking_number": self.tracking_number,
            "shipped_at": to_utc_z(self.shipped_at),
            "delivered_at": to_utc_z(self.delivered_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """
    Order line snapshot.

    product_id is a soft reference (nulled if the product is deleted);
    name, SKU and price are copied at purchase time.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_kara_id = db.Column(db.String(50), nullable=True)
    product_name = db.Column(db.String(255), nullable=False)
    product_sku = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_type = db.Column(db.String(20), nullable=False)
    unit_price = db.Column(db.Numeric(15, 2), nullable=False)
    total_price = db.Column(db.Numeric(15, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_sku": self.product_sku,
            "quantity": self.quantity,
            "price_type": self.price_type,
            "unit_price": money_to_json(self.unit_price),
            "total_price": money_to_json(self.total_price),
            "created_at": to_utc_z(self.created_at),
        }


class OrderSequence(db.Model):
    """
    Atomic order-number counter.

    Numbers are handed out by UPDATE ... SET next_number = next_number + 1,
    never by read-then-write.
    """
    __tablename__ = "order_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1001)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
