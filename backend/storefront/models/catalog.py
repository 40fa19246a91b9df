from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import money_to_json


class Category(db.Model):
    """
    Product category, reconciled from Kara.

    kara_id is the external identifier (unique when present). parent_id forms
    a tree; cycles are not checked by the database.
    """
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    kara_id = db.Column(db.String(50), nullable=True, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_synced_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    parent = db.relationship("Category", remote_side=[id], backref=db.backref("children", lazy=True))

    def __repr__(self) -> str:
        return f"<Category id={self.id} kara_id={self.kara_id!r} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kara_id": self.kara_id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "parent_id": self.parent_id,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
            "last_synced_at": to_utc_z(self.last_synced_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Brand(db.Model):
    __tablename__ = "brands"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    kara_id = db.Column(db.String(50), nullable=True, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    country = db.Column(db.String(100), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_synced_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Brand id={self.id} kara_id={self.kara_id!r} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kara_id": self.kara_id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "country": self.country,
            "is_active": self.is_active,
            "last_synced_at": to_utc_z(self.last_synced_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Product master data.

    SKU is globally unique. kara_id is unique when present; reconciliation
    upserts are keyed on it.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_active", "category_id", "is_active"),
        db.Index("ix_products_brand_active", "brand_id", "is_active"),
        db.CheckConstraint("min_order_quantity >= 1", name="ck_products_min_order_quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kara_id = db.Column(db.String(50), nullable=True, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    sku = db.Column(db.String(100), nullable=False, unique=True)
    barcode = db.Column(db.String(100), nullable=True)
    description = db.Column(db.Text, nullable=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id", ondelete="SET NULL"), nullable=True)

    unit = db.Column(db.String(50), nullable=False, default="عدد")
    weight = db.Column(db.Numeric(10, 3), nullable=True)  # grams
    dimensions = db.Column(db.String(100), nullable=True)

    min_order_quantity = db.Column(db.Integer, nullable=False, default=1)
    max_order_quantity = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    last_synced_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    brand = db.relationship("Brand", backref=db.backref("products", lazy=True))
    prices = db.relationship("ProductPrice", back_populates="product", lazy="selectin")
    inventory = db.relationship("ProductInventory", back_populates="product", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self, *, include_relations: bool = False) -> dict:
        data = {
            "id": self.id,
            "kara_id": self.kara_id,
            "name": self.name,
            "slug": self.slug,
            "sku": self.sku,
            "barcode": self.barcode,
            "description": self.description,
            "category_id": self.category_id,
            "brand_id": self.brand_id,
            "unit": self.unit,
            "weight": money_to_json(self.weight),
            "dimensions": self.dimensions,
            "min_order_quantity": self.min_order_quantity,
            "max_order_quantity": self.max_order_quantity,
            "is_active": self.is_active,
            "is_featured": self.is_featured,
            "last_synced_at": to_utc_z(self.last_synced_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_relations:
            data["category"] = {"id": self.category.id, "name": self.category.name} if self.category else None
            data["brand"] = {"id": self.brand.id, "name": self.brand.name} if self.brand else None
            data["prices"] = [price.to_dict() for price in self.prices]
            data["inventory"] = [row.to_dict() for row in self.inventory]
            data["available_quantity"] = sum(max(row.available_quantity or 0, 0) for row in self.inventory)
        return data


class ProductPrice(db.Model):
    """
    One price row per (product, tier, min_quantity).

    Tiers: wholesale (b2b) and retail (b2c). A row applies while
    effective_from <= now < effective_to (open-ended when effective_to is null).
    """
    __tablename__ = "product_prices"
    __table_args__ = (
        db.UniqueConstraint("product_id", "price_type", "min_quantity", name="uq_product_prices_tier"),
        db.CheckConstraint("price_type IN ('wholesale', 'retail')", name="ck_product_prices_type"),
        db.CheckConstraint("price >= 0", name="ck_product_prices_price"),
        db.CheckConstraint("min_quantity >= 1", name="ck_product_prices_min_quantity"),
        db.Index("ix_product_prices_effective", "effective_from", "effective_to"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    product_kara_id = db.Column(db.String(50), nullable=True)
    price_type = db.Column(db.String(20), nullable=False)
    price = db.Column(db.Numeric(15, 2), nullable=False)
    compare_price = db.Column(db.Numeric(15, 2), nullable=True)
    min_quantity = db.Column(db.Integer, nullable=False, default=1)
    currency = db.Column(db.String(3), nullable=False, default="IRR")
    effective_from = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    effective_to = db.Column(db.DateTime(timezone=True), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", back_populates="prices")

    def __repr__(self) -> str:
        return f"<ProductPrice product_id={self.product_id} {self.price_type} min={self.min_quantity} price={self.price}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "price_type": self.price_type,
            "price": money_to_json(self.price),
            "compare_price": money_to_json(self.compare_price),
            "min_quantity": self.min_quantity,
            "currency": self.currency,
            "effective_from": to_utc_z(self.effective_from),
            "effective_to": to_utc_z(self.effective_to),
            "is_active": self.is_active,
        }


class ProductInventory(db.Model):
    """
    Stock per (product, warehouse).

    available_quantity is derived by the database. reserved_quantity is only
    changed by the inventory ledger (order reservation/release); the check
    constraints keep it within [0, quantity].
    """
    __tablename__ = "product_inventory"
    __table_args__ = (
        db.UniqueConstraint("product_id", "warehouse_kara_id", name="uq_product_inventory_warehouse"),
        db.CheckConstraint("quantity >= 0", name="ck_product_inventory_quantity"),
        db.CheckConstraint("reserved_quantity >= 0", name="ck_product_inventory_reserved_floor"),
        db.CheckConstraint("reserved_quantity <= quantity", name="ck_product_inventory_reserved_cap"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    product_kara_id = db.Column(db.String(50), nullable=True)
    warehouse_kara_id = db.Column(db.String(50), nullable=False, default="main")
    quantity = db.Column(db.Integer, nullable=False, default=0)
    reserved_quantity = db.Column(db.Integer, nullable=False, default=0)
    available_quantity = db.Column(db.Integer, db.Computed("quantity - reserved_quantity", persisted=True))
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)
    last_updated = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", back_populates="inventory")

    def __repr__(self) -> str:
        return (
            f"<ProductInventory product_id={self.product_id} warehouse={self.warehouse_kara_id!r} "
            f"quantity={self.quantity} reserved={self.reserved_quantity}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "warehouse_id": self.warehouse_kara_id,
            "quantity": self.quantity,
            "reserved_quantity": self.reserved_quantity,
            "available_quantity": self.available_quantity,
            "min_stock_level": self.min_stock_level,
            "last_updated": to_utc_z(self.last_updated),
        }
