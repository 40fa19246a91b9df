# Overview: Kara catalog reconciliation; per-record upserts, sync runs in dependency order, sync logs.

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from flask import current_app
from sqlalchemy import case, or_, update
from sqlalchemy.exc import SQLAlchemyError

from .. import messages
from ..extensions import db
from ..models import Brand, Category, Product, ProductInventory, ProductPrice, SyncLog
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import ValidationError
from .kara_client import (
    RECORD_TYPES,
    KaraApiError,
    KaraBrand,
    KaraCategory,
    KaraClient,
    KaraInventory,
    KaraPrice,
    KaraProduct,
)
"""
Reconciliation rules

- Every record is upserted in its own transaction, keyed on the Kara id
  (prices on (product, tier, min_quantity), inventory on (product, warehouse)).
  A failing record is rolled back, counted and logged; the batch continues.
- Entity types run in dependency order: categories, brands, products, prices,
  inventory. A fetch failure marks that entity type as failed and the run
  moves on to the next one.
- reserved_quantity belongs to the inventory ledger: reconciliation replaces
  on-hand quantity only, clamping the reservation if stock shrank below it.
- sync_logs is append-only; each entity type writes exactly one row per run.
"""


ENTITY_ORDER = ("categories", "brands", "products", "prices", "inventory")
SYNC_TYPES = ("full", "incremental") + ENTITY_ORDER

# Per-log cap on stored record errors
MAX_LOGGED_ERRORS = 100


class ReconcileError(ValueError):
    """A single external record cannot be applied (unknown reference, SKU clash)."""


@dataclass
class ReconcileResult:
    entity_type: str
    processed: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: list = field(default_factory=list)
    fetch_error: str | None = None

    @property
    def synced(self) -> int:
        return self.created + self.updated

    @property
    def status(self) -> str:
        if self.fetch_error:
            return "error"
        if not self.failed:
            return "success"
        return "partial" if self.synced else "error"

    def to_dict(self) -> dict:
        return {
            "entity_type": self.entity_type,
            "status": self.status,
            "synced": self.synced,
            "failed": self.failed,
            "records_processed": self.processed,
            "records_created": self.created,
            "records_updated": self.updated,
            "records_failed": self.failed,
            "errors": list(self.errors),
            "fetch_error": self.fetch_error,
        }


@dataclass
class SyncRun:
    sync_type: str
    since: datetime | None
    started_at: datetime
    completed_at: datetime | None = None
    results: list = field(default_factory=list)

    @property
    def status(self) -> str:
        statuses = {result.status for result in self.results}
        if not statuses or statuses == {"success"}:
            return "success"
        if statuses == {"error"}:
            return "error"
        return "partial"

    def to_dict(self) -> dict:
        return {
            "sync_type": self.sync_type,
            "status": self.status,
            "since": self.since.isoformat() if self.since else None,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "records_processed": sum(r.processed for r in self.results),
            "records_created": sum(r.created for r in self.results),
            "records_updated": sum(r.updated for r in self.results),
            "records_failed": sum(r.failed for r in self.results),
            "results": {r.entity_type: r.to_dict() for r in self.results},
        }


# =============================================================================
# Helpers
# =============================================================================

def slugify(name: str) -> str:
    """Lower-case, whitespace runs -> '-'. Non-Latin letters are kept as-is."""
    return re.sub(r"\s+", "-", (name or "").strip().lower())


def _unique_slug(model, name: str, kara_id: str, exclude_id: int | None) -> str:
    base = slugify(name) or f"item-{kara_id}"

    def taken(slug: str) -> bool:
        query = db.session.query(model.id).filter(model.slug == slug)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        return query.first() is not None

    if not taken(base):
        return base
    candidate = f"{base}-{kara_id}"
    suffix = 2
    while taken(candidate):
        candidate = f"{base}-{kara_id}-{suffix}"
        suffix += 1
    return candidate


def _local_id(model, kara_id: str | None) -> int | None:
    if not kara_id:
        return None
    return db.session.query(model.id).filter(model.kara_id == kara_id).scalar()


def _product_for(kara_product_id: str) -> Product:
    product = db.session.query(Product).filter(Product.kara_id == kara_product_id).first()
    if product is None:
        raise ReconcileError(f"Unknown product kara_id={kara_product_id}")
    return product


def _record_key(raw: Any, entity_type: str, index: int) -> str:
    if isinstance(raw, dict):
        if entity_type in ("prices", "inventory"):
            parts = [raw.get("product_id"), raw.get("price_type") or raw.get("warehouse_id")]
            return ":".join(str(p) for p in parts if p is not None) or f"#{index}"
        if raw.get("id") is not None:
            return str(raw["id"])
    return f"#{index}"


# =============================================================================
# Entity upserts (return True when a row was created)
# =============================================================================

def _upsert_category(record: KaraCategory, now: datetime) -> bool:
    row = db.session.query(Category).filter(Category.kara_id == record.id).first()
    slug = _unique_slug(Category, record.name, record.id, row.id if row else None)
    created = row is None
    if created:
        row = Category(kara_id=record.id, name=record.name, slug=slug)
        db.session.add(row)
    row.name = record.name
    row.slug = slug
    row.description = record.description
    row.is_active = record.is_active
    row.last_synced_at = now
    db.session.flush()
    return created


def _upsert_brand(record: KaraBrand, now: datetime) -> bool:
    row = db.session.query(Brand).filter(Brand.kara_id == record.id).first()
    slug = _unique_slug(Brand, record.name, record.id, row.id if row else None)
    created = row is None
    if created:
        row = Brand(kara_id=record.id, name=record.name, slug=slug)
        db.session.add(row)
    row.name = record.name
    row.slug = slug
    row.description = record.description
    row.country = record.country
    row.is_active = record.is_active
    row.last_synced_at = now
    db.session.flush()
    return created


def _upsert_product(record: KaraProduct, now: datetime) -> bool:
    row = db.session.query(Product).filter(Product.kara_id == record.id).first()

    clash = (
        db.session.query(Product.id)
        .filter(Product.sku == record.sku)
        .filter(or_(Product.kara_id.is_(None), Product.kara_id != record.id))
        .first()
    )
    if clash is not None:
        raise ReconcileError(f"SKU {record.sku!r} already belongs to product {clash[0]}")

    category_id = _local_id(Category, record.category_id)
    brand_id = _local_id(Brand, record.brand_id)
    slug = _unique_slug(Product, record.name, record.id, row.id if row else None)

    created = row is None
    if created:
        row = Product(kara_id=record.id, name=record.name, slug=slug, sku=record.sku)
        db.session.add(row)
    row.name = record.name
    row.slug = slug
    row.sku = record.sku
    row.barcode = record.barcode
    row.description = record.description
    row.category_id = category_id
    row.brand_id = brand_id
    row.is_active = record.is_active
    row.weight = record.weight
    row.dimensions = record.dimensions
    row.last_synced_at = now
    db.session.flush()
    return created


def _upsert_price(record: KaraPrice, now: datetime) -> bool:
    product = _product_for(record.product_id)
    effective_from = parse_iso_datetime(record.effective_from)
    row = (
        db.session.query(ProductPrice)
        .filter_by(product_id=product.id, price_type=record.price_type, min_quantity=record.min_quantity)
        .first()
    )
    created = row is None
    if created:
        row = ProductPrice(
            product_id=product.id,
            price_type=record.price_type,
            min_quantity=record.min_quantity,
            price=record.price,
            effective_from=effective_from or now,
        )
        db.session.add(row)
    elif effective_from is not None:
        row.effective_from = effective_from
    row.product_kara_id = record.product_id
    row.price = record.price
    row.compare_price = record.compare_price
    row.is_active = True
    db.session.flush()
    return created


def _upsert_inventory(record: KaraInventory, now: datetime) -> bool:
    product = _product_for(record.product_id)
    last_updated = parse_iso_datetime(record.last_updated) or now
    row = (
        db.session.query(ProductInventory)
        .filter_by(product_id=product.id, warehouse_kara_id=record.warehouse_id)
        .first()
    )
    if row is None:
        db.session.add(
            ProductInventory(
                product_id=product.id,
                product_kara_id=record.product_id,
                warehouse_kara_id=record.warehouse_id,
                quantity=record.quantity,
                reserved_quantity=min(record.reserved_quantity, record.quantity),
                min_stock_level=record.min_stock_level,
                last_updated=last_updated,
            )
        )
        db.session.flush()
        return True

    if row.reserved_quantity > record.quantity:
        current_app.logger.warning(
            "Inventory for product %s/%s shrank to %s below %s reserved; clamping reservation",
            record.product_id,
            record.warehouse_id,
            record.quantity,
            row.reserved_quantity,
        )
    # One statement so a concurrent reservation cannot slip between read and write
    db.session.execute(
        update(ProductInventory)
        .where(ProductInventory.id == row.id)
        .values(
            quantity=record.quantity,
            reserved_quantity=case(
                (ProductInventory.reserved_quantity > record.quantity, record.quantity),
                else_=ProductInventory.reserved_quantity,
            ),
            min_stock_level=record.min_stock_level,
            last_updated=last_updated,
            product_kara_id=record.product_id,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    db.session.expire(row)
    return False


_UPSERTS = {
    "categories": _upsert_category,
    "brands": _upsert_brand,
    "products": _upsert_product,
    "prices": _upsert_price,
    "inventory": _upsert_inventory,
}


def _creates_cycle(category: Category, parent: Category) -> bool:
    node, seen = parent, set()
    while node is not None:
        if node.id == category.id or node.id in seen:
            return True
        seen.add(node.id)
        node = node.parent
    return False


def _link_category_parents(links: dict[str, str | None], result: ReconcileResult) -> None:
    """Second pass so a child may arrive before its parent in the same batch."""
    for kara_id, parent_kara_id in links.items():
        category = db.session.query(Category).filter(Category.kara_id == kara_id).first()
        if category is None:
            continue
        parent = None
        if parent_kara_id:
            parent = db.session.query(Category).filter(Category.kara_id == parent_kara_id).first()
            if parent is None:
                current_app.logger.warning("Category %s: parent %s not found", kara_id, parent_kara_id)
            elif _creates_cycle(category, parent):
                result.errors.append({"record": kara_id, "error": f"parent {parent_kara_id} would create a cycle"})
                current_app.logger.warning("Category %s: parent %s would create a cycle", kara_id, parent_kara_id)
                continue
        category.parent = parent
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            result.errors.append({"record": kara_id, "error": str(exc)})
            current_app.logger.warning("Category %s: linking parent failed: %s", kara_id, exc)


# =============================================================================
# Public API
# =============================================================================

def reconcile(entity_type: str, records: Iterable[dict], *, now: datetime | None = None) -> ReconcileResult:
    """
    Upsert a batch of Kara records of one entity type.

    Partial-failure semantics: each record commits on its own; a bad record
    is rolled back, counted in `failed`, and the rest of the batch continues.
    """
    if entity_type not in _UPSERTS:
        raise ValidationError(messages.INVALID_SYNC_TYPE, details={"entity_type": entity_type})
    upsert = _UPSERTS[entity_type]
    record_type = RECORD_TYPES[entity_type]
    now = now or utcnow()
    result = ReconcileResult(entity_type=entity_type)
    parent_links: dict[str, str | None] = {}

    for index, raw in enumerate(records):
        result.processed += 1
        key = _record_key(raw, entity_type, index)
        try:
            if not isinstance(raw, dict):
                raise ReconcileError("record is not an object")
            record = record_type.from_dict(raw)
            created = upsert(record, now)
            db.session.commit()
        except (ValueError, ArithmeticError, SQLAlchemyError) as exc:
            db.session.rollback()
            result.failed += 1
            result.errors.append({"record": key, "error": str(exc)})
            current_app.logger.warning("Sync %s record %s failed: %s", entity_type, key, exc)
            continue

        if created:
            result.created += 1
        else:
            result.updated += 1
        if entity_type == "categories":
            parent_links[record.id] = record.parent_id

    if parent_links:
        _link_category_parents(parent_links, result)
    return result


def last_successful_sync(entity_type: str | None = None) -> SyncLog | None:
    query = db.session.query(SyncLog).filter(SyncLog.status == "success", SyncLog.completed_at.isnot(None))
    if entity_type:
        query = query.filter(SyncLog.entity_type == entity_type)
    return query.order_by(SyncLog.completed_at.desc(), SyncLog.id.desc()).first()


def list_sync_logs(*, limit: int = 50, sync_type: str | None = None, entity_type: str | None = None) -> list[SyncLog]:
    query = db.session.query(SyncLog)
    if sync_type:
        query = query.filter(SyncLog.sync_type == sync_type)
    if entity_type:
        query = query.filter(SyncLog.entity_type == entity_type)
    return query.order_by(SyncLog.started_at.desc(), SyncLog.id.desc()).limit(limit).all()


def _write_log(sync_type: str, result: ReconcileResult, started_at: datetime, completed_at: datetime) -> SyncLog:
    error_message = result.fetch_error
    if error_message is None and result.failed:
        error_message = f"{result.failed} of {result.processed} records failed"
    log = SyncLog(
        sync_type=sync_type,
        entity_type=result.entity_type,
        status=result.status,
        records_processed=result.processed,
        records_created=result.created,
        records_updated=result.updated,
        records_failed=result.failed,
        error_message=error_message,
        error_details={"errors": result.errors[:MAX_LOGGED_ERRORS]} if result.errors else None,
        started_at=started_at,
        completed_at=completed_at,
    )
    db.session.add(log)
    db.session.commit()
    return log


def run_sync(client: KaraClient, sync_type: str = "full", since: datetime | str | None = None) -> SyncRun:
    """
    Run a synchronization: full, incremental, or one entity type.

    Incremental runs fetch records updated since the last successful sync
    (falling back to `since`, then to everything).
    """
    if sync_type not in SYNC_TYPES:
        raise ValidationError(messages.INVALID_SYNC_TYPE, details={"sync_type": sync_type})

    since_dt = parse_iso_datetime(since) if since is not None else None
    if sync_type == "incremental":
        last = last_successful_sync()
        if last is not None:
            since_dt = parse_iso_datetime(last.completed_at)
    entity_types = ENTITY_ORDER if sync_type in ("full", "incremental") else (sync_type,)

    run = SyncRun(sync_type=sync_type, since=since_dt, started_at=utcnow())
    current_app.logger.info("Starting %s sync (since=%s)", sync_type, since_dt)

    for entity_type in entity_types:
        started_at = utcnow()
        try:
            records = client.fetch(entity_type, since_dt)
        except KaraApiError as exc:
            result = ReconcileResult(entity_type=entity_type, fetch_error=str(exc))
            current_app.logger.warning("Sync %s: fetch failed: %s", entity_type, exc)
        else:
            try:
                result = reconcile(entity_type, records, now=started_at)
            except Exception as exc:
                db.session.rollback()
                current_app.logger.exception("Sync %s aborted", entity_type)
                result = ReconcileResult(entity_type=entity_type, fetch_error=f"aborted: {exc}")
        _write_log(sync_type, result, started_at, utcnow())
        run.results.append(result)
        current_app.logger.info(
            "Sync %s: %s (created=%s updated=%s failed=%s)",
            entity_type,
            result.status,
            result.created,
            result.updated,
            result.failed,
        )

    run.completed_at = utcnow()
    current_app.logger.info("Finished %s sync: %s", sync_type, run.status)
    return run
