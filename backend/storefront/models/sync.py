from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


SYNC_STATUSES = ("running", "success", "partial", "error")


class SyncLog(db.Model):
    """
    One row per entity type per Kara synchronization run.

    Append-only: rows are written once when the entity type finishes and are
    never updated afterwards.

    STATUS:
    - success: every record reconciled
    - partial: some records failed, the rest were applied
    - error: nothing applied (fetch failed or every record failed)
    """
    __tablename__ = "sync_logs"
    __table_args__ = (
        db.Index("ix_sync_logs_type_started", "sync_type", "started_at"),
        db.CheckConstraint(
            "status IN ('running', 'success', 'partial', 'error')",
            name="ck_sync_logs_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # full, incremental, or a single entity type
    sync_type = db.Column(db.String(50), nullable=False)
    entity_type = db.Column(db.String(50), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False)

    records_processed = db.Column(db.Integer, nullable=False, default=0)
    records_created = db.Column(db.Integer, nullable=False, default=0)
    records_updated = db.Column(db.Integer, nullable=False, default=0)
    records_failed = db.Column(db.Integer, nullable=False, default=0)

    error_message = db.Column(db.Text, nullable=True)
    error_details = db.Column(db.JSON, nullable=True)

    started_at = db.Column(db.DateTime(timezone=True), nullable=False)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<SyncLog id={self.id} {self.sync_type}/{self.entity_type} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sync_type": self.sync_type,
            "entity_type": self.entity_type,
            "status": self.status,
            "records_processed": self.records_processed,
            "records_created": self.records_created,
            "records_updated": self.records_updated,
            "records_failed": self.records_failed,
            "error_message": self.error_message,
            "error_details": self.error_details,
            "started_at": to_utc_z(self.started_at),
            "completed_at": to_utc_z(self.completed_at),
        }
