# backend/storefront/routes/system.py
"""
System health endpoint.

Reports database reachability and Kara catalog reachability. Kara being
down only degrades the store: catalog reads keep serving local data.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Product, SyncLog
from ..services.kara_client import get_kara_client
from ..services.sync_service import last_successful_sync
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        sync_log_count = db.session.query(SyncLog).count()
        last_sync = last_successful_sync()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "sync_logs": sync_log_count,
                "last_successful_sync": to_utc_z(last_sync.completed_at) if last_sync else None,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_kara_health() -> dict:
    start_time = time.time()
    health = get_kara_client().health_check()
    elapsed_ms = (time.time() - start_time) * 1000
    if health["success"]:
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"version": health["version"]},
        }
    return {
        "status": "degraded",
        "latency_ms": round(elapsed_ms, 2),
        "warning": health["message"],
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy, or degraded (Kara unreachable)
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    kara_health = check_kara_health()

    all_checks = [database_health, kara_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    response = {
        "success": http_status == 200,
        "message": overall_status,
        "data": {
            "status": overall_status,
            "timestamp": to_utc_z(utcnow()),
            "total_latency_ms": round((time.time() - start_time) * 1000, 2),
            "checks": {
                "database": database_health,
                "kara": kara_health,
            },
        },
    }
    return response, http_status
