# Overview: Flask API routes for Kara synchronization; trigger runs, read sync logs, probe Kara health.

from flask import Blueprint, current_app, request

from .. import messages
from ..decorators import require_admin_key
from ..responses import error_response, storefront_error_response, success_response
from ..services import sync_service
from ..services.kara_client import get_kara_client
from ..validation import StorefrontError, coerce_int


sync_bp = Blueprint("sync", __name__, url_prefix="/api/sync")

_RUN_MESSAGES = {
    "success": messages.SYNC_COMPLETED,
    "partial": messages.SYNC_PARTIAL,
    "error": messages.SYNC_FAILED,
}


@sync_bp.post("")
@require_admin_key
def run_sync_route():
    """
    Admin only. Body: sync_type (full | incremental | categories | brands |
    products | prices | inventory, default full), since (ISO-8601, optional).

    Always 200 once the run finishes; per-entity failures are in the data
    and in sync_logs.
    """
    try:
        data = request.get_json(silent=True) or {}
        run = sync_service.run_sync(
            get_kara_client(),
            data.get("sync_type") or "full",
            since=data.get("since"),
        )
        return success_response(_RUN_MESSAGES[run.status], run.to_dict())
    except StorefrontError as e:
        return storefront_error_response(e)
    except ValueError as e:
        return error_response(messages.INVALID_INPUT, 400, error=str(e))
    except Exception as e:
        current_app.logger.exception("Failed to run sync")
        return error_response(messages.SYNC_FAILED, 500, error=str(e))


@sync_bp.get("/logs")
@require_admin_key
def sync_logs_route():
    try:
        limit = coerce_int(request.args.get("limit", 50), "limit")
        logs = sync_service.list_sync_logs(
            limit=max(1, min(limit, 500)),
            sync_type=request.args.get("sync_type") or None,
            entity_type=request.args.get("entity_type") or None,
        )
        return success_response(messages.SYNC_LOGS_FETCHED, [log.to_dict() for log in logs])
    except StorefrontError as e:
        return storefront_error_response(e)
    except Exception as e:
        current_app.logger.exception("Failed to list sync logs")
        return error_response(messages.INTERNAL_ERROR, 500, error=str(e))


@sync_bp.get("/health")
def kara_health_route():
    """Kara reachability; 503 when Kara is down so probes can alert."""
    health = get_kara_client().health_check()
    if health["success"]:
        return success_response(health["message"], health)
    return error_response(messages.KARA_UNREACHABLE, 503, error=health["message"])
