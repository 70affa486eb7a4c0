# backend/rentals/routes/system.py
"""
System health and bulk maintenance endpoints.

The clear endpoints are destructive: they require X-User-Id, an admin actor,
and {"confirm": true} in the body.
"""

import time

from flask import Blueprint, current_app, g, request

from ..decorators import error_response, get_services, require_actor
from ..services.record_store import StorageError

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_store_health() -> dict:
    """Probe the record store. Returns dict with status and details."""
    start_time = time.time()
    store = get_services().store
    try:
        collections = store.collections()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"backend": type(store).__name__, "collections": len(collections)},
        }
    except StorageError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Record store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Storage error",
        }


@system_bp.get("/health")
def health():
    store_health = check_store_health()
    replicator = get_services().store.replicator
    body = {
        "status": store_health["status"],
        "record_store": store_health,
        "replication": "enabled" if replicator is not None else "disabled",
    }
    return body, 200 if store_health["status"] == "healthy" else 503


def _clear(operation):
    data = request.get_json(silent=True) or {}
    if data.get("confirm") is not True:
        return {"error": "confirm must be true"}, 400
    if not g.actor.is_admin:
        return {"error": "Only admins can clear data"}, 403
    try:
        removed = operation(g.actor)
    except StorageError as e:
        return error_response(e)
    return {"ok": True, "removed": removed}, 200


@system_bp.post("/system/clear-catalog")
@require_actor
def clear_catalog_route():
    return _clear(get_services().system.clear_catalog)


@system_bp.post("/system/clear-orders")
@require_actor
def clear_orders_route():
    return _clear(get_services().system.clear_orders)
