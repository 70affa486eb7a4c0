# Overview: Read-only Flask API routes for the audit log.

from flask import Blueprint, request

from ..decorators import error_response, get_services, require_actor

audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit-logs")


@audit_bp.get("")
@require_actor
def list_audit_logs_route():
    """
    List audit entries, newest first.

    Query params:
    - entity_type, entity_id: narrow to one record's trail (both required together)
    - limit: int (optional, default 200, max 1000)
    """
    audit = get_services().audit
    entity_type = request.args.get("entity_type")
    entity_id = request.args.get("entity_id")
    limit = request.args.get("limit", 200, type=int)
    limit = max(1, min(limit, 1000))

    if entity_type and entity_id:
        try:
            logs = audit.get_by_entity(entity_type, entity_id)
        except ValueError as e:
            return error_response(e)
    else:
        logs = audit.get_all()

    logs = sorted(logs, key=lambda log: log.created_at or "", reverse=True)[:limit]
    return {"logs": [log.to_dict() for log in logs], "count": len(logs)}
