# Overview: Flask API routes for the item catalog and availability queries.

"""
Item Routes

All routes require X-User-Id (see require_actor).

Availability endpoints take start/end as ISO dates (inclusive range):
- GET /api/items/<id>/availability?start=2024-01-02&end=2024-01-02
- GET /api/items/available?start=...&end=...
"""

from flask import Blueprint, g, request

from ..decorators import error_response, get_services, require_actor
from ..models import Item
from ..services.record_store import StorageError
from ..validation import ModelValidationPolicy, validate_payload

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "category", "quantity_total", "quantity_maintenance", "condition",
        "location", "rental_value", "replacement_value", "description",
        "damage_description", "damage_photo", "dimensions", "material", "photos",
        "supplier_id",
    },
    required_on_create={"name", "category"},
)

items_bp = Blueprint("items", __name__, url_prefix="/api/items")


@items_bp.get("")
@require_actor
def list_items_route():
    """List items. Optional ?code=CAD-001 narrows to one code."""
    items = get_services().items
    code = request.args.get("code")
    if code:
        item = items.get_by_code(code)
        return {"items": [item.to_dict()] if item else []}
    return {"items": [i.to_dict() for i in items.get_all()]}


@items_bp.get("/available")
@require_actor
def list_available_route():
    services = get_services()
    start = request.args.get("start")
    end = request.args.get("end")
    try:
        available = services.items.get_available(start, end)
        counts = services.availability.availability_map(start, end)
    except ValueError as e:
        return error_response(e)
    return {
        "start": start,
        "end": end,
        "items": [{**i.to_dict(), "available": counts.get(i.id, 0)} for i in available],
    }


@items_bp.post("")
@require_actor
def create_item_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
        created = get_services().items.create(patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return created.to_dict(), 201


@items_bp.get("/<item_id>")
@require_actor
def get_item_route(item_id: str):
    item = get_services().items.get_by_id(item_id)
    if item is None:
        return {"error": "Item not found"}, 404
    return item.to_dict()


@items_bp.put("/<item_id>")
@require_actor
def update_item_route(item_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)
        updated = get_services().items.update(item_id, patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return updated.to_dict(), 200


@items_bp.post("/<item_id>/adjust")
@require_actor
def adjust_item_route(item_id: str):
    """
    Add or remove owned units.

    Request body:
    {"delta": -2}
    """
    payload = request.get_json(silent=True) or {}
    if "delta" not in payload:
        return {"error": "delta is required"}, 400
    try:
        updated = get_services().items.adjust_quantity(item_id, payload["delta"], g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return updated.to_dict(), 200


@items_bp.delete("/<item_id>")
@require_actor
def delete_item_route(item_id: str):
    try:
        get_services().items.delete(item_id, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return {"ok": True}, 200


@items_bp.get("/<item_id>/availability")
@require_actor
def item_availability_route(item_id: str):
    start = request.args.get("start")
    end = request.args.get("end")
    try:
        available = get_services().items.get_availability(item_id, start, end)
    except ValueError as e:
        return error_response(e)
    return {"item_id": item_id, "start": start, "end": end, "available": available}
