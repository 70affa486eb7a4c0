# Overview: Flask API routes for rental orders; the availability gate runs in OrderService.

from flask import Blueprint, g, request

from ..decorators import error_response, get_services, require_actor
from ..models import Order
from ..services.record_store import StorageError
from ..validation import ModelValidationPolicy, validate_payload

ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "client_id", "client_name", "party_type", "payment_method", "status", "items",
        "amount_paid", "amount_pending", "installments", "pickup_date", "pickup_time",
        "return_date", "return_time", "assembly_date", "assembly_time",
        "disassembly_date", "disassembly_time", "inspiration_photos",
        "assembly_photos", "notes",
    },
    required_on_create={"client_id", "payment_method"},
)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_actor
def list_orders_route():
    """List orders. Optional ?client_id= filter."""
    orders = get_services().orders
    client_id = request.args.get("client_id")
    found = orders.get_by_client(client_id) if client_id else orders.get_all()
    return {"orders": [o.to_dict() for o in found]}


@orders_bp.post("")
@require_actor
def create_order_route():
    """
    Create an order.

    Request body:
    {
        "client_id": "CLI-...",          // required
        "payment_method": "PIX",         // required
        "status": "CONFIRMED_PAID",      // optional, default QUOTE
        "pickup_date": "2024-01-01",     // required for active statuses
        "return_date": "2024-01-03",
        "items": [{"item_id": "ITEM-...", "quantity": 4, "unit_value": 10.0}]
    }

    Returns 409 with "available" when a line exceeds free stock.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_POLICY, partial=False)
        created = get_services().orders.create(patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return created.to_dict(), 201


@orders_bp.get("/<order_id>")
@require_actor
def get_order_route(order_id: str):
    order = get_services().orders.get_by_id(order_id)
    if order is None:
        return {"error": "Order not found"}, 404
    return order.to_dict()


@orders_bp.put("/<order_id>")
@require_actor
def update_order_route(order_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_POLICY, partial=True)
        updated = get_services().orders.update(order_id, patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return updated.to_dict(), 200


@orders_bp.post("/<order_id>/status")
@require_actor
def set_order_status_route(order_id: str):
    payload = request.get_json(silent=True) or {}
    status = payload.get("status")
    if not status:
        return {"error": "status is required"}, 400
    try:
        updated = get_services().orders.set_status(order_id, status, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return updated.to_dict(), 200


@orders_bp.delete("/<order_id>")
@require_actor
def delete_order_route(order_id: str):
    try:
        get_services().orders.delete(order_id, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return {"ok": True}, 200
