# Overview: Flask API routes for clients and their order history.

from flask import Blueprint, g, request

from ..decorators import error_response, get_services, require_actor
from ..models import Client
from ..services.record_store import StorageError
from ..validation import ModelValidationPolicy, validate_payload

CLIENT_POLICY = ModelValidationPolicy(
    writable_fields={"full_name", "cpf", "phone", "email", "address", "birth_date", "status", "notes"},
    required_on_create={"full_name", "cpf"},
)

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_actor
def list_clients_route():
    """List clients. ?search= matches name, CPF, phone or e-mail."""
    clients = get_services().clients
    query = request.args.get("search")
    found = clients.search(query) if query else clients.get_all()
    return {"clients": [c.to_dict() for c in found]}


@clients_bp.post("")
@require_actor
def create_client_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=False)
        created = get_services().clients.create(patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return created.to_dict(), 201


@clients_bp.get("/<client_id>")
@require_actor
def get_client_route(client_id: str):
    client = get_services().clients.get_by_id(client_id)
    if client is None:
        return {"error": "Client not found"}, 404
    return client.to_dict()


@clients_bp.put("/<client_id>")
@require_actor
def update_client_route(client_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=True)
        updated = get_services().clients.update(client_id, patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return updated.to_dict(), 200


@clients_bp.delete("/<client_id>")
@require_actor
def delete_client_route(client_id: str):
    try:
        get_services().clients.delete(client_id, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return {"ok": True}, 200


@clients_bp.get("/<client_id>/history")
@require_actor
def client_history_route(client_id: str):
    try:
        history = get_services().clients.get_history(client_id)
    except ValueError as e:
        return error_response(e)
    return history.to_dict()


@clients_bp.post("/<client_id>/refresh-total")
@require_actor
def refresh_client_total_route(client_id: str):
    try:
        client = get_services().clients.refresh_total_spent(client_id, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return client.to_dict(), 200
