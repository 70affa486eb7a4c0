# Overview: Flask API routes for suppliers.

from flask import Blueprint, g, request

from ..decorators import error_response, get_services, require_actor
from ..models import Supplier
from ..services.record_store import StorageError
from ..validation import ModelValidationPolicy, validate_payload

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "cpf_cnpj", "contact", "products_supplied", "notes"},
    required_on_create={"name", "cpf_cnpj"},
)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_actor
def list_suppliers_route():
    return {"suppliers": [s.to_dict() for s in get_services().suppliers.get_all()]}


@suppliers_bp.post("")
@require_actor
def create_supplier_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
        created = get_services().suppliers.create(patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return created.to_dict(), 201


@suppliers_bp.get("/<supplier_id>")
@require_actor
def get_supplier_route(supplier_id: str):
    supplier = get_services().suppliers.get_by_id(supplier_id)
    if supplier is None:
        return {"error": "Supplier not found"}, 404
    return supplier.to_dict()


@suppliers_bp.put("/<supplier_id>")
@require_actor
def update_supplier_route(supplier_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
        updated = get_services().suppliers.update(supplier_id, patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return updated.to_dict(), 200


@suppliers_bp.delete("/<supplier_id>")
@require_actor
def delete_supplier_route(supplier_id: str):
    try:
        get_services().suppliers.delete(supplier_id, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return {"ok": True}, 200
