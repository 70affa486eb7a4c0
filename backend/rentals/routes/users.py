# Overview: Flask API routes for user accounts and login validation.

"""
User Routes

SECURITY:
- password_hash is never returned (to_public_dict)
- POST /api/users/login is the only route that does not need X-User-Id
- Password resets for other users require the admin role
"""

from flask import Blueprint, g, request

from ..decorators import error_response, get_services, require_actor
from ..models import User
from ..services.record_store import StorageError
from ..validation import ModelValidationPolicy, validate_payload

USER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "role", "password"},
    required_on_create={"name", "email", "password"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.post("/login")
def login_route():
    """
    Validate credentials.

    Request body:
    {"email": "admin@cerejas.com", "password": "admin"}

    Returns the public user record; the caller sends its id as X-User-Id.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return {"error": "email and password are required"}, 400

    user = get_services().users.validate_login(email, password)
    if user is None:
        return {"error": "Invalid credentials"}, 401
    return {"user": user.to_public_dict()}


@users_bp.get("")
@require_actor
def list_users_route():
    return {"users": [u.to_public_dict() for u in get_services().users.get_all()]}


@users_bp.post("")
@require_actor
def create_user_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
        created = get_services().users.create(patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return created.to_public_dict(), 201


@users_bp.get("/<user_id>")
@require_actor
def get_user_route(user_id: str):
    user = get_services().users.get_by_id(user_id)
    if user is None:
        return {"error": "User not found"}, 404
    return user.to_public_dict()


@users_bp.put("/<user_id>")
@require_actor
def update_user_route(user_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
        updated = get_services().users.update(user_id, patch, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return updated.to_public_dict(), 200


@users_bp.delete("/<user_id>")
@require_actor
def delete_user_route(user_id: str):
    try:
        get_services().users.delete(user_id, g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return {"ok": True}, 200


@users_bp.post("/me/password")
@require_actor
def change_password_route():
    """Request body: {"current_password": "...", "new_password": "..."}"""
    data = request.get_json(silent=True) or {}
    try:
        get_services().users.change_password(
            g.actor.id, data.get("current_password") or "", data.get("new_password")
        )
    except (ValueError, StorageError) as e:
        return error_response(e)
    return {"ok": True}, 200


@users_bp.post("/<user_id>/reset-password")
@require_actor
def reset_password_route(user_id: str):
    """Admin only. Request body: {"new_password": "..."}"""
    data = request.get_json(silent=True) or {}
    try:
        get_services().users.reset_password(user_id, data.get("new_password"), g.actor)
    except (ValueError, StorageError) as e:
        return error_response(e)
    return {"ok": True}, 200
