# Overview: Request decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request


def get_services():
    """The RentalServices container built by create_app."""
    return current_app.extensions["rentals"]


def require_actor(f):
    """
    Resolve the acting user from the X-User-Id header.

    Sets g.actor to the User record. This is an identity source for audit
    attribution only; there is no session or token check.

    Returns 401 if the header is missing or names no known user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = request.headers.get("X-User-Id")
        if not user_id:
            return jsonify({"error": "X-User-Id header required"}), 401

        actor = get_services().users.get_by_id(user_id)
        if actor is None:
            return jsonify({"error": "Unknown user"}), 401

        g.actor = actor
        return f(*args, **kwargs)

    return decorated_function


def error_response(exc: Exception):
    """Map a service exception onto the JSON error body and HTTP status."""
    from .services.record_store import StorageError, StorageFullError
    from .validation import (
        ConflictError,
        InsufficientStockError,
        NotFoundError,
        PermissionDeniedError,
        ValidationError,
    )

    if isinstance(exc, InsufficientStockError):
        return {
            "error": str(exc),
            "item_id": exc.item_id,
            "available": exc.available,
            "requested": exc.requested,
        }, 409
    if isinstance(exc, ConflictError):
        return {"error": str(exc)}, 409
    if isinstance(exc, NotFoundError):
        return {"error": str(exc)}, 404
    if isinstance(exc, PermissionDeniedError):
        return {"error": str(exc)}, 403
    if isinstance(exc, ValidationError):
        return {"error": str(exc)}, 400
    if isinstance(exc, StorageFullError):
        return {"error": str(exc)}, 507
    if isinstance(exc, StorageError):
        current_app.logger.exception("Storage failure")
        return {"error": str(exc)}, 500
    current_app.logger.exception("Unexpected error")
    return {"error": "Internal server error"}, 500
