# backend/rentals/__init__.py
from __future__ import annotations

import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate

# Collections the startup pull and `flask sync` commands walk
SYNCED_COLLECTIONS = ("items", "orders", "clients", "suppliers", "users", "audit_logs")


def _build_record_store(app: Flask, replicator):
    from .services.record_store import MemoryRecordStore, SqlRecordStore

    backend = app.config["RECORD_STORE_BACKEND"]
    capacity = app.config["RECORD_STORE_CAPACITY_BYTES"]
    if backend == "memory":
        return MemoryRecordStore(capacity_bytes=capacity, replicator=replicator)
    if backend == "sql":
        return SqlRecordStore(capacity_bytes=capacity, replicator=replicator)
    raise ValueError(f"Unknown RECORD_STORE_BACKEND: {backend}")


def _build_replicator(app: Flask):
    from .services.replication_service import HttpDocumentMirror, Replicator

    mirror_url = app.config.get("MIRROR_URL")
    if not mirror_url:
        return None
    mirror = HttpDocumentMirror(
        mirror_url,
        timeout=app.config["MIRROR_TIMEOUT_SECONDS"],
        batch_size=app.config["MIRROR_BATCH_SIZE"],
    )
    return Replicator(mirror, max_pending=app.config["MIRROR_QUEUE_SIZE"]).start()


def create_app(config_overrides: dict | None = None, record_store=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    logging.getLogger("rentals").setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services import build_services

    if record_store is None:
        replicator = _build_replicator(app)
        record_store = _build_record_store(app, replicator)

    app.extensions["rentals"] = build_services(
        record_store,
        serialize_bookings=app.config["SERIALIZE_BOOKINGS"],
        item_code_prefix=app.config["ITEM_CODE_PREFIX"],
        order_code_prefix=app.config["ORDER_CODE_PREFIX"],
        bcrypt_rounds=app.config["BCRYPT_ROUNDS"],
    )

    if record_store.replicator is not None and app.config["MIRROR_PULL_ON_START"]:
        from .services.replication_service import pull_into

        with app.app_context():
            db.create_all()
            pull_into(record_store, record_store.replicator.mirror, SYNCED_COLLECTIONS)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.items import items_bp
    from .routes.orders import orders_bp
    from .routes.clients import clients_bp
    from .routes.suppliers import suppliers_bp
    from .routes.users import users_bp
    from .routes.audit import audit_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(audit_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "X-User-Id, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
