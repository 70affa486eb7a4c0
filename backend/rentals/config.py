# backend/rentals/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the app by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///rentals.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Record store substrate: "sql" (record_collections table) or "memory"
    RECORD_STORE_BACKEND = os.environ.get("RECORD_STORE_BACKEND", "sql")
    # 0 means no quota
    RECORD_STORE_CAPACITY_BYTES = int(os.environ.get("RECORD_STORE_CAPACITY_BYTES", "0"))

    # Remote document mirror; replication is disabled when unset
    MIRROR_URL = os.environ.get("MIRROR_URL")
    MIRROR_TIMEOUT_SECONDS = float(os.environ.get("MIRROR_TIMEOUT_SECONDS", "10"))
    MIRROR_BATCH_SIZE = 450
    MIRROR_QUEUE_SIZE = 100

    # Opt-in lock around availability-check-then-write (single process only)
    SERIALIZE_BOOKINGS = _env_flag("SERIALIZE_BOOKINGS")

    ITEM_CODE_PREFIX = "CAD-"
    ORDER_CODE_PREFIX = "PED-"

    DEFAULT_ADMIN_EMAIL = os.environ.get("DEFAULT_ADMIN_EMAIL", "admin@cerejas.com")
    DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "admin")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Pull non-empty remote collections into the local store at startup
    MIRROR_PULL_ON_START = _env_flag("MIRROR_PULL_ON_START")

    # bcrypt cost factor; tests lower it
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
