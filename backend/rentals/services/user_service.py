# Overview: User accounts: bcrypt credentials, login validation and the bootstrap admin.

"""
User Service

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 4 characters (the bootstrap admin password is "admin")
- E-mail uniqueness is case-insensitive
- password_hash never leaves the service in audit entries or public dicts
- Only admins may reset another user's password
"""

from __future__ import annotations

import logging
from typing import Any

import bcrypt

from ..models import AuditAction, EntityType, User, UserRole
from ..time_utils import now_iso
from ..validation import (
    DuplicateRecordError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .audit_service import AuditLogService
from .code_service import new_record_id
from .record_store import RecordStore


logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"

MIN_PASSWORD_LENGTH = 4
BCRYPT_ROUNDS = 12

SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at", "password_hash"})

# Actor stamped on entries written by bootstrap commands
SYSTEM_ACTOR = User(name="system", email="system@localhost", role=UserRole.ADMIN, id="SYSTEM")


def validate_password(password: str | None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    validate_password(password)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Timing-safe check; a missing or malformed hash never matches."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


class UserService:
    def __init__(self, store: RecordStore, audit: AuditLogService, *, bcrypt_rounds: int = BCRYPT_ROUNDS):
        self.store = store
        self.audit = audit
        self.bcrypt_rounds = bcrypt_rounds

    def get_all(self) -> list[User]:
        return [User.from_dict(r) for r in self.store.get_all(USERS_COLLECTION)]

    def get_by_id(self, user_id: str) -> User | None:
        return next((u for u in self.get_all() if u.id == user_id), None)

    def get_by_email(self, email: str) -> User | None:
        wanted = (email or "").strip().lower()
        return next((u for u in self.get_all() if u.email.lower() == wanted), None)

    def create(self, data: dict[str, Any], actor: User) -> User:
        payload = {k: v for k, v in data.items() if k not in SYSTEM_FIELDS}
        password = payload.pop("password", None)
        user = User.from_dict(payload)
        user.email = user.email.strip()
        user.validate()
        if self.get_by_email(user.email) is not None:
            raise DuplicateRecordError("A user with this email already exists")

        validate_password(password)
        previous = self.store.get_all(USERS_COLLECTION)
        now = now_iso()
        user.id = new_record_id("USR-")
        user.password_hash = hash_password(password, self.bcrypt_rounds)
        user.created_at = now
        user.updated_at = now

        self.audit.commit(
            USERS_COLLECTION,
            previous + [user.to_dict()],
            previous,
            actor=actor,
            action=AuditAction.CREATE,
            entity_type=EntityType.USER,
            entity_id=user.id,
            changes=user.to_public_dict(),
        )
        return user

    def update(self, user_id: str, data: dict[str, Any], actor: User) -> User:
        """Profile update. Passwords change only through change_password/reset_password."""
        patch = {k: v for k, v in data.items() if k not in SYSTEM_FIELDS}
        if "password" in patch:
            raise ValidationError("Use change_password or reset_password to change a password")

        current = self._require(user_id)
        updated = current.merged(patch)
        updated.email = updated.email.strip()
        updated.validate()
        if updated.email.lower() != current.email.lower():
            existing = self.get_by_email(updated.email)
            if existing is not None and existing.id != user_id:
                raise DuplicateRecordError("A user with this email already exists")

        return self._replace(
            updated,
            actor,
            changes={"old": current.to_public_dict(), "new": updated.to_public_dict()},
        )

    def delete(self, user_id: str, actor: User) -> None:
        if actor.id == user_id:
            raise ValidationError("You cannot delete your own account")

        previous = self.store.get_all(USERS_COLLECTION)
        target = next((r for r in previous if r.get("id") == user_id), None)
        if target is None:
            raise NotFoundError("User not found")

        self.audit.commit(
            USERS_COLLECTION,
            [r for r in previous if r.get("id") != user_id],
            previous,
            actor=actor,
            action=AuditAction.DELETE,
            entity_type=EntityType.USER,
            entity_id=user_id,
            changes=User.from_dict(target).to_public_dict(),
        )

    def change_password(self, user_id: str, current_password: str, new_password: str) -> User:
        user = self._require(user_id)
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        user.password_hash = hash_password(new_password, self.bcrypt_rounds)
        return self._replace(user, user, changes={"password": "changed"})

    def reset_password(self, user_id: str, new_password: str, admin: User) -> User:
        if not admin.is_admin:
            raise PermissionDeniedError("Only admins can reset passwords")
        user = self._require(user_id)
        user.password_hash = hash_password(new_password, self.bcrypt_rounds)
        return self._replace(user, admin, changes={"password": "reset"})

    def validate_login(self, email: str, password: str) -> User | None:
        """Returns the user for valid credentials, otherwise None."""
        user = self.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email)
            return None
        return user

    def ensure_default_admin(self, email: str, password: str) -> User:
        """Create the bootstrap admin unless a user with that e-mail exists."""
        existing = self.get_by_email(email)
        if existing is not None:
            return existing
        logger.info("Creating default admin %s", email)
        return self.create(
            {"name": "Administrador", "email": email, "role": UserRole.ADMIN.value, "password": password},
            SYSTEM_ACTOR,
        )

    def _require(self, user_id: str) -> User:
        user = self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _replace(self, user: User, actor: User, *, changes: dict[str, Any]) -> User:
        previous = self.store.get_all(USERS_COLLECTION)
        user.updated_at = now_iso()
        records = [user.to_dict() if r.get("id") == user.id else r for r in previous]
        self.audit.commit(
            USERS_COLLECTION,
            records,
            previous,
            actor=actor,
            action=AuditAction.UPDATE,
            entity_type=EntityType.USER,
            entity_id=user.id,
            changes=changes,
        )
        return user
