from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..validation import ValidationError
from .base import RecordModel


class UserRole(str, Enum):
    ADMIN = "admin"
    OPERATOR = "operator"
    VIEWER = "viewer"
    USER = "user"


@dataclass
class User(RecordModel):
    """
    Identity stamped on audit entries.

    password_hash is credential material; it is never returned by to_public_dict
    and never copied into audit entries.
    """

    ENUM_FIELDS = {"role": UserRole}

    name: str
    email: str
    role: UserRole = UserRole.USER
    password_hash: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_public_dict(self) -> dict:
        data = self.to_dict()
        data.pop("password_hash", None)
        return data

    def validate(self) -> None:
        if not (self.name or "").strip():
            raise ValidationError("name is required")
        if "@" not in (self.email or ""):
            raise ValidationError("A valid email is required")
