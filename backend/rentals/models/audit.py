from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .base import RecordModel


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    DELETE_ALL = "DELETE_ALL"


class EntityType(str, Enum):
    CLIENT = "CLIENT"
    ITEM = "ITEM"
    ORDER = "ORDER"
    SUPPLIER = "SUPPLIER"
    USER = "USER"


@dataclass
class AuditLog(RecordModel):
    """Append-only; never consulted for business rules."""

    ENUM_FIELDS = {"action": AuditAction, "entity_type": EntityType}

    user_id: str
    user_name: str
    action: AuditAction
    entity_type: EntityType
    entity_id: str
    changes: dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[str] = None
