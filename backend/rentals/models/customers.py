from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..validation import ValidationError, digits_only, is_valid_cpf
from .base import RecordModel


class ClientStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DEFAULTER = "DEFAULTER"
    BLOCKED = "BLOCKED"


@dataclass
class Client(RecordModel):
    ENUM_FIELDS = {"status": ClientStatus}
    MONEY_FIELDS = ("total_spent",)

    full_name: str
    cpf: str
    phone: str = ""
    email: Optional[str] = None
    address: str = ""
    birth_date: Optional[str] = None
    status: ClientStatus = ClientStatus.ACTIVE
    notes: Optional[str] = None
    # Derived from order history; see ClientService.refresh_total_spent
    total_spent: float = 0.0
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def cpf_digits(self) -> str:
        return digits_only(self.cpf)

    def validate(self) -> None:
        if not (self.full_name or "").strip():
            raise ValidationError("full_name is required")
        if not is_valid_cpf(self.cpf):
            raise ValidationError("Invalid CPF")


@dataclass
class ClientHistory:
    client_id: str
    orders: list = field(default_factory=list)
    total_orders: int = 0
    total_spent: float = 0.0

    def to_dict(self) -> dict:
        return {
            "client_id": self.client_id,
            "orders": [o.to_dict() for o in self.orders],
            "total_orders": self.total_orders,
            "total_spent": self.total_spent,
        }
