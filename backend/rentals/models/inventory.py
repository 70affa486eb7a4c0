from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..validation import ValidationError, is_valid_tax_id
from .base import RecordModel


class ItemCategory(str, Enum):
    LOUCAS = "LOUÇAS"
    ITENS_MESA = "ITENS_MESA"
    PAINEIS = "PAINEIS"
    MOVEIS = "MOVEIS"
    TECIDO_SUBLIMATICO = "TECIDO_SUBLIMATICO"
    TECIDO_COR_SOLIDA = "TECIDO_COR_SOLIDA"
    LONAS = "LONAS"
    TAPETE_TECIDO = "TAPETE_TECIDO"
    TAPETE_LONA = "TAPETE_LONA"
    DISPLAY = "DISPLAY"
    FOLHAGEM = "FOLHAGEM"
    ILUMINACAO = "ILUMINACAO"


class ItemCondition(str, Enum):
    NORMAL = "NORMAL"
    DAMAGED = "DAMAGED"


class ItemLocation(str, Enum):
    STOCK = "STOCK"
    IN_PARTY = "IN_PARTY"
    MAINTENANCE = "MAINTENANCE"


@dataclass
class Item(RecordModel):
    """
    A rentable catalog entry.

    quantity_total is the owned stock; quantity_maintenance units are withdrawn
    from the rentable pool regardless of dates. A DAMAGED item cannot be booked.
    """

    ENUM_FIELDS = {"category": ItemCategory, "condition": ItemCondition, "location": ItemLocation}
    INT_FIELDS = ("quantity_total", "quantity_maintenance")
    MONEY_FIELDS = ("rental_value", "replacement_value")
    LIST_FIELDS = ("photos",)

    name: str
    category: ItemCategory
    quantity_total: int = 0
    quantity_maintenance: int = 0
    condition: ItemCondition = ItemCondition.NORMAL
    location: ItemLocation = ItemLocation.STOCK
    rental_value: float = 0.0
    replacement_value: float = 0.0
    description: Optional[str] = None
    damage_description: Optional[str] = None
    damage_photo: Optional[str] = None
    dimensions: Optional[str] = None
    material: Optional[str] = None
    photos: list[str] = field(default_factory=list)
    supplier_id: Optional[str] = None
    created_by: Optional[str] = None
    id: Optional[str] = None
    code: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_damaged(self) -> bool:
        return self.condition == ItemCondition.DAMAGED

    @property
    def rentable_quantity(self) -> int:
        """Owned units minus maintenance holds, before any booking is considered."""
        return max(0, self.quantity_total - self.quantity_maintenance)

    def validate(self) -> None:
        if not (self.name or "").strip():
            raise ValidationError("name is required")
        if self.quantity_total < 0:
            raise ValidationError("quantity_total must be >= 0")
        if self.quantity_maintenance < 0:
            raise ValidationError("quantity_maintenance must be >= 0")
        if self.quantity_maintenance > self.quantity_total:
            raise ValidationError("quantity_maintenance cannot exceed quantity_total")
        if self.rental_value < 0 or self.replacement_value < 0:
            raise ValidationError("rental_value and replacement_value must be >= 0")


@dataclass
class Supplier(RecordModel):
    name: str
    cpf_cnpj: str
    contact: str = ""
    products_supplied: str = ""
    notes: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def validate(self) -> None:
        if not (self.name or "").strip():
            raise ValidationError("name is required")
        if not is_valid_tax_id(self.cpf_cnpj):
            raise ValidationError("cpf_cnpj must be a valid CPF or CNPJ")
