from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..validation import ValidationError
from .base import RecordModel


class OrderStatus(str, Enum):
    QUOTE = "QUOTE"                    # quote, holds no stock
    CONFIRMED_PAID = "CONFIRMED_PAID"  # confirmed and paid, holds stock
    DELIVERED = "DELIVERED"            # out with the client, holds stock
    RETURNED = "RETURNED"              # back in stock


# Only these statuses commit inventory
ACTIVE_STATUSES = frozenset({OrderStatus.CONFIRMED_PAID, OrderStatus.DELIVERED})

# Statuses that count toward a client's spending
BILLABLE_STATUSES = frozenset({OrderStatus.CONFIRMED_PAID, OrderStatus.DELIVERED, OrderStatus.RETURNED})


class PartyType(str, Enum):
    MINIZINHA = "MINIZINHA"
    POCKET = "POCKET"
    BRONZE = "BRONZE"
    PEGUE_MONTE = "PEGUE_MONTE"
    FESTA_MESA_LOCAL = "FESTA_MESA_LOCAL"


class PaymentMethod(str, Enum):
    PIX = "PIX"
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    CASH = "CASH"


@dataclass
class OrderItem(RecordModel):
    """One booked line. item_name/item_code are snapshots taken at booking time."""

    INT_FIELDS = ("quantity",)
    MONEY_FIELDS = ("unit_value", "total_value", "replacement_value")

    item_id: str
    quantity: int
    item_name: str = ""
    item_code: Optional[str] = None
    unit_value: float = 0.0
    total_value: Optional[float] = None
    replacement_value: Optional[float] = None
    id: Optional[str] = None
    order_id: Optional[str] = None

    def validate(self) -> None:
        if not self.item_id:
            raise ValidationError("item_id is required on every order line")
        if self.quantity <= 0:
            raise ValidationError(f"quantity must be a positive integer (item {self.item_name or self.item_id})")
        if self.unit_value < 0:
            raise ValidationError("unit_value must be >= 0")


@dataclass
class Order(RecordModel):
    """
    A rental order. client_name is a snapshot, not a live reference.

    pickup_date/return_date bound an inclusive date range and are required
    whenever the status is active.
    """

    ENUM_FIELDS = {"status": OrderStatus, "party_type": PartyType, "payment_method": PaymentMethod}
    MONEY_FIELDS = ("total_value", "amount_paid", "amount_pending")
    INT_FIELDS = ("installments",)
    LIST_FIELDS = ("inspiration_photos", "assembly_photos")
    NESTED_FIELDS = {"items": OrderItem}

    client_id: Optional[str] = None
    client_name: str = ""
    party_type: Optional[PartyType] = None
    payment_method: Optional[PaymentMethod] = None
    status: OrderStatus = OrderStatus.QUOTE
    items: list[OrderItem] = field(default_factory=list)
    total_value: float = 0.0
    amount_paid: float = 0.0
    amount_pending: Optional[float] = None
    installments: Optional[int] = None
    pickup_date: Optional[str] = None
    pickup_time: Optional[str] = None
    return_date: Optional[str] = None
    return_time: Optional[str] = None
    assembly_date: Optional[str] = None
    assembly_time: Optional[str] = None
    disassembly_date: Optional[str] = None
    disassembly_time: Optional[str] = None
    inspiration_photos: list[str] = field(default_factory=list)
    assembly_photos: list[str] = field(default_factory=list)
    notes: Optional[str] = None
    created_by: Optional[str] = None
    id: Optional[str] = None
    code: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def has_dates(self) -> bool:
        return bool(self.pickup_date) and bool(self.return_date)

    def quantity_for(self, item_id: str) -> int:
        """Units of item_id held by this order, summed over every line for it."""
        return sum(line.quantity for line in self.items if line.item_id == item_id)

    def requested_quantities(self) -> dict[str, int]:
        totals: dict[str, int] = {}
        for line in self.items:
            totals[line.item_id] = totals.get(line.item_id, 0) + line.quantity
        return totals
