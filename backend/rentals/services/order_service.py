# Overview: Order lifecycle: validation, the availability gate, and audited writes.

"""
Order Lifecycle Rules

STATUSES: QUOTE, CONFIRMED_PAID, DELIVERED, RETURNED. Any status may be
written by an update; there is no transition graph. Only CONFIRMED_PAID and
DELIVERED hold inventory.

AVAILABILITY GATE: a write that leaves the order active is checked when
- the order was not active before, or
- it was active and its dates or line quantities change.
The check needs both dates and, for every item, enough free units over
[pickup_date, return_date]. The order's own previous hold is left out of the
scan so it never competes with itself. Lines for the same item are summed
before checking.

FAILURES: validation, shortage and not-found errors are raised before anything
is written. Successful writes append exactly one audit entry.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from ..models import AuditAction, EntityType, Order, OrderStatus, User
from ..time_utils import now_iso
from ..validation import InsufficientStockError, NotFoundError, ValidationError
from .audit_service import AuditLogService
from .availability_service import ORDERS_COLLECTION, ITEMS_COLLECTION, AvailabilityEngine, calendar_day, parse_range
from .code_service import new_record_id, next_sequential_code
from .concurrency import booking_guard
from .record_store import RecordStore


logger = logging.getLogger(__name__)

CLIENTS_COLLECTION = "clients"

# Fields a caller can never set directly
SYSTEM_FIELDS = frozenset({"id", "code", "created_at", "updated_at"})

# Stored as plain YYYY-MM-DD; times go in the matching *_time field
DATE_FIELDS = ("pickup_date", "return_date", "assembly_date", "disassembly_date")


class OrderService:
    def __init__(
        self,
        store: RecordStore,
        audit: AuditLogService,
        availability: AvailabilityEngine | None = None,
        *,
        code_prefix: str = "PED-",
        serialize_bookings: bool = False,
    ):
        self.store = store
        self.audit = audit
        self.availability = availability or AvailabilityEngine(store)
        self.code_prefix = code_prefix
        self.serialize_bookings = serialize_bookings

    # -- reads -------------------------------------------------------------

    def get_all(self) -> list[Order]:
        return [Order.from_dict(r) for r in self.store.get_all(ORDERS_COLLECTION)]

    def get_by_id(self, order_id: str) -> Order | None:
        return next((o for o in self.get_all() if o.id == order_id), None)

    def get_by_client(self, client_id: str) -> list[Order]:
        return [o for o in self.get_all() if o.client_id == client_id]

    def get_active_for_item(self, item_id: str) -> list[Order]:
        return [o for o in self.get_all() if o.is_active and o.quantity_for(item_id)]

    # -- writes ------------------------------------------------------------

    def create(self, data: dict[str, Any], actor: User) -> Order:
        order = Order.from_dict({k: v for k, v in data.items() if k not in SYSTEM_FIELDS})
        self._prepare(order, refresh_client=False)
        self._validate(order)

        with booking_guard(self.serialize_bookings):
            previous = self.store.get_all(ORDERS_COLLECTION)
            if order.is_active:
                self._enforce_availability(order)

            now = now_iso()
            order.id = new_record_id("ORD-")
            order.code = next_sequential_code(self.code_prefix, [r.get("code") for r in previous])
            order.created_at = now
            order.updated_at = now
            for line in order.items:
                line.order_id = order.id

            snapshot = order.to_dict()
            self.audit.commit(
                ORDERS_COLLECTION,
                previous + [snapshot],
                previous,
                actor=actor,
                action=AuditAction.CREATE,
                entity_type=EntityType.ORDER,
                entity_id=order.id,
                changes=snapshot,
            )
        return order

    def update(self, order_id: str, data: dict[str, Any], actor: User) -> Order:
        patch = {k: v for k, v in data.items() if k not in SYSTEM_FIELDS}

        with booking_guard(self.serialize_bookings):
            previous = self.store.get_all(ORDERS_COLLECTION)
            index = next((i for i, r in enumerate(previous) if r.get("id") == order_id), None)
            if index is None:
                raise NotFoundError("Order not found")

            current = Order.from_dict(previous[index])
            updated = current.merged(patch)
            if "amount_pending" not in patch and ("items" in patch or "amount_paid" in patch):
                updated.amount_pending = None
            self._prepare(updated, refresh_client="client_id" in patch and "client_name" not in patch)
            self._validate(updated)

            if updated.is_active and (not current.is_active or _booking_changed(current, updated)):
                self._enforce_availability(updated, exclude_order_id=current.id)

            updated.updated_at = now_iso()
            for line in updated.items:
                line.order_id = updated.id

            records = list(previous)
            records[index] = updated.to_dict()
            self.audit.commit(
                ORDERS_COLLECTION,
                records,
                previous,
                actor=actor,
                action=AuditAction.UPDATE,
                entity_type=EntityType.ORDER,
                entity_id=order_id,
                changes={"old": current.to_dict(), "new": records[index]},
            )
        return updated

    def set_status(self, order_id: str, status: OrderStatus | str, actor: User) -> Order:
        return self.update(order_id, {"status": status}, actor)

    def delete(self, order_id: str, actor: User) -> None:
        """Deleting releases the order's hold at once; nothing else tracks it."""
        with booking_guard(self.serialize_bookings):
            previous = self.store.get_all(ORDERS_COLLECTION)
            target = next((r for r in previous if r.get("id") == order_id), None)
            if target is None:
                raise NotFoundError("Order not found")

            self.audit.commit(
                ORDERS_COLLECTION,
                [r for r in previous if r.get("id") != order_id],
                previous,
                actor=actor,
                action=AuditAction.DELETE,
                entity_type=EntityType.ORDER,
                entity_id=order_id,
                changes=target,
            )

    # -- internals ---------------------------------------------------------

    def _prepare(self, order: Order, *, refresh_client: bool) -> None:
        """Fill denormalized snapshots and derived money fields."""
        for field in DATE_FIELDS:
            setattr(order, field, _date_string(field, getattr(order, field)))

        if order.client_id and (refresh_client or not order.client_name):
            client = next(
                (c for c in self.store.get_all(CLIENTS_COLLECTION) if c.get("id") == order.client_id),
                None,
            )
            if client is not None:
                order.client_name = client.get("full_name") or order.client_name

        items_by_id = None
        for line in order.items:
            if not line.item_name or not line.item_code:
                if items_by_id is None:
                    items_by_id = {r.get("id"): r for r in self.store.get_all(ITEMS_COLLECTION)}
                item = items_by_id.get(line.item_id)
                if item is not None:
                    line.item_name = line.item_name or item.get("name", "")
                    line.item_code = line.item_code or item.get("code")
            if line.id is None:
                line.id = new_record_id("OI-")
            if line.total_value is None:
                line.total_value = round(line.quantity * line.unit_value, 2)

        order.total_value = round(sum(line.total_value or 0.0 for line in order.items), 2)
        if order.amount_pending is None:
            order.amount_pending = round(max(0.0, order.total_value - order.amount_paid), 2)

    def _validate(self, order: Order) -> None:
        if not order.client_id:
            raise ValidationError("Client is required")
        if order.payment_method is None:
            raise ValidationError("Payment method is required")
        for line in order.items:
            line.validate()

        if order.has_dates:
            if calendar_day(order.return_date) < calendar_day(order.pickup_date):
                raise ValidationError("return_date must not be before pickup_date")

        if order.is_active and not order.has_dates:
            raise ValidationError("Pickup and return dates are required to confirm an order")

    def _enforce_availability(self, order: Order, *, exclude_order_id: str | None = None) -> None:
        start, end = parse_range(order.pickup_date, order.return_date)
        names = {line.item_id: line.item_name for line in order.items}

        for item_id, requested in order.requested_quantities().items():
            available = self.availability.get_availability(
                item_id, start, end, exclude_order_id=exclude_order_id
            )
            if requested > available:
                logger.info(
                    "Booking rejected: %s needs %s of %s, %s free (%s..%s)",
                    order.id or "new order", requested, item_id, available,
                    order.pickup_date, order.return_date,
                )
                raise InsufficientStockError(
                    item_id=item_id,
                    item_name=names.get(item_id) or item_id,
                    available=available,
                    requested=requested,
                )


def _date_string(field: str, value: Any) -> str | None:
    if not isinstance(value, (str, date)):
        if value is None:
            return None
        raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
    try:
        day = calendar_day(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
    return day.date().isoformat() if day is not None else None


def _booking_changed(before: Order, after: Order) -> bool:
    return (
        before.pickup_date != after.pickup_date
        or before.return_date != after.return_date
        or before.requested_quantities() != after.requested_quantities()
    )
