# Overview: Catalog management for rentable items; availability is delegated to the engine.

from __future__ import annotations

from typing import Any

from ..models import ACTIVE_STATUSES, AuditAction, EntityType, Item, Order, User
from ..time_utils import now_iso
from ..validation import ConflictError, NotFoundError, ValidationError, coerce_int
from .audit_service import AuditLogService
from .availability_service import ITEMS_COLLECTION, ORDERS_COLLECTION, AvailabilityEngine, DateLike
from .code_service import new_record_id, next_sequential_code
from .record_store import RecordStore


SYSTEM_FIELDS = frozenset({"id", "code", "created_at", "updated_at"})


class ItemService:
    def __init__(
        self,
        store: RecordStore,
        audit: AuditLogService,
        availability: AvailabilityEngine | None = None,
        *,
        code_prefix: str = "CAD-",
    ):
        self.store = store
        self.audit = audit
        self.availability = availability or AvailabilityEngine(store)
        self.code_prefix = code_prefix

    def get_all(self) -> list[Item]:
        return [Item.from_dict(r) for r in self.store.get_all(ITEMS_COLLECTION)]

    def get_by_id(self, item_id: str) -> Item | None:
        return next((i for i in self.get_all() if i.id == item_id), None)

    def get_by_code(self, code: str) -> Item | None:
        return next((i for i in self.get_all() if i.code == code), None)

    def get_availability(self, item_id: str, start: DateLike, end: DateLike) -> int:
        return self.availability.get_availability(item_id, start, end)

    def get_available(self, start: DateLike, end: DateLike) -> list[Item]:
        return self.availability.list_available(start, end)

    def create(self, data: dict[str, Any], actor: User) -> Item:
        item = Item.from_dict({k: v for k, v in data.items() if k not in SYSTEM_FIELDS})
        item.validate()

        previous = self.store.get_all(ITEMS_COLLECTION)
        now = now_iso()
        item.id = new_record_id("ITEM-")
        item.code = next_sequential_code(self.code_prefix, [r.get("code") for r in previous])
        item.created_by = item.created_by or actor.id
        item.created_at = now
        item.updated_at = now

        snapshot = item.to_dict()
        self.audit.commit(
            ITEMS_COLLECTION,
            previous + [snapshot],
            previous,
            actor=actor,
            action=AuditAction.CREATE,
            entity_type=EntityType.ITEM,
            entity_id=item.id,
            changes=snapshot,
        )
        return item

    def update(self, item_id: str, data: dict[str, Any], actor: User) -> Item:
        previous = self.store.get_all(ITEMS_COLLECTION)
        index = next((i for i, r in enumerate(previous) if r.get("id") == item_id), None)
        if index is None:
            raise NotFoundError("Item not found")

        current = Item.from_dict(previous[index])
        patch = {k: v for k, v in data.items() if k not in SYSTEM_FIELDS}
        updated = current.merged(patch)
        updated.validate()
        if "quantity_total" in patch and updated.quantity_total <= 0:
            raise ValidationError("quantity_total must stay above zero; delete the item instead")
        updated.updated_at = now_iso()

        records = list(previous)
        records[index] = updated.to_dict()
        self.audit.commit(
            ITEMS_COLLECTION,
            records,
            previous,
            actor=actor,
            action=AuditAction.UPDATE,
            entity_type=EntityType.ITEM,
            entity_id=item_id,
            changes={"old": current.to_dict(), "new": records[index]},
        )
        return updated

    def adjust_quantity(self, item_id: str, delta: int, actor: User) -> Item:
        """
        Add or remove owned units.

        The result must stay above zero (delete the item instead) and must not
        drop below the units currently in maintenance.
        """
        delta = coerce_int("delta", delta)
        item = self.get_by_id(item_id)
        if item is None:
            raise NotFoundError("Item not found")

        new_total = item.quantity_total + delta
        if new_total <= 0:
            raise ValidationError("quantity_total must stay above zero; delete the item instead")
        if new_total < item.quantity_maintenance:
            raise ValidationError("quantity_total cannot drop below quantity_maintenance")

        return self.update(item_id, {"quantity_total": new_total}, actor)

    def delete(self, item_id: str, actor: User) -> None:
        previous = self.store.get_all(ITEMS_COLLECTION)
        target = next((r for r in previous if r.get("id") == item_id), None)
        if target is None:
            raise NotFoundError("Item not found")

        active = [
            o for o in (Order.from_dict(r) for r in self.store.get_all(ORDERS_COLLECTION))
            if o.status in ACTIVE_STATUSES and o.quantity_for(item_id)
        ]
        if active:
            raise ConflictError(
                f"Item cannot be deleted: it is used in {len(active)} active order(s)"
            )

        self.audit.commit(
            ITEMS_COLLECTION,
            [r for r in previous if r.get("id") != item_id],
            previous,
            actor=actor,
            action=AuditAction.DELETE,
            entity_type=EntityType.ITEM,
            entity_id=item_id,
            changes=target,
        )
