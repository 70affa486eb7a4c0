# Overview: Supplier records with CPF/CNPJ validation.

from __future__ import annotations

from typing import Any

from ..models import AuditAction, EntityType, Supplier, User
from ..time_utils import now_iso
from ..validation import NotFoundError
from .audit_service import AuditLogService
from .code_service import new_record_id
from .record_store import RecordStore


SUPPLIERS_COLLECTION = "suppliers"

SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})


class SupplierService:
    def __init__(self, store: RecordStore, audit: AuditLogService):
        self.store = store
        self.audit = audit

    def get_all(self) -> list[Supplier]:
        return [Supplier.from_dict(r) for r in self.store.get_all(SUPPLIERS_COLLECTION)]

    def get_by_id(self, supplier_id: str) -> Supplier | None:
        return next((s for s in self.get_all() if s.id == supplier_id), None)

    def create(self, data: dict[str, Any], actor: User) -> Supplier:
        supplier = Supplier.from_dict({k: v for k, v in data.items() if k not in SYSTEM_FIELDS})
        supplier.validate()

        previous = self.store.get_all(SUPPLIERS_COLLECTION)
        now = now_iso()
        supplier.id = new_record_id("SUP-")
        supplier.created_at = now
        supplier.updated_at = now

        snapshot = supplier.to_dict()
        self.audit.commit(
            SUPPLIERS_COLLECTION,
            previous + [snapshot],
            previous,
            actor=actor,
            action=AuditAction.CREATE,
            entity_type=EntityType.SUPPLIER,
            entity_id=supplier.id,
            changes=snapshot,
        )
        return supplier

    def update(self, supplier_id: str, data: dict[str, Any], actor: User) -> Supplier:
        previous = self.store.get_all(SUPPLIERS_COLLECTION)
        index = next((i for i, r in enumerate(previous) if r.get("id") == supplier_id), None)
        if index is None:
            raise NotFoundError("Supplier not found")

        current = Supplier.from_dict(previous[index])
        updated = current.merged({k: v for k, v in data.items() if k not in SYSTEM_FIELDS})
        updated.validate()
        updated.updated_at = now_iso()

        records = list(previous)
        records[index] = updated.to_dict()
        self.audit.commit(
            SUPPLIERS_COLLECTION,
            records,
            previous,
            actor=actor,
            action=AuditAction.UPDATE,
            entity_type=EntityType.SUPPLIER,
            entity_id=supplier_id,
            changes={"old": current.to_dict(), "new": records[index]},
        )
        return updated

    def delete(self, supplier_id: str, actor: User) -> None:
        previous = self.store.get_all(SUPPLIERS_COLLECTION)
        target = next((r for r in previous if r.get("id") == supplier_id), None)
        if target is None:
            raise NotFoundError("Supplier not found")

        self.audit.commit(
            SUPPLIERS_COLLECTION,
            [r for r in previous if r.get("id") != supplier_id],
            previous,
            actor=actor,
            action=AuditAction.DELETE,
            entity_type=EntityType.SUPPLIER,
            entity_id=supplier_id,
            changes=target,
        )
