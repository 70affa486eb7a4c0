# Overview: Client records with CPF uniqueness and derived spending history.

from __future__ import annotations

from typing import Any

from ..models import BILLABLE_STATUSES, AuditAction, Client, ClientHistory, EntityType, Order, User
from ..time_utils import now_iso
from ..validation import DuplicateRecordError, NotFoundError, digits_only
from .audit_service import AuditLogService
from .availability_service import ORDERS_COLLECTION
from .code_service import new_record_id
from .record_store import RecordStore


CLIENTS_COLLECTION = "clients"

SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at", "total_spent"})


class ClientService:
    def __init__(self, store: RecordStore, audit: AuditLogService):
        self.store = store
        self.audit = audit

    def get_all(self) -> list[Client]:
        return [Client.from_dict(r) for r in self.store.get_all(CLIENTS_COLLECTION)]

    def get_by_id(self, client_id: str) -> Client | None:
        return next((c for c in self.get_all() if c.id == client_id), None)

    def get_by_cpf(self, cpf: str) -> Client | None:
        """CPF lookup on digits only, so 529.982.247-25 and 52998224725 match."""
        wanted = digits_only(cpf)
        if not wanted:
            return None
        return next((c for c in self.get_all() if c.cpf_digits == wanted), None)

    def search(self, query: str) -> list[Client]:
        needle = (query or "").strip().lower()
        if not needle:
            return self.get_all()
        needle_digits = digits_only(needle)
        return [
            c for c in self.get_all()
            if needle in c.full_name.lower()
            or needle in (c.email or "").lower()
            or needle in (c.phone or "")
            or needle in c.cpf
            or (needle_digits and needle_digits in c.cpf_digits)
        ]

    def create(self, data: dict[str, Any], actor: User) -> Client:
        client = Client.from_dict({k: v for k, v in data.items() if k not in SYSTEM_FIELDS})
        client.validate()
        if self.get_by_cpf(client.cpf) is not None:
            raise DuplicateRecordError("A client with this CPF already exists")

        previous = self.store.get_all(CLIENTS_COLLECTION)
        now = now_iso()
        client.id = new_record_id("CLI-")
        client.total_spent = 0.0
        client.created_at = now
        client.updated_at = now

        snapshot = client.to_dict()
        self.audit.commit(
            CLIENTS_COLLECTION,
            previous + [snapshot],
            previous,
            actor=actor,
            action=AuditAction.CREATE,
            entity_type=EntityType.CLIENT,
            entity_id=client.id,
            changes=snapshot,
        )
        return client

    def update(self, client_id: str, data: dict[str, Any], actor: User) -> Client:
        return self._write_update(
            client_id, {k: v for k, v in data.items() if k not in SYSTEM_FIELDS}, actor
        )

    def delete(self, client_id: str, actor: User) -> None:
        previous = self.store.get_all(CLIENTS_COLLECTION)
        target = next((r for r in previous if r.get("id") == client_id), None)
        if target is None:
            raise NotFoundError("Client not found")

        self.audit.commit(
            CLIENTS_COLLECTION,
            [r for r in previous if r.get("id") != client_id],
            previous,
            actor=actor,
            action=AuditAction.DELETE,
            entity_type=EntityType.CLIENT,
            entity_id=client_id,
            changes=target,
        )

    def get_history(self, client_id: str) -> ClientHistory:
        if self.get_by_id(client_id) is None:
            raise NotFoundError("Client not found")
        orders = [
            o for o in (Order.from_dict(r) for r in self.store.get_all(ORDERS_COLLECTION))
            if o.client_id == client_id
        ]
        spent = sum(o.total_value for o in orders if o.status in BILLABLE_STATUSES)
        return ClientHistory(
            client_id=client_id,
            orders=orders,
            total_orders=len(orders),
            total_spent=round(spent, 2),
        )

    def refresh_total_spent(self, client_id: str, actor: User) -> Client:
        """Persist the derived total_spent; order history stays the authority."""
        history = self.get_history(client_id)
        return self._write_update(client_id, {"total_spent": history.total_spent}, actor)

    def _write_update(self, client_id: str, patch: dict[str, Any], actor: User) -> Client:
        previous = self.store.get_all(CLIENTS_COLLECTION)
        index = next((i for i, r in enumerate(previous) if r.get("id") == client_id), None)
        if index is None:
            raise NotFoundError("Client not found")

        current = Client.from_dict(previous[index])
        updated = current.merged(patch)
        updated.validate()
        if updated.cpf_digits != current.cpf_digits:
            existing = self.get_by_cpf(updated.cpf)
            if existing is not None and existing.id != client_id:
                raise DuplicateRecordError("A client with this CPF already exists")
        updated.updated_at = now_iso()

        records = list(previous)
        records[index] = updated.to_dict()
        self.audit.commit(
            CLIENTS_COLLECTION,
            records,
            previous,
            actor=actor,
            action=AuditAction.UPDATE,
            entity_type=EntityType.CLIENT,
            entity_id=client_id,
            changes={"old": current.to_dict(), "new": records[index]},
        )
        return updated
