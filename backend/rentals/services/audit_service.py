# Overview: Append-only audit log written alongside every mutation.

"""
Audit Log Invariants

- Entries are appended, never edited. The only bulk removal path is a
  "clear" operation, which itself appends a DELETE_ALL entry.
- changes carries the created/deleted snapshot, or {"old", "new"} for updates.
- The log is for display and forensics; business rules never read it.
- commit() writes the mutated collection first, then the entry. If the entry
  cannot be written the collection is restored to its previous snapshot and
  the storage error is re-raised, so no mutation survives without its entry.
"""

from __future__ import annotations

import logging
from typing import Any

from ..models import AuditAction, AuditLog, EntityType, User
from ..time_utils import now_iso
from .code_service import new_record_id
from .record_store import RecordStore, StorageError


logger = logging.getLogger(__name__)

AUDIT_COLLECTION = "audit_logs"


class AuditLogService:
    def __init__(self, store: RecordStore):
        self.store = store

    def get_all(self) -> list[AuditLog]:
        return [AuditLog.from_dict(r) for r in self.store.get_all(AUDIT_COLLECTION)]

    def get_by_entity(self, entity_type: EntityType | str, entity_id: str) -> list[AuditLog]:
        entity_type = EntityType(entity_type)
        return [
            log for log in self.get_all()
            if log.entity_type == entity_type and log.entity_id == entity_id
        ]

    def record(
        self,
        actor: User,
        action: AuditAction,
        entity_type: EntityType,
        entity_id: str,
        changes: dict[str, Any] | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            id=new_record_id("AUD-"),
            user_id=actor.id or "",
            user_name=actor.name,
            action=AuditAction(action),
            entity_type=EntityType(entity_type),
            entity_id=entity_id,
            changes=changes or {},
            created_at=now_iso(),
        )
        logs = self.store.get_all(AUDIT_COLLECTION)
        logs.append(entry.to_dict())
        self.store.save(AUDIT_COLLECTION, logs)
        return entry

    def commit(
        self,
        collection: str,
        records: list[dict],
        previous: list[dict],
        *,
        actor: User,
        action: AuditAction,
        entity_type: EntityType,
        entity_id: str,
        changes: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Save a collection snapshot together with its audit entry."""
        self.store.save(collection, records)
        try:
            return self.record(actor, action, entity_type, entity_id, changes)
        except StorageError:
            logger.error("Audit write failed for %s %s; restoring %s", action, entity_id, collection)
            try:
                self.store.save(collection, previous)
            except StorageError:
                logger.exception("Could not restore %s after audit failure", collection)
            raise
