# Overview: Bulk maintenance operations (clearing the catalog or the order book).

from __future__ import annotations

import logging

from ..models import AuditAction, EntityType, User
from .audit_service import AuditLogService
from .availability_service import ITEMS_COLLECTION, ORDERS_COLLECTION
from .record_store import RecordStore


logger = logging.getLogger(__name__)


class SystemService:
    def __init__(self, store: RecordStore, audit: AuditLogService):
        self.store = store
        self.audit = audit

    def clear_catalog(self, actor: User) -> int:
        return self._clear(ITEMS_COLLECTION, EntityType.ITEM, actor)

    def clear_orders(self, actor: User) -> int:
        return self._clear(ORDERS_COLLECTION, EntityType.ORDER, actor)

    def _clear(self, collection: str, entity_type: EntityType, actor: User) -> int:
        previous = self.store.get_all(collection)
        self.audit.commit(
            collection,
            [],
            previous,
            actor=actor,
            action=AuditAction.DELETE_ALL,
            entity_type=entity_type,
            entity_id="ALL",
            changes={"count": len(previous)},
        )
        logger.warning("%s cleared %s %s record(s)", actor.name, len(previous), collection)
        return len(previous)
