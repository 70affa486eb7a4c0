# Overview: Keyed-collection persistence for JSON records; the only code that touches a storage substrate.

"""
Record Store Invariants (authoritative)

- A collection is a JSON array of records addressed by a collection key.
- save() replaces the whole collection (no diff/patch); last write wins.
- get_all() never fails: a corrupted collection is logged and read as empty.
- Returned records are fresh copies; mutating them never changes stored state.
- A local write failure caused by capacity raises StorageFullError, anything
  else raises StorageError. Both leave the previous snapshot in place.
- After a successful local write the snapshot is handed to the replicator
  (fire-and-forget). Replication problems are logged, never raised.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Iterable

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from ..extensions import db
from ..models import RecordCollection
from ..time_utils import utcnow


logger = logging.getLogger(__name__)

Record = dict[str, Any]


class StorageError(Exception):
    """Local persistence failed; the previous snapshot is still in place."""


class StorageFullError(StorageError):
    """Local persistence is out of space (quota or disk)."""

    def __init__(self, message: str = "Storage is full. Remove old photos or archived records and try again."):
        super().__init__(message)


class RecordStore:
    """
    Base class for record store substrates.

    Subclasses implement _read_raw / _write_raw / _collection_sizes; the
    serialization, quota and replication rules live here.
    """

    def __init__(self, *, capacity_bytes: int | None = None, replicator=None):
        self.capacity_bytes = capacity_bytes or None
        self.replicator = replicator

    # -- substrate hooks ---------------------------------------------------

    def _read_raw(self, collection: str) -> str | None:
        raise NotImplementedError

    def _write_raw(self, collection: str, payload: str, count: int) -> None:
        raise NotImplementedError

    def _collection_sizes(self) -> dict[str, int]:
        raise NotImplementedError

    def collections(self) -> list[str]:
        return sorted(self._collection_sizes().keys())

    # -- public contract ---------------------------------------------------

    def get_all(self, collection: str) -> list[Record]:
        try:
            raw = self._read_raw(collection)
        except StorageError:
            logger.exception("Error reading collection %s from storage", collection)
            return []
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Collection %s is corrupted; reading it as empty", collection)
            return []
        if not isinstance(data, list):
            logger.warning("Collection %s does not hold a list; reading it as empty", collection)
            return []
        return [r for r in data if isinstance(r, dict)]

    def save(self, collection: str, records: Iterable[Record], *, replicate: bool = True) -> None:
        records = list(records)
        try:
            payload = json.dumps(records, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Collection {collection} holds non-serializable data: {exc}") from exc

        self._check_capacity(collection, payload)
        self._write_raw(collection, payload, len(records))

        if replicate:
            self._hand_off(collection, payload)

    # -- internals ---------------------------------------------------------

    def _check_capacity(self, collection: str, payload: str) -> None:
        if not self.capacity_bytes:
            return
        sizes = self._collection_sizes()
        sizes[collection] = len(payload.encode("utf-8"))
        if sum(sizes.values()) > self.capacity_bytes:
            raise StorageFullError()

    def _hand_off(self, collection: str, payload: str) -> None:
        if self.replicator is None:
            return
        try:
            # Fresh copy so later local writes cannot leak into the queued job
            self.replicator.replicate(collection, json.loads(payload))
        except Exception:
            logger.exception("Background sync error for %s", collection)


class MemoryRecordStore(RecordStore):
    """Serialized collections kept in a dict; used by tests and ephemeral runs."""

    def __init__(self, *, capacity_bytes: int | None = None, replicator=None):
        super().__init__(capacity_bytes=capacity_bytes, replicator=replicator)
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def _read_raw(self, collection: str) -> str | None:
        with self._lock:
            return self._data.get(collection)

    def _write_raw(self, collection: str, payload: str, count: int) -> None:
        with self._lock:
            self._data[collection] = payload

    def _collection_sizes(self) -> dict[str, int]:
        with self._lock:
            return {k: len(v.encode("utf-8")) for k, v in self._data.items()}


def _is_disk_full(exc: OperationalError) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return "full" in message or "no space" in message or "quota" in message


class SqlRecordStore(RecordStore):
    """
    record_collections table via Flask-SQLAlchemy.

    NOTE: Must be used inside an application context (db.session).
    """

    def _read_raw(self, collection: str) -> str | None:
        try:
            row = db.session.get(RecordCollection, collection)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(f"Error reading {collection}") from exc
        return row.payload if row is not None else None

    def _write_raw(self, collection: str, payload: str, count: int) -> None:
        try:
            row = db.session.get(RecordCollection, collection)
            if row is None:
                row = RecordCollection(key=collection)
                db.session.add(row)
            row.payload = payload
            row.record_count = count
            row.updated_at = utcnow()
            db.session.commit()
        except OperationalError as exc:
            db.session.rollback()
            if _is_disk_full(exc):
                raise StorageFullError() from exc
            raise StorageError(f"Error saving {collection} to storage") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(f"Error saving {collection} to storage") from exc

    def _collection_sizes(self) -> dict[str, int]:
        try:
            rows = db.session.query(
                RecordCollection.key, db.func.length(RecordCollection.payload)
            ).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError("Error measuring storage usage") from exc
        return {key: int(size or 0) for key, size in rows}
