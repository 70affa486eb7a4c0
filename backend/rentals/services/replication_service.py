# Overview: Best-effort replication of record store snapshots to a remote document mirror.

"""
Replication Invariants

- replicate() is the single entry point used by the write path. It never
  blocks and never raises: a full queue drops the job with a warning.
- One worker thread drains the queue and pushes whole snapshots.
- No retry. A failed push is logged; the next save of the same collection
  (or a manual `flask sync push`) carries the latest state.
- Pulling never wipes local data with an empty remote collection.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Iterable

import httpx

from .record_store import StorageError

logger = logging.getLogger(__name__)

_STOP = object()


class HttpDocumentMirror:
    """
    Remote document store reached over HTTP.

    Documents are upserted by their "id" field:
        POST {base_url}/collections/<collection>/documents:batch  {"documents": [...]}
        GET  {base_url}/collections/<collection>/documents        -> {"documents": [...]}
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        batch_size: int = 450,
        transport: httpx.BaseTransport | None = None,
    ):
        self.batch_size = batch_size
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def push(self, collection: str, records: list[dict[str, Any]]) -> int:
        pushed = 0
        for start in range(0, len(records), self.batch_size):
            chunk = [r for r in records[start:start + self.batch_size] if r.get("id") is not None]
            if not chunk:
                continue
            response = self._client.post(
                f"/collections/{collection}/documents:batch",
                json={"documents": chunk},
            )
            response.raise_for_status()
            pushed += len(chunk)
        return pushed

    def pull(self, collection: str) -> list[dict[str, Any]]:
        response = self._client.get(f"/collections/{collection}/documents")
        response.raise_for_status()
        body = response.json()
        documents = body.get("documents", []) if isinstance(body, dict) else body
        return [d for d in documents if isinstance(d, dict)]

    def close(self) -> None:
        self._client.close()


class Replicator:
    """Bounded job queue drained by a daemon thread."""

    def __init__(self, mirror, *, max_pending: int = 100):
        self.mirror = mirror
        self._queue: queue.Queue = queue.Queue(maxsize=max_pending)
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def start(self) -> "Replicator":
        with self._lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(target=self._run, name="record-replicator", daemon=True)
                self._thread.start()
        return self

    def replicate(self, collection: str, records: list[dict[str, Any]]) -> bool:
        """Queue a snapshot for the mirror. Returns False when the job was dropped."""
        try:
            self._queue.put_nowait((collection, records))
        except queue.Full:
            logger.warning("Sync: queue full, dropping snapshot of %s", collection)
            return False
        return True

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until every queued job has been attempted. Returns False on timeout."""
        done = threading.Event()

        def _wait():
            self._queue.join()
            done.set()

        threading.Thread(target=_wait, daemon=True).start()
        return done.wait(timeout)

    def stop(self, timeout: float | None = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return
        try:
            self._queue.put(_STOP, timeout=timeout)
        except queue.Full:
            logger.warning("Sync: could not signal replicator shutdown")
            return
        thread.join(timeout)
        self._thread = None

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                collection, records = job
                self._push(collection, records)
            finally:
                self._queue.task_done()

    def _push(self, collection: str, records: list[dict[str, Any]]) -> None:
        try:
            pushed = self.mirror.push(collection, records)
            logger.info("Sync: pushed %s records to %s", pushed, collection)
        except httpx.TransportError as exc:
            logger.warning("Sync: mirror unreachable, %s not pushed (%s)", collection, exc)
        except Exception:
            logger.exception("Sync: error pushing to %s", collection)


def pull_into(store, mirror, collections: Iterable[str]) -> dict[str, int]:
    """
    Download remote collections into the local store (startup pull).

    A collection is overwritten only when the mirror returned records.
    Returns {collection: records_written}; failed or empty collections map to 0.
    """
    results: dict[str, int] = {}
    for collection in collections:
        try:
            documents = mirror.pull(collection)
        except httpx.TransportError as exc:
            logger.warning("Sync: mirror unreachable, skipping pull of %s (%s)", collection, exc)
            results[collection] = 0
            continue
        except Exception:
            logger.exception("Sync error for %s", collection)
            results[collection] = 0
            continue

        if not documents:
            if store.get_all(collection):
                logger.info("Sync: remote %s is empty, keeping local data", collection)
            results[collection] = 0
            continue

        try:
            store.save(collection, documents, replicate=False)
        except StorageError:
            logger.exception("Sync: could not store pulled %s locally", collection)
            results[collection] = 0
            continue
        logger.info("Sync: pulled %s records for %s", len(documents), collection)
        results[collection] = len(documents)
    return results


def push_all(store, mirror, collections: Iterable[str] | None = None) -> dict[str, int]:
    """Synchronously push every local collection. Failures are logged and reported as -1."""
    results: dict[str, int] = {}
    for collection in (collections or store.collections()):
        try:
            results[collection] = mirror.push(collection, store.get_all(collection))
        except Exception:
            logger.exception("Sync: error pushing to %s", collection)
            results[collection] = -1
    return results
