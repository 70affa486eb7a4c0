# Overview: Pytest coverage for the mirror client, background replicator and pull/push helpers.

import json

import httpx
import pytest

from rentals.services.record_store import MemoryRecordStore
from rentals.services.replication_service import (
    HttpDocumentMirror,
    Replicator,
    pull_into,
    push_all,
)


class FakeMirror:
    def __init__(self, remote=None, fail_push=False, fail_pull=False):
        self.remote = remote or {}
        self.pushed = []
        self.fail_push = fail_push
        self.fail_pull = fail_pull

    def push(self, collection, records):
        if self.fail_push:
            raise httpx.ConnectError("offline")
        self.pushed.append((collection, records))
        return len(records)

    def pull(self, collection):
        if self.fail_pull:
            raise httpx.ConnectError("offline")
        return self.remote.get(collection, [])


def mock_mirror(handler, batch_size=450):
    return HttpDocumentMirror(
        "http://mirror.test/api/",
        batch_size=batch_size,
        transport=httpx.MockTransport(handler),
    )


class TestHttpDocumentMirror:
    def test_push_batches_documents(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"ok": True})

        mirror = mock_mirror(handler, batch_size=2)
        pushed = mirror.push("items", [{"id": "1"}, {"id": "2"}, {"id": "3"}])

        assert pushed == 3
        assert [s[1] for s in seen] == ["/api/collections/items/documents:batch"] * 2
        assert seen[0][2] == {"documents": [{"id": "1"}, {"id": "2"}]}
        assert seen[1][2] == {"documents": [{"id": "3"}]}

    def test_push_skips_documents_without_id(self):
        mirror = mock_mirror(lambda request: httpx.Response(200, json={}))
        assert mirror.push("items", [{"name": "no id"}]) == 0

    def test_push_raises_on_http_error(self):
        mirror = mock_mirror(lambda request: httpx.Response(500))
        with pytest.raises(httpx.HTTPStatusError):
            mirror.push("items", [{"id": "1"}])

    def test_pull_accepts_wrapped_or_bare_lists(self):
        mirror = mock_mirror(lambda request: httpx.Response(200, json={"documents": [{"id": "1"}, "junk"]}))
        assert mirror.pull("items") == [{"id": "1"}]

        mirror = mock_mirror(lambda request: httpx.Response(200, json=[{"id": "2"}]))
        assert mirror.pull("items") == [{"id": "2"}]


class TestReplicator:
    def test_jobs_are_pushed_in_background(self):
        mirror = FakeMirror()
        replicator = Replicator(mirror).start()
        try:
            assert replicator.replicate("items", [{"id": "1"}])
            assert replicator.flush(timeout=5)
        finally:
            replicator.stop()
        assert mirror.pushed == [("items", [{"id": "1"}])]

    def test_push_failures_are_logged_not_raised(self, caplog):
        replicator = Replicator(FakeMirror(fail_push=True)).start()
        try:
            replicator.replicate("items", [{"id": "1"}])
            assert replicator.flush(timeout=5)
        finally:
            replicator.stop()
        assert "mirror unreachable" in caplog.text

    def test_full_queue_drops_job(self):
        # Not started: nothing drains the queue
        replicator = Replicator(FakeMirror(), max_pending=1)
        assert replicator.replicate("items", [{"id": "1"}])
        assert not replicator.replicate("items", [{"id": "2"}])

    def test_store_writes_flow_to_mirror(self):
        mirror = FakeMirror()
        replicator = Replicator(mirror).start()
        store = MemoryRecordStore(replicator=replicator)
        try:
            store.save("clients", [{"id": "C1"}])
            assert replicator.flush(timeout=5)
        finally:
            replicator.stop()
        assert mirror.pushed == [("clients", [{"id": "C1"}])]


class TestPullAndPush:
    def test_pull_overwrites_with_non_empty_remote(self):
        store = MemoryRecordStore()
        store.save("items", [{"id": "local"}])
        mirror = FakeMirror(remote={"items": [{"id": "remote"}]})

        results = pull_into(store, mirror, ["items"])

        assert results == {"items": 1}
        assert store.get_all("items") == [{"id": "remote"}]

    def test_empty_remote_never_wipes_local(self):
        store = MemoryRecordStore()
        store.save("items", [{"id": "local"}])

        results = pull_into(store, FakeMirror(remote={"items": []}), ["items"])

        assert results == {"items": 0}
        assert store.get_all("items") == [{"id": "local"}]

    def test_unreachable_mirror_is_skipped(self):
        store = MemoryRecordStore()
        store.save("items", [{"id": "local"}])
        results = pull_into(store, FakeMirror(fail_pull=True), ["items", "orders"])
        assert results == {"items": 0, "orders": 0}
        assert store.get_all("items") == [{"id": "local"}]

    def test_pulled_data_is_not_re_replicated(self):
        mirror = FakeMirror(remote={"items": [{"id": "remote"}]})
        recorder = FakeMirror()
        replicator = Replicator(recorder)
        store = MemoryRecordStore(replicator=replicator)

        pull_into(store, mirror, ["items"])

        assert replicator._queue.empty()

    def test_push_all_reports_failures(self):
        store = MemoryRecordStore()
        store.save("items", [{"id": "1"}])
        store.save("orders", [{"id": "2"}])

        assert push_all(store, FakeMirror()) == {"items": 1, "orders": 1}
        assert push_all(store, FakeMirror(fail_push=True)) == {"items": -1, "orders": -1}
