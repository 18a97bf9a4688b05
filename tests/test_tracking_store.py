from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from utils.tracking_errors import LimitExceededError, NotFoundError
from utils.tracking_types import AppStoreRouting, TrackingRecord, UsageLimit


def _put(store, tracking_id="rec1", owner_id=None, limit=None, routing=None):
    record = TrackingRecord(
        id=tracking_id,
        original_url="https://example.com",
        owner_id=owner_id,
        usage_limit=limit,
        app_store_routing=routing,
    )
    store.put(record)
    return record


def test_get_unknown_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.get("missing")
    assert store.exists("missing") is False


def test_put_and_get_round_trip(store):
    routing = AppStoreRouting(enabled=True, ios_url="https://ios", fallback_url="https://fb")
    _put(store, owner_id="u1", limit=UsageLimit(enabled=True, max_scans=5), routing=routing)

    record = store.get("rec1")
    assert record.original_url == "https://example.com"
    assert record.owner_id == "u1"
    assert record.app_store_routing == routing
    assert record.usage_limit.max_scans == 5
    assert record.usage_limit.current_scans == 0
    assert store.exists("rec1") is True


def test_append_scan_is_newest_first(store, make_scan):
    _put(store)
    first, second = make_scan(ip="1.1.1.1"), make_scan(ip="2.2.2.2")
    store.append_scan("rec1", first)
    store.append_scan("rec1", second)

    scans = store.get("rec1").scans
    assert [s.id for s in scans] == [second.id, first.id]
    assert scans[0].source_ip == "2.2.2.2"
    assert scans[0].device == second.device


def test_append_scan_unknown_record(store, make_scan):
    with pytest.raises(NotFoundError):
        store.append_scan("missing", make_scan())


def test_limit_refusal_changes_nothing(store, make_scan):
    _put(store, limit=UsageLimit(enabled=True, max_scans=1))
    store.append_scan("rec1", make_scan())

    with pytest.raises(LimitExceededError) as excinfo:
        store.append_scan("rec1", make_scan())

    assert excinfo.value.current_scans == 1
    record = store.get("rec1")
    assert record.usage_limit.current_scans == 1
    assert len(record.scans) == 1


def test_disabled_limit_does_not_count(store, make_scan):
    _put(store, limit=UsageLimit(enabled=False, max_scans=1))
    store.append_scan("rec1", make_scan())
    store.append_scan("rec1", make_scan())
    record = store.get("rec1")
    assert record.usage_limit.current_scans == 0
    assert len(record.scans) == 2


def test_returned_records_are_snapshots(store, make_scan):
    _put(store, limit=UsageLimit(enabled=True, max_scans=3))
    snapshot = store.get("rec1")
    snapshot.scans.append(make_scan())
    snapshot.usage_limit.current_scans = 3

    fresh = store.get("rec1")
    assert fresh.scans == []
    assert fresh.usage_limit.current_scans == 0


def test_list_filters_by_owner(store):
    _put(store, "a", owner_id="alice")
    _put(store, "b", owner_id="bob")
    _put(store, "c")

    assert {r.id for r in store.list()} == {"a", "b", "c"}
    assert [r.id for r in store.list("alice")] == ["a"]
    assert store.list("nobody") == []


def test_concurrent_scans_never_overshoot_limit(store, make_scan):
    _put(store, limit=UsageLimit(enabled=True, max_scans=5))
    events = [make_scan(ip=f"10.0.0.{i}") for i in range(20)]

    def attempt(event):
        try:
            store.append_scan("rec1", event)
            return True
        except LimitExceededError:
            return False

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(attempt, events))

    record = store.get("rec1")
    assert results.count(True) == 5
    assert record.usage_limit.current_scans == 5
    assert len(record.scans) == 5


def test_concurrent_scans_across_records(store, make_scan):
    ids = [f"rec{i}" for i in range(8)]
    for tracking_id in ids:
        _put(store, tracking_id, limit=UsageLimit(enabled=True, max_scans=10))
    jobs = [(tracking_id, make_scan(ip=f"10.0.{n}.{i}")) for n, tracking_id in enumerate(ids) for i in range(10)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda job: store.append_scan(*job), jobs))

    for tracking_id in ids:
        record = store.get(tracking_id)
        assert record.usage_limit.current_scans == 10
        assert len(record.scans) == 10


def test_sql_store_serialises_sqlite(sql_store, memory_store):
    assert sql_store._store_lock is not None
    assert not hasattr(memory_store, "_store_lock")
