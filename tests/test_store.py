from __future__ import annotations

import json

import pytest

from incident_watch.errors import SnapshotStoreError
from incident_watch.store import JsonFileSnapshotStore, MemorySnapshotStore


def test_missing_file_reads_as_absent(tmp_path) -> None:
    store = JsonFileSnapshotStore(tmp_path / "snapshot.json")

    assert store.read() is None


def test_write_then_read(tmp_path) -> None:
    path = tmp_path / "state" / "snapshot.json"
    store = JsonFileSnapshotStore(path)

    store.write(frozenset({"b", "a"}))

    assert store.read() == {"a", "b"}
    assert json.loads(path.read_text()) == {"incidents": ["a", "b"], "notified": {}}
    assert not path.with_name("snapshot.json.tmp").exists()


def test_write_replaces_instead_of_merging(tmp_path) -> None:
    store = JsonFileSnapshotStore(tmp_path / "snapshot.json")

    store.write(frozenset({"a", "b"}))
    store.write(frozenset({"c"}))

    assert store.read() == {"c"}


def test_empty_snapshot_removes_file(tmp_path) -> None:
    path = tmp_path / "snapshot.json"
    store = JsonFileSnapshotStore(path)
    store.write(frozenset({"a"}))

    store.write(frozenset())

    assert not path.exists()
    assert store.read() is None


@pytest.mark.parametrize(
    "content",
    ["{not json", '{"ids": ["a"]}', "[1, 2]", '{"incidents": ["a"], "notified": {"a": "yesterday"}}'],
)
def test_unreadable_snapshot_is_an_error_not_absent(tmp_path, content) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(content)

    with pytest.raises(SnapshotStoreError):
        JsonFileSnapshotStore(path).read()


def test_memory_store() -> None:
    store = MemorySnapshotStore()
    assert store.read() is None

    store.write(frozenset({"a"}))
    assert store.read() == {"a"}

    store.write(frozenset())
    assert store.read() is None


def test_delivery_times_round_trip_and_are_pruned(tmp_path) -> None:
    store = JsonFileSnapshotStore(tmp_path / "snapshot.json")

    store.write(frozenset({"a", "b"}), {"a": 100.0, "gone": 50.0})

    assert store.read() == {"a", "b"}
    assert store.read_notified() == {"a": 100.0}

    store.write(frozenset({"b"}), store.read_notified())
    assert store.read_notified() == {}


def test_bare_list_file_reads_with_nothing_notified(tmp_path) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text('["abc"]')
    store = JsonFileSnapshotStore(path)

    assert store.read() == {"abc"}
    assert store.read_notified() == {}


def test_missing_file_has_nothing_notified(tmp_path) -> None:
    assert JsonFileSnapshotStore(tmp_path / "snapshot.json").read_notified() == {}


def test_memory_store_keeps_delivery_times_for_open_incidents() -> None:
    store = MemorySnapshotStore()

    store.write(frozenset({"a"}), {"a": 1.0, "b": 2.0})
    assert store.read_notified() == {"a": 1.0}

    store.write(frozenset())
    assert store.read_notified() == {}
