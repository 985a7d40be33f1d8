"""Presence store tests — one record per connection, copy-on-read snapshots."""

from crowdguard.realtime.presence import PresenceStore


def test_upsert_creates_record():
    store = PresenceStore()
    store.upsert("a", 1.0, 2.0)
    record = store.get("a")
    assert record.latitude == 1.0
    assert record.longitude == 2.0
    assert record.connection_id == "a"


def test_repeated_upsert_keeps_single_latest_record():
    """Any sequence of upserts for one id leaves exactly one record with the last coordinates."""
    store = PresenceStore()
    for lat, lon in [(1, 1), (2, 3), (-5.5, 10.25)]:
        store.upsert("a", lat, lon)
    assert len(store) == 1
    assert store.snapshot() == {"a": {"latitude": -5.5, "longitude": 10.25}}


def test_upsert_refreshes_last_updated():
    store = PresenceStore()
    store.upsert("a", 1, 1)
    first = store.get("a").last_updated
    store.upsert("a", 2, 2)
    assert store.get("a").last_updated >= first


def test_remove_twice_is_noop():
    store = PresenceStore()
    store.upsert("a", 1, 1)
    store.remove("a")
    store.remove("a")
    assert "a" not in store
    assert len(store) == 0


def test_remove_unknown_id():
    store = PresenceStore()
    store.upsert("a", 1, 1)
    store.remove("never-seen")
    assert "a" in store


def test_snapshot_is_isolated_from_later_mutation():
    store = PresenceStore()
    store.upsert("a", 1, 1)
    snap = store.snapshot()

    store.upsert("a", 9, 9)
    store.upsert("b", 2, 2)
    snap["a"]["latitude"] = 42

    assert snap == {"a": {"latitude": 42, "longitude": 1}}
    assert store.snapshot() == {
        "a": {"latitude": 9, "longitude": 9},
        "b": {"latitude": 2, "longitude": 2},
    }
