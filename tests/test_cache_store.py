import sqlite3

import pytest

from client.cache_store import LocalCacheStore
from core.exceptions import PersistenceError


class TestLocalCacheStore:
    def test_get_missing_key_returns_default(self, cache):
        assert cache.get("articles") is None
        assert cache.get("articles", default=[]) == []

    def test_set_overwrites_wholesale(self, cache):
        cache.set("articles", [{"id": 1}, {"id": 2}])
        cache.set("articles", [{"id": 3}])
        assert cache.get("articles") == [{"id": 3}]

    def test_snapshot_round_trip(self, cache):
        snapshot = {
            "users": [{"id": 1, "username": "admin"}],
            "articles": [{"id": 1, "title": "Hello there", "comments": []}],
            "notifications": [],
        }
        cache.write_snapshot(snapshot)
        assert cache.load_snapshot() == snapshot

    def test_snapshot_survives_a_new_store_instance(self, tmp_path):
        path = tmp_path / "device.db"
        LocalCacheStore(path).write_snapshot({"users": [{"id": 7}]})
        assert LocalCacheStore(path).load_snapshot() == {"users": [{"id": 7}]}

    def test_load_snapshot_skips_missing_keys(self, cache):
        cache.set("users", [])
        assert cache.load_snapshot(["users", "articles"]) == {"users": []}

    def test_unserializable_snapshot_raises_persistence_error(self, cache):
        with pytest.raises(PersistenceError):
            cache.write_snapshot({"articles": [object()]})

    def test_failed_snapshot_leaves_previous_values(self, cache):
        cache.write_snapshot({"users": [1], "articles": [1]})
        with pytest.raises(PersistenceError):
            cache.write_snapshot({"users": [2], "articles": object()})
        assert cache.load_snapshot() == {"users": [1], "articles": [1]}

    def test_corrupted_entry_raises_persistence_error(self, cache, tmp_path):
        cache.set("articles", [])
        conn = sqlite3.connect(cache.db_path)
        with conn:
            conn.execute(
                "UPDATE cache_entries SET value = ? WHERE key = ?", ("{not json", "articles")
            )
        conn.close()
        with pytest.raises(PersistenceError):
            cache.get("articles")

    def test_unwritable_location_raises_persistence_error(self, tmp_path):
        # A directory cannot be opened as a database file
        store = LocalCacheStore(tmp_path)
        with pytest.raises(PersistenceError):
            store.set("users", [])
