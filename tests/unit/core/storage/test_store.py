"""Tests for the key-value store backends."""

from __future__ import annotations

import pytest

from nutriaura.core.storage.encryption import EncryptedJsonCodec, JsonCodec
from nutriaura.core.storage.store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    SQLiteKeyValueStore,
    StorageUnavailableError,
)


@pytest.fixture
def sqlite_store(wellness_db) -> SQLiteKeyValueStore:
    return SQLiteKeyValueStore(wellness_db, JsonCodec())


class TestInMemoryStore:
    def test_missing_key_is_none(self, memory_store):
        assert memory_store.get("user-goals") is None

    def test_values_are_copied(self, memory_store):
        goals = [{"id": "a"}]
        memory_store.set("user-goals", goals)
        goals.append({"id": "b"})
        assert memory_store.get("user-goals") == [{"id": "a"}]

    def test_unserializable_raises(self, memory_store):
        with pytest.raises(StorageUnavailableError):
            memory_store.set("theme", {1, 2})

    def test_delete_and_keys(self, memory_store):
        memory_store.set("theme", "dark")
        memory_store.set("novelty-mode", True)
        memory_store.delete("theme")
        memory_store.delete("absent")
        assert memory_store.keys() == ["novelty-mode"]

    def test_satisfies_protocol(self, memory_store):
        assert isinstance(memory_store, KeyValueStore)


class TestSQLiteStore:
    def test_round_trip_and_upsert(self, sqlite_store):
        sqlite_store.set("user-profile", {"level": 1, "ap": 10})
        sqlite_store.set("user-profile", {"level": 1, "ap": 110})
        assert sqlite_store.get("user-profile") == {"level": 1, "ap": 110}
        assert sqlite_store.keys() == ["user-profile"]

    def test_namespaces_are_isolated(self, wellness_db):
        a = SQLiteKeyValueStore(wellness_db, namespace="a")
        b = SQLiteKeyValueStore(wellness_db, namespace="b")
        a.set("theme", "dark")
        assert b.get("theme") is None
        assert a.namespace == "a"

    def test_encrypted_values_at_rest(self, wellness_db):
        store = SQLiteKeyValueStore(wellness_db, EncryptedJsonCodec(EncryptedJsonCodec.generate_key()))
        store.set("user-goals", [{"text": "Sleep 8 hours"}])
        raw = wellness_db.connection.execute("SELECT value FROM kv_store").fetchone()[0]
        assert "Sleep" not in raw
        assert store.get("user-goals") == [{"text": "Sleep 8 hours"}]

    def test_corrupt_value_raises_unavailable(self, sqlite_store, wellness_db):
        wellness_db.connection.execute(
            "INSERT INTO kv_store (namespace, key, value) VALUES ('nutriaura', 'theme', '{broken')"
        )
        with pytest.raises(StorageUnavailableError, match="unreadable"):
            sqlite_store.get("theme")

    def test_closed_database_raises_unavailable(self, wellness_db):
        store = SQLiteKeyValueStore(wellness_db)
        wellness_db.close()
        with pytest.raises(StorageUnavailableError):
            store.get("theme")
        with pytest.raises(StorageUnavailableError):
            store.set("theme", "dark")
