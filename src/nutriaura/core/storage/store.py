"""Key-value stores backing the Persistence Adapter.

A store is a namespaced string-keyed get/set of JSON-serializable values.
Backend failures surface as ``StorageUnavailableError``; what to do about
them is the repository's decision.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from nutriaura.core.storage.database import DatabaseError, WellnessDatabase
from nutriaura.core.storage.encryption import EncryptionError, JsonCodec, ValueCodec

logger = logging.getLogger(__name__)


class StorageUnavailableError(Exception):
    """Raised when the durable store cannot be read or written."""


@runtime_checkable
class KeyValueStore(Protocol):
    """Get/set of JSON-serializable values by key. Missing keys return None."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class InMemoryKeyValueStore:
    """Dict-backed store for tests and sessions without persistence.

    Values are round-tripped through JSON on write so callers never share
    mutable state with the store, matching the durable backend.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise StorageUnavailableError(f"Value for {key!r} is not serializable: {exc}") from exc

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SQLiteKeyValueStore:
    """Durable store over the ``kv_store`` table, scoped to one namespace.

    Usage::

        db = WellnessDatabase("~/.nutriaura/state.db")
        db.initialize()
        store = SQLiteKeyValueStore(db, JsonCodec(), namespace="nutriaura")
        store.set("user-goals", [])
    """

    def __init__(
        self,
        database: WellnessDatabase,
        codec: ValueCodec | None = None,
        namespace: str = "nutriaura",
    ) -> None:
        self._db = database
        self._codec = codec or JsonCodec()
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    def get(self, key: str) -> Any | None:
        try:
            row = self._db.connection.execute(
                "SELECT value FROM kv_store WHERE namespace = ? AND key = ?",
                (self._namespace, key),
            ).fetchone()
        except (sqlite3.Error, DatabaseError) as exc:
            raise StorageUnavailableError(f"Failed to read {key!r}: {exc}") from exc

        if row is None:
            return None
        try:
            return self._codec.decode(row["value"])
        except (EncryptionError, ValueError) as exc:
            # json.JSONDecodeError is a ValueError
            raise StorageUnavailableError(f"Stored value for {key!r} is unreadable: {exc}") from exc

    def set(self, key: str, value: Any) -> None:
        try:
            encoded = self._codec.encode(value)
        except (EncryptionError, TypeError, ValueError) as exc:
            raise StorageUnavailableError(f"Failed to encode {key!r}: {exc}") from exc

        now = datetime.now(timezone.utc).isoformat()
        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO kv_store (namespace, key, value, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(namespace, key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (self._namespace, key, encoded, now),
            )
            conn.commit()
        except (sqlite3.Error, DatabaseError) as exc:
            raise StorageUnavailableError(f"Failed to write {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            conn = self._db.connection
            conn.execute(
                "DELETE FROM kv_store WHERE namespace = ? AND key = ?",
                (self._namespace, key),
            )
            conn.commit()
        except (sqlite3.Error, DatabaseError) as exc:
            raise StorageUnavailableError(f"Failed to delete {key!r}: {exc}") from exc

    def keys(self) -> list[str]:
        try:
            rows = self._db.connection.execute(
                "SELECT key FROM kv_store WHERE namespace = ? ORDER BY key",
                (self._namespace,),
            ).fetchall()
        except (sqlite3.Error, DatabaseError) as exc:
            raise StorageUnavailableError(f"Failed to list keys: {exc}") from exc
        return [row[0] for row in rows]
