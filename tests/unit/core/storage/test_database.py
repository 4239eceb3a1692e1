"""Tests for WellnessDatabase: connection lifecycle and schema migrations."""

from __future__ import annotations

import pytest

from nutriaura.core.storage.database import SCHEMA_VERSION, DatabaseError, WellnessDatabase


def _tables(db: WellnessDatabase) -> set[str]:
    rows = db.connection.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table'"
    ).fetchall()
    return {row[0] for row in rows}


class TestLifecycle:
    def test_connection_before_initialize_raises(self):
        db = WellnessDatabase(":memory:")
        with pytest.raises(DatabaseError):
            _ = db.connection

    def test_initialize_is_idempotent(self):
        db = WellnessDatabase(":memory:")
        db.initialize()
        conn = db.connection
        db.initialize()
        assert db.connection is conn
        db.close()

    def test_close_resets_connection(self):
        db = WellnessDatabase(":memory:")
        db.initialize()
        db.close()
        with pytest.raises(DatabaseError):
            _ = db.connection

    def test_context_manager(self):
        with WellnessDatabase(":memory:") as db:
            assert db.get_schema_version() == SCHEMA_VERSION

    def test_file_database_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "state.db"
        with WellnessDatabase(str(path)) as db:
            assert db.path == str(path)
        assert path.exists()


class TestSchema:
    def test_creates_all_tables(self, wellness_db):
        tables = _tables(wellness_db)
        assert {"kv_store", "schema_version", "audit_log"} <= tables

    def test_schema_version_recorded(self, wellness_db):
        assert wellness_db.get_schema_version() == SCHEMA_VERSION

    def test_reopen_does_not_duplicate_version_rows(self, tmp_path):
        path = str(tmp_path / "state.db")
        with WellnessDatabase(path):
            pass
        with WellnessDatabase(path) as db:
            count = db.connection.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
            assert count == 1

    def test_audit_log_columns(self, wellness_db):
        cols = {
            row["name"]
            for row in wellness_db.connection.execute("PRAGMA table_info(audit_log)").fetchall()
        }
        assert {"input_hash", "llm_disclosed", "location_sent", "status"} <= cols
