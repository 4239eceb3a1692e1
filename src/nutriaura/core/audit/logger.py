"""Audit logger: disclosure tracking for every selfie/questionnaire sent out.

Records analysis attempts and data resets in a content-free audit trail:

* ``input_hash``: SHA-256 of canonical JSON (no raw answers or image bytes).
* ``llm_disclosed``: whether the submission left the device.
* ``location_sent``: whether coordinates were attached to the request.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from nutriaura.core.storage.database import DatabaseError, WellnessDatabase

logger = logging.getLogger(__name__)

ANALYSIS_ACTION = "analysis"
DATA_RESET_ACTION = "data_reset"


def hash_input(data: Any) -> str:
    """SHA-256 hash of canonical JSON.

    Returns:
        Hex-encoded digest, or empty string if ``data`` is not serializable.
    """
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()
    except (TypeError, ValueError):
        return ""


@dataclass
class AuditEvent:
    """A single audit log entry."""

    action: str                          # 'analysis' | 'data_reset'
    input_hash: str = ""
    llm_provider: str | None = None      # 'anthropic' | 'openai' | 'mock'
    llm_disclosed: bool = False
    location_sent: bool = False
    duration_ms: float | None = None
    status: str = "success"              # 'success' | 'failure' | 'discarded'
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """Records audit events to the ``audit_log`` SQLite table.

    Writes are committed immediately. A failed write is logged and dropped;
    auditing never breaks the workflow it observes.

    Usage::

        audit = AuditLogger(wellness_db)
        audit.log_analysis(
            input_payload={"answers": answers.to_dict()},
            llm_provider="anthropic",
            location_sent=True,
        )
    """

    def __init__(self, database: WellnessDatabase) -> None:
        self._db = database

    def log_event(self, event: AuditEvent) -> str:
        """Insert ``event`` and return its id, or ``""`` if the write failed."""
        event_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()
        metadata_json = (
            json.dumps(event.metadata, separators=(",", ":"))
            if event.metadata
            else None
        )

        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO audit_log
                   (id, timestamp, action, input_hash, llm_provider,
                    llm_disclosed, location_sent, duration_ms, status,
                    error_type, metadata_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    event_id,
                    now,
                    event.action,
                    event.input_hash or None,
                    event.llm_provider,
                    1 if event.llm_disclosed else 0,
                    1 if event.location_sent else 0,
                    event.duration_ms,
                    event.status,
                    event.error_type,
                    metadata_json,
                ),
            )
            conn.commit()
        except (sqlite3.Error, DatabaseError):
            logger.exception("Failed to write audit event; event lost")
            return ""

        return event_id

    def log_analysis(
        self,
        input_payload: Any = None,
        *,
        llm_provider: str | None = None,
        location_sent: bool = False,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
    ) -> str:
        """Log one analysis request. The submission is always disclosed.

        Args:
            input_payload: Submission data (hashed, never stored raw).
            llm_provider: Provider that received the submission.
            location_sent: Whether coordinates were attached.
            duration_ms: Time from start of the run to its outcome.
            status: 'success', 'failure' or 'discarded'.
            error_type: Exception class name on failure.
        """
        return self.log_event(AuditEvent(
            action=ANALYSIS_ACTION,
            input_hash=hash_input(input_payload) if input_payload else "",
            llm_provider=llm_provider,
            llm_disclosed=True,
            location_sent=location_sent,
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
        ))

    def log_data_reset(self, count: int = 0) -> str:
        return self.log_event(AuditEvent(
            action=DATA_RESET_ACTION,
            metadata={"keys_cleared": count},
        ))

    def get_events(
        self,
        *,
        action: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Query audit events, newest first."""
        conditions: list[str] = []
        params: list[Any] = []

        if action:
            conditions.append("action = ?")
            params.append(action)
        if since:
            conditions.append("timestamp >= ?")
            params.append(since)

        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        query = f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def count_events(self, *, since: str | None = None) -> int:
        if since:
            row = self._db.connection.execute(
                "SELECT COUNT(*) FROM audit_log WHERE timestamp >= ?", (since,)
            ).fetchone()
        else:
            row = self._db.connection.execute("SELECT COUNT(*) FROM audit_log").fetchone()
        return row[0]

    def count_disclosures(self, *, since: str | None = None) -> int:
        """How many times has a submission left this device?"""
        query = "SELECT COUNT(*) FROM audit_log WHERE llm_disclosed = 1"
        params: tuple[str, ...] = ()
        if since:
            query += " AND timestamp >= ?"
            params = (since,)
        return self._db.connection.execute(query, params).fetchone()[0]

    def count_location_disclosures(self) -> int:
        row = self._db.connection.execute(
            "SELECT COUNT(*) FROM audit_log WHERE location_sent = 1"
        ).fetchone()
        return row[0]
