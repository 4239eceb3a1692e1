"""Tests for the AuditLogger and related utilities."""

from __future__ import annotations

import json

from nutriaura.core.audit.logger import (
    ANALYSIS_ACTION,
    DATA_RESET_ACTION,
    AuditEvent,
    AuditLogger,
    hash_input,
)
from nutriaura.core.storage.database import WellnessDatabase


class TestHashInput:
    def test_hashes_dict(self):
        h = hash_input({"key": "value"})
        assert isinstance(h, str)
        assert len(h) == 64  # SHA-256 hex

    def test_order_independent(self):
        assert hash_input({"z": 1, "a": 2}) == hash_input({"a": 2, "z": 1})

    def test_unserializable_returns_empty(self):
        assert hash_input({"x": object()}) == ""


class TestLogAnalysis:
    def test_records_disclosure(self, audit_logger):
        event_id = audit_logger.log_analysis(
            {"answers": {"sleepHours": 7}},
            llm_provider="mock",
            location_sent=True,
            duration_ms=12.5,
        )
        assert event_id
        [event] = audit_logger.get_events()
        assert event["action"] == ANALYSIS_ACTION
        assert event["llm_provider"] == "mock"
        assert event["llm_disclosed"] == 1
        assert event["location_sent"] == 1
        assert event["status"] == "success"

    def test_no_raw_input_stored(self, audit_logger):
        audit_logger.log_analysis({"answers": {"dietQuality": "Unhealthy"}}, llm_provider="mock")
        [event] = audit_logger.get_events()
        assert "Unhealthy" not in json.dumps(event)
        assert len(event["input_hash"]) == 64

    def test_failure_records_error_type(self, audit_logger):
        audit_logger.log_analysis(
            llm_provider="mock", status="failure", error_type="ServiceUnavailableError"
        )
        [event] = audit_logger.get_events()
        assert event["status"] == "failure"
        assert event["error_type"] == "ServiceUnavailableError"
        assert event["input_hash"] is None


class TestQueries:
    def test_counts(self, audit_logger):
        audit_logger.log_analysis({"a": 1}, llm_provider="mock")
        audit_logger.log_analysis({"a": 2}, llm_provider="mock", location_sent=True)
        audit_logger.log_data_reset(count=4)
        assert audit_logger.count_events() == 3
        assert audit_logger.count_disclosures() == 2
        assert audit_logger.count_location_disclosures() == 1

    def test_filter_by_action(self, audit_logger):
        audit_logger.log_analysis({"a": 1}, llm_provider="mock")
        audit_logger.log_data_reset(count=4)
        [reset] = audit_logger.get_events(action=DATA_RESET_ACTION)
        assert json.loads(reset["metadata_json"]) == {"keys_cleared": 4}
        assert reset["llm_disclosed"] == 0

    def test_since_in_future_excludes_all(self, audit_logger):
        audit_logger.log_analysis({"a": 1}, llm_provider="mock")
        assert audit_logger.count_events(since="2999-01-01T00:00:00+00:00") == 0
        assert audit_logger.count_disclosures(since="2999-01-01T00:00:00+00:00") == 0

    def test_limit(self, audit_logger):
        for i in range(5):
            audit_logger.log_analysis({"i": i}, llm_provider="mock")
        assert len(audit_logger.get_events(limit=3)) == 3


class TestWriteFailure:
    def test_closed_database_loses_event_quietly(self):
        db = WellnessDatabase(":memory:")
        db.initialize()
        logger = AuditLogger(db)
        db.close()
        assert logger.log_event(AuditEvent(action=ANALYSIS_ACTION)) == ""
