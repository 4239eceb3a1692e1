"""Tests for the analysis orchestrator."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone

import pytest

from nutriaura.core.llm.client import ServiceUnavailableError
from nutriaura.core.storage.models import StoredProfile
from nutriaura.domains.wellness.geolocation import DeniedGeolocation, NoGeolocation, StaticGeolocation
from nutriaura.domains.wellness.models import Location, QuizAnswers, Submission
from nutriaura.domains.wellness.navigation import NavigationController, ScreenId
from nutriaura.domains.wellness.orchestrator import UNKNOWN_FAILURE, AnalysisOrchestrator

FIXED_NOW = datetime(2026, 3, 14, 8, 30, tzinfo=timezone.utc)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class PermissionDeniedGeolocation:
    async def get_position(self) -> Location:
        raise PermissionError("user denied geolocation")


class ExplodingService:
    provider_name = "exploding"

    async def analyze(self, image, answers, location=None):
        raise RuntimeError("segfault in the cloud")


@pytest.fixture
def nav() -> NavigationController:
    nav = NavigationController()
    nav.reset_to(ScreenId.ANALYZING)
    return nav


@pytest.fixture
def make_orchestrator(analysis_service, repository, engine, nav):
    def _make(service=None, **kwargs):
        kwargs.setdefault("clock", lambda: FIXED_NOW)
        return AnalysisOrchestrator(service or analysis_service, repository, engine, nav, **kwargs)

    return _make


@pytest.fixture
def submission(sample_image, sample_answers) -> Submission:
    return Submission(image=sample_image, answers=sample_answers, submission_id="sub-1")


class TestSuccess:
    def test_writes_history_award_and_badge(self, make_orchestrator, submission, repository, nav):
        outcome = _run(make_orchestrator().run(submission))

        assert outcome.status == "succeeded"
        assert outcome.result.scores.sleep == 64
        [point] = repository.get_history()
        assert point.timestamp == FIXED_NOW.isoformat()
        assert point.scores == {"nutrition": 72, "sleep": 64, "stress": 58, "hydration": 70}
        assert repository.get_stored_profile() == StoredProfile(level=1, ap=100)
        assert outcome.award.points == 100
        assert outcome.new_badges == ["first_analysis"]
        assert nav.stack == (ScreenId.RESULTS,)

    def test_configured_reward(self, make_orchestrator, submission):
        outcome = _run(make_orchestrator(reward_ap=250).run(submission))
        assert outcome.award.profile.level == 2
        assert outcome.award.profile.ap == 50

    def test_outcome_serializes(self, make_orchestrator, submission):
        payload = _run(make_orchestrator().run(submission)).to_dict()
        assert json.loads(json.dumps(payload))["history_point"]["scores"]["stress"] == 58
        assert payload["award"]["profile"]["ap"] == 100


class TestFailure:
    def test_service_error_goes_to_error_screen(self, make_orchestrator, mock_provider, submission, repository, nav):
        mock_provider.error = ConnectionError("offline")
        outcome = _run(make_orchestrator().run(submission))

        assert outcome.status == "failed"
        assert outcome.error_message == "Failed to get analysis from AI. Please try again."
        assert repository.get_history() == []
        assert repository.get_stored_profile() == StoredProfile()
        assert nav.stack == (ScreenId.ERROR,)

    def test_malformed_response(self, make_orchestrator, mock_provider, submission, nav):
        mock_provider.response_content = "No JSON today."
        outcome = _run(make_orchestrator().run(submission))
        assert outcome.status == "failed"
        assert nav.current() is ScreenId.ERROR

    def test_unexpected_exception_uses_generic_message(self, make_orchestrator, submission, nav):
        outcome = _run(make_orchestrator(ExplodingService()).run(submission))
        assert outcome.status == "failed"
        assert outcome.error_message == UNKNOWN_FAILURE
        assert nav.current() is ScreenId.ERROR


class TestCancellation:
    def test_result_after_navigation_is_discarded(self, make_orchestrator, mock_provider, submission, repository, nav):
        orchestrator = make_orchestrator()

        async def scenario():
            mock_provider.gate = asyncio.Event()
            task = asyncio.ensure_future(orchestrator.run(submission))
            await asyncio.sleep(0.01)
            assert mock_provider.call_count == 1
            nav.reset_to(ScreenId.WELCOME)
            mock_provider.gate.set()
            return await task

        outcome = _run(scenario())
        assert outcome.status == "discarded"
        assert repository.get_history() == []
        assert repository.get_stored_profile() == StoredProfile()
        assert nav.stack == (ScreenId.WELCOME,)

    def test_failure_after_navigation_is_discarded(self, make_orchestrator, mock_provider, submission, nav):
        orchestrator = make_orchestrator()
        mock_provider.error = ServiceUnavailableError("down")

        async def scenario():
            mock_provider.gate = asyncio.Event()
            task = asyncio.ensure_future(orchestrator.run(submission))
            await asyncio.sleep(0.01)
            nav.push(ScreenId.ALGORITHM_INFO)
            mock_provider.gate.set()
            return await task

        outcome = _run(scenario())
        assert outcome.status == "discarded"
        assert nav.current() is ScreenId.ALGORITHM_INFO


class TestReentry:
    def test_concurrent_runs_share_one_call(self, make_orchestrator, mock_provider, submission, repository):
        orchestrator = make_orchestrator()

        async def scenario():
            mock_provider.gate = asyncio.Event()
            first = asyncio.ensure_future(orchestrator.run(submission))
            await asyncio.sleep(0.01)
            second = asyncio.ensure_future(orchestrator.run(submission))
            await asyncio.sleep(0.01)
            assert orchestrator.in_flight == 1
            mock_provider.gate.set()
            return await first, await second

        first, second = _run(scenario())
        assert first is second
        assert mock_provider.call_count == 1
        assert len(repository.get_history()) == 1
        assert orchestrator.in_flight == 0

    def test_processed_submission_not_rerun(self, make_orchestrator, mock_provider, submission, nav):
        orchestrator = make_orchestrator()
        _run(orchestrator.run(submission))
        nav.reset_to(ScreenId.ANALYZING)
        outcome = _run(orchestrator.run(submission))
        assert outcome.status == "already_processed"
        assert mock_provider.call_count == 1


class TestInvalidInput:
    @pytest.mark.parametrize("missing", ["image", "answers"])
    def test_incomplete_submission(self, make_orchestrator, mock_provider, sample_image, sample_answers, missing, nav):
        parts = {"image": sample_image, "answers": sample_answers}
        parts[missing] = None
        outcome = _run(make_orchestrator().run(Submission(**parts)))
        assert outcome.status == "invalid"
        assert mock_provider.call_count == 0
        assert nav.current() is ScreenId.ANALYZING

    def test_none_submission(self, make_orchestrator):
        assert _run(make_orchestrator().run(None)).status == "invalid"

    def test_not_on_analyzing_screen(self, make_orchestrator, mock_provider, submission, nav):
        nav.reset_to(ScreenId.QUIZ)
        outcome = _run(make_orchestrator().run(submission))
        assert outcome.status == "invalid"
        assert mock_provider.call_count == 0


class TestLocation:
    def test_submission_location_used(self, make_orchestrator, mock_provider, sample_image, sample_answers):
        sub = Submission(image=sample_image, answers=sample_answers, location=Location(40.7128, -74.006))
        outcome = _run(make_orchestrator(geolocation=NoGeolocation()).run(sub))
        assert outcome.location_used is True
        assert "40.7128, -74.0060" in mock_provider.last_user_message

    def test_geolocation_source_consulted(self, make_orchestrator, mock_provider, submission):
        outcome = _run(make_orchestrator(geolocation=StaticGeolocation(35.6762, 139.6503)).run(submission))
        assert outcome.location_used is True
        assert "35.6762" in mock_provider.last_user_message

    def test_raising_source_is_not_fatal(self, make_orchestrator, submission, nav, repository):
        outcome = _run(make_orchestrator(geolocation=PermissionDeniedGeolocation()).run(submission))
        assert outcome.status == "succeeded"
        assert outcome.location_used is False
        assert nav.stack == (ScreenId.RESULTS,)
        assert len(repository.get_history()) == 1

    def test_unavailable_location_is_not_fatal(self, make_orchestrator, submission):
        outcome = _run(make_orchestrator(geolocation=NoGeolocation()).run(submission))
        assert outcome.status == "succeeded"
        assert outcome.location_used is False


class TestAudit:
    def test_success_is_audited_without_raw_input(self, make_orchestrator, audit_logger, submission):
        _run(make_orchestrator(audit_logger=audit_logger).run(submission))
        [event] = audit_logger.get_events()
        assert event["status"] == "success"
        assert event["llm_provider"] == "mock"
        assert event["llm_disclosed"] == 1
        assert "Mostly Healthy" not in json.dumps(event)

    def test_failure_is_audited_with_error_type(self, make_orchestrator, audit_logger, mock_provider, submission):
        mock_provider.error = ConnectionError("offline")
        _run(make_orchestrator(audit_logger=audit_logger).run(submission))
        [event] = audit_logger.get_events()
        assert event["status"] == "failure"
        assert event["error_type"] == "ServiceUnavailableError"


class TestEndToEnd:
    def test_denied_location_low_scores_first_analysis(
        self, make_orchestrator, mock_provider, sample_image, repository, badges, nav
    ):
        mock_provider.response_content = json.dumps({
            "scores": {"nutrition": 40, "sleep": 30, "stress": 25, "hydration": 35},
            "keyFindings": [{"title": "Running on Empty", "description": "d", "icon": "sleep"}],
            "recommendations": [{"title": "Rest", "description": "d", "items": ["Sleep earlier."]}],
        })
        answers = QuizAnswers(
            sleep_hours=5,
            stress_level=5,
            energy_level=2,
            diet_quality="Unhealthy",
            hydration="Little",
            activity_level="Sedentary",
        )
        before = repository.get_stored_profile()

        outcome = _run(make_orchestrator(geolocation=DeniedGeolocation()).run(
            Submission(image=sample_image, answers=answers)
        ))

        assert outcome.status == "succeeded"
        assert outcome.location_used is False
        assert "location" not in mock_provider.last_user_message
        [point] = repository.get_history()
        assert point.scores == {"nutrition": 40, "sleep": 30, "stress": 25, "hydration": 35}
        assert repository.get_stored_profile().ap == before.ap + 100
        assert badges.is_member("first_analysis")
        assert nav.stack == (ScreenId.RESULTS,)
