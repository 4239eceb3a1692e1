"""Analysis orchestrator: the one asynchronous, failure-prone workflow.

Sequence for a submission, run when the Analyzing screen is on top:

1. resolve a location (best effort, bounded wait, never fatal)
2. call the analysis service
3. on success: append a history point, award AP, evaluate badges, then
   ``reset_to(RESULTS)``
4. on failure: keep a user-facing message and ``reset_to(ERROR)``

A run is bound to the navigation generation it started at. If the user has
navigated elsewhere by the time the service answers, the outcome is
discarded and nothing is written.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Literal

from nutriaura.core.llm.client import USER_FACING_FAILURE, AnalysisServiceError
from nutriaura.core.llm.response import MalformedResponseError
from nutriaura.core.storage.models import WellnessDataPoint
from nutriaura.domains.wellness.geolocation import GeolocationSource, resolve_location
from nutriaura.domains.wellness.navigation import NavigationController, ScreenId
from nutriaura.domains.wellness.progression import ANALYSIS_COMPLETED, AwardOutcome, ProgressionEngine

if TYPE_CHECKING:
    from nutriaura.core.audit.logger import AuditLogger
    from nutriaura.core.storage.repository import WellnessRepository
    from nutriaura.domains.wellness.analysis_service import AnalysisService
    from nutriaura.domains.wellness.models import AnalysisResult, Location, Submission

logger = logging.getLogger(__name__)

UNKNOWN_FAILURE = "An unknown error occurred during analysis."

OutcomeStatus = Literal["succeeded", "failed", "discarded", "invalid", "already_processed"]


@dataclass
class AnalysisOutcome:
    status: OutcomeStatus
    submission_id: str = ""
    result: AnalysisResult | None = None
    error_message: str | None = None
    history_point: WellnessDataPoint | None = None
    award: AwardOutcome | None = None
    new_badges: list[str] = field(default_factory=list)
    location_used: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "submission_id": self.submission_id,
            "error_message": self.error_message,
            "history_point": self.history_point.to_dict() if self.history_point else None,
            "award": self.award.to_dict() if self.award else None,
            "new_badges": list(self.new_badges),
            "location_used": self.location_used,
        }


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisOrchestrator:
    """Runs the analysis pipeline once per submission.

    Usage::

        orchestrator = AnalysisOrchestrator(service, repo, engine, nav)
        nav.reset_to(ScreenId.ANALYZING)
        outcome = await orchestrator.run(submission)
    """

    def __init__(
        self,
        service: AnalysisService,
        repository: WellnessRepository,
        engine: ProgressionEngine,
        navigation: NavigationController,
        *,
        geolocation: GeolocationSource | None = None,
        geolocation_timeout_s: float = 10.0,
        reward_ap: int = 100,
        audit_logger: AuditLogger | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._service = service
        self._repo = repository
        self._engine = engine
        self._nav = navigation
        self._geolocation = geolocation
        self._geolocation_timeout_s = geolocation_timeout_s
        self._reward_ap = reward_ap
        self._audit = audit_logger
        self._clock = clock
        self._in_flight: dict[str, asyncio.Task[AnalysisOutcome]] = {}
        self._processed: set[str] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def run(self, submission: Submission | None) -> AnalysisOutcome:
        """Run the pipeline for ``submission`` bound to the current Analyzing entry.

        Incomplete input is a no-op. A submission already in flight is joined
        rather than sent again; one already processed is not re-run.
        """
        if submission is None or submission.image is None or submission.answers is None:
            logger.warning("Analysis skipped: image or answers missing")
            return AnalysisOutcome(status="invalid", error_message="Image and answers are required")

        sid = submission.submission_id
        if sid in self._in_flight:
            logger.info("Analysis %s already in flight; joining it", sid)
            return await self._in_flight[sid]
        if sid in self._processed:
            logger.info("Analysis %s already processed; not re-running", sid)
            return AnalysisOutcome(status="already_processed", submission_id=sid)
        if self._nav.current() is not ScreenId.ANALYZING:
            logger.warning("Analysis %s requested off the Analyzing screen; ignoring", sid)
            return AnalysisOutcome(status="invalid", submission_id=sid,
                                   error_message="Analysis runs only from the Analyzing screen")

        task = asyncio.ensure_future(self._pipeline(submission, self._nav.generation))
        self._in_flight[sid] = task
        try:
            return await task
        finally:
            self._in_flight.pop(sid, None)
            self._processed.add(sid)

    def _is_stale(self, entry_generation: int) -> bool:
        return self._nav.generation != entry_generation

    async def _pipeline(self, submission: Submission, entry_generation: int) -> AnalysisOutcome:
        sid = submission.submission_id
        start = time.monotonic()

        location: Location | None = submission.location
        if location is None:
            location = await resolve_location(self._geolocation, self._geolocation_timeout_s)
        located = location is not None

        try:
            result = await self._service.analyze(submission.image, submission.answers, location)
        except (AnalysisServiceError, MalformedResponseError) as exc:
            return self._fail(submission, entry_generation, str(exc) or USER_FACING_FAILURE,
                              exc, start, located)
        except Exception as exc:
            logger.exception("Analysis %s failed unexpectedly", sid)
            return self._fail(submission, entry_generation, UNKNOWN_FAILURE, exc, start, located)

        if self._is_stale(entry_generation):
            logger.warning("Analysis %s finished after navigation moved on; result discarded", sid)
            self._audit_run(submission, start, "discarded", located)
            return AnalysisOutcome(status="discarded", submission_id=sid, result=result,
                                   location_used=located)

        point = WellnessDataPoint(
            timestamp=self._clock().isoformat(),
            scores=result.scores.to_dict(),
        )
        self._repo.append_history(point)
        award = self._engine.award_points(self._reward_ap)
        new_badges = award.new_badges + self._engine.record_event(ANALYSIS_COMPLETED)

        self._nav.reset_to(ScreenId.RESULTS)
        logger.info(
            "Analysis %s complete: scores=%s, +%d AP, level=%d, new_badges=%s",
            sid, point.scores, self._reward_ap, award.profile.level, new_badges,
        )
        self._audit_run(submission, start, "success", located)
        return AnalysisOutcome(
            status="succeeded",
            submission_id=sid,
            result=result,
            history_point=point,
            award=award,
            new_badges=new_badges,
            location_used=located,
        )

    def _fail(
        self,
        submission: Submission,
        entry_generation: int,
        message: str,
        exc: Exception,
        start: float,
        location_used: bool,
    ) -> AnalysisOutcome:
        sid = submission.submission_id
        if self._is_stale(entry_generation):
            logger.warning("Analysis %s failed after navigation moved on; error discarded", sid)
            self._audit_run(submission, start, "discarded", location_used, exc)
            return AnalysisOutcome(status="discarded", submission_id=sid, error_message=message,
                                   location_used=location_used)

        logger.error("Analysis %s failed: %s", sid, message)
        self._nav.reset_to(ScreenId.ERROR)
        self._audit_run(submission, start, "failure", location_used, exc)
        return AnalysisOutcome(status="failed", submission_id=sid, error_message=message,
                               location_used=location_used)

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def _audit_run(
        self,
        submission: Submission,
        start: float,
        status: str,
        location_used: bool,
        exc: Exception | None = None,
    ) -> None:
        if self._audit is None:
            return
        self._audit.log_analysis(
            input_payload={
                "image_sha256": hashlib.sha256(submission.image.data).hexdigest(),
                "answers": submission.answers.to_dict(),
            },
            llm_provider=self._service.provider_name,
            location_sent=location_used,
            duration_ms=(time.monotonic() - start) * 1000,
            status=status,
            error_type=type(exc).__name__ if exc is not None else None,
        )
