"""Single-user wellness session: the screen flow and the state behind it.

Owns the navigation stack plus the transient capture state (photo, answers,
pending submission, last result, last error) and wires the persistent
features (progression, quests, goals, forum, preferences) onto one
repository.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable

from nutriaura.domains.wellness.catalog import load_info_sections
from nutriaura.domains.wellness.forum import ForumBoard
from nutriaura.domains.wellness.goals import GoalBook, suggest_goals
from nutriaura.domains.wellness.leaderboard import build_leaderboard
from nutriaura.domains.wellness.models import (
    ACTIVITY_OPTIONS,
    DIET_OPTIONS,
    AnalysisResult,
    CapturedImage,
    Location,
    QuizAnswers,
    Submission,
    ValidationError,
)
from nutriaura.domains.wellness.navigation import LATERAL_TABS, NavigationController, ScreenId
from nutriaura.domains.wellness.orchestrator import AnalysisOrchestrator, AnalysisOutcome
from nutriaura.domains.wellness.preferences import Preferences
from nutriaura.domains.wellness.progression import ProgressionEngine
from nutriaura.domains.wellness.quests import QuestBoard
from nutriaura.domains.wellness.registries import BadgeRegistry, ChallengeRegistry, MissionRegistry
from nutriaura.domains.wellness.trends import TrendAnalyzer

if TYPE_CHECKING:
    from nutriaura.core.audit.logger import AuditLogger
    from nutriaura.core.storage.repository import WellnessRepository
    from nutriaura.domains.wellness.analysis_service import AnalysisService
    from nutriaura.domains.wellness.geolocation import GeolocationSource

logger = logging.getLogger(__name__)


class InvalidTransitionError(ValidationError):
    """Raised when an action is not offered on the current screen."""


@dataclass
class _Transient:
    image: CapturedImage | None = None
    answers: QuizAnswers | None = None
    pending: Submission | None = None
    result: AnalysisResult | None = None
    last_award: int = 0
    error: str | None = None


class WellnessSession:
    """One user's session. Tools call these operations; ``view()`` renders.

    Usage::

        session = WellnessSession(repository, analysis_service)
        session.start()
        session.capture_photo(image)
        session.confirm_photo()
        outcome = await session.submit_quiz(answers)
        session.view()["screen"]    # "results" or "error"
    """

    def __init__(
        self,
        repository: WellnessRepository,
        service: AnalysisService,
        *,
        geolocation: GeolocationSource | None = None,
        geolocation_timeout_s: float = 10.0,
        reward_ap: int = 100,
        audit_logger: AuditLogger | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._repo = repository
        self._audit = audit_logger
        self.nav = NavigationController()
        self.badges = BadgeRegistry(repository)
        self.missions = MissionRegistry(repository)
        self.challenges = ChallengeRegistry(repository)
        self.engine = ProgressionEngine(repository, self.badges)
        self.quests = QuestBoard(self.missions, self.challenges, self.engine)
        self.goals = GoalBook(repository, self.engine, clock=clock)
        self.forum = ForumBoard(repository, clock=clock)
        self.preferences = Preferences(repository)
        self.trends = TrendAnalyzer(repository)
        self.orchestrator = AnalysisOrchestrator(
            service,
            repository,
            self.engine,
            self.nav,
            geolocation=geolocation,
            geolocation_timeout_s=geolocation_timeout_s,
            reward_ap=reward_ap,
            audit_logger=audit_logger,
            clock=clock,
        )
        self._state = _Transient()

    # ------------------------------------------------------------------
    # Capture flow
    # ------------------------------------------------------------------

    def _require(self, *screens: ScreenId) -> None:
        current = self.nav.current()
        if current not in screens:
            allowed = ", ".join(s.value for s in screens)
            raise InvalidTransitionError(
                f"Not available on the {current.value} screen (expected {allowed})"
            )

    def start(self) -> ScreenId:
        self._require(ScreenId.WELCOME)
        return self.nav.push(ScreenId.CAMERA)

    def capture_photo(self, image: CapturedImage) -> ScreenId:
        self._require(ScreenId.CAMERA)
        self._state.image = image
        return self.nav.push(ScreenId.CONFIRM_PHOTO)

    def retake_photo(self) -> ScreenId:
        self._require(ScreenId.CONFIRM_PHOTO)
        self._state.image = None
        return self.nav.pop()

    def confirm_photo(self) -> ScreenId:
        self._require(ScreenId.CONFIRM_PHOTO)
        if self._state.image is None:
            raise ValidationError("No photo captured")
        return self.nav.push(ScreenId.QUIZ)

    async def submit_quiz(self, answers: QuizAnswers, location: Location | None = None) -> AnalysisOutcome:
        """Store the answers, enter Analyzing and run the analysis for that entry."""
        self._require(ScreenId.QUIZ)
        if self._state.image is None:
            raise ValidationError("No photo captured")

        self._state.answers = answers
        self._state.error = None
        submission = Submission(image=self._state.image, answers=answers, location=location)
        self._state.pending = submission
        self.nav.reset_to(ScreenId.ANALYZING)

        outcome = await self.orchestrator.run(submission)
        if self._state.pending is not submission:
            # Session was reset while the analysis ran
            return outcome

        self._state.pending = None
        if outcome.status == "succeeded":
            self._state.result = outcome.result
            self._state.last_award = outcome.award.points if outcome.award else 0
        elif outcome.status == "failed":
            self._state.error = outcome.error_message
        return outcome

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def back(self) -> ScreenId:
        if not self.nav.can_go_back:
            logger.debug("Back ignored on %s", self.nav.current().value)
            return self.nav.current()
        return self.nav.pop()

    def open_tab(self, screen: ScreenId | str) -> ScreenId:
        screen = ScreenId(screen)
        if screen not in LATERAL_TABS:
            raise InvalidTransitionError(f"{screen.value} is not a tab")
        return self.nav.open(screen)

    def open_algorithm_info(self) -> ScreenId:
        return self.nav.open(ScreenId.ALGORITHM_INFO)

    def reset(self) -> ScreenId:
        """Clear transient state and return to Welcome. Persisted data stays."""
        self._state = _Transient()
        return self.nav.reset_to(ScreenId.WELCOME)

    def clear_data(self) -> int:
        """Delete every persisted resource, then reset the session."""
        count = self._repo.clear_all()
        if self._audit is not None:
            self._audit.log_data_reset(count)
        self.reset()
        return count

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def view(self) -> dict[str, Any]:
        screen = self.nav.current()
        return {
            "screen": screen.value,
            "stack": [s.value for s in self.nav.stack],
            "can_go_back": self.nav.can_go_back,
            "preferences": self.preferences.to_dict(),
            "payload": self._payload(screen),
        }

    def _payload(self, screen: ScreenId) -> dict[str, Any]:
        if screen is ScreenId.CONFIRM_PHOTO and self._state.image is not None:
            return {"image": {"mime_type": self._state.image.mime_type,
                              "size_bytes": len(self._state.image.data)}}
        if screen is ScreenId.QUIZ:
            return {"diet_options": list(DIET_OPTIONS), "activity_options": list(ACTIVITY_OPTIONS)}
        if screen is ScreenId.ANALYZING:
            pending = self._state.pending
            return {"submission_id": pending.submission_id if pending else None}
        if screen is ScreenId.RESULTS:
            return self._results_payload()
        if screen is ScreenId.ERROR:
            return {"message": self._state.error or "An unknown error occurred."}
        if screen is ScreenId.FORUM:
            return self.forum.view()
        if screen is ScreenId.PROGRESS:
            return self.trends.progress_report()
        if screen is ScreenId.QUESTS:
            return self.quests.view().to_dict()
        if screen is ScreenId.PROFILE:
            return self.profile_payload()
        if screen is ScreenId.ALGORITHM_INFO:
            return {"sections": [s.to_dict() for s in load_info_sections()]}
        return {}

    def _results_payload(self) -> dict[str, Any]:
        result = self._state.result
        if result is None:
            return {"result": None}
        return {
            "result": self.preferences.display_result(result).to_dict(),
            "ap_awarded": self._state.last_award,
            "goals": [g.to_dict() for g in self.goals.list()],
            "suggested_goals": [g.to_dict() for g in suggest_goals(result.scores)],
        }

    def profile_payload(self) -> dict[str, Any]:
        profile = self.engine.profile()
        earned = self.badges.get_memberships()
        return {
            "profile": profile.to_dict(),
            "badges": [
                {"id": b.id, "title": b.title, "description": b.description,
                 "icon": b.icon, "earned": b.id in earned}
                for b in self.badges.list()
            ],
            "leaderboard": [e.to_dict() for e in build_leaderboard(profile)],
            "goals": [g.to_dict() for g in self.goals.list()],
        }
