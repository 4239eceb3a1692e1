"""User goals: add, toggle, delete, and suggestions for the weakest scores."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from nutriaura.core.storage.models import GOAL_CATEGORIES, SCORE_KEYS, Goal
from nutriaura.core.storage.repository import WellnessRepository
from nutriaura.domains.wellness.models import AnalysisScores, ValidationError
from nutriaura.domains.wellness.progression import GOALS_UPDATED, ProgressionEngine

logger = logging.getLogger(__name__)

GOAL_SUGGESTIONS: dict[str, str] = {
    "sleep": "Get 7-8 hours of quality sleep.",
    "stress": "Practice 5 minutes of mindfulness daily.",
    "nutrition": "Add a serving of greens to one meal daily.",
    "hydration": "Drink 8 glasses of water a day.",
}


class GoalNotFoundError(KeyError):
    """Raised when toggling or deleting an id that is not in the goal list."""


def suggest_goals(scores: AnalysisScores, count: int = 2) -> list[Goal]:
    """Suggested (unsaved) goals for the ``count`` lowest-scoring categories.

    Ties keep the canonical score order.
    """
    values = scores.to_dict()
    ranked = sorted(SCORE_KEYS, key=lambda key: values[key])
    return [
        Goal(id=f"suggested-{key}", text=GOAL_SUGGESTIONS[key], category=key)
        for key in ranked[:count]
    ]


class GoalBook:
    """Persisted goal list. Every save raises a ``goals_updated`` event.

    Usage::

        book = GoalBook(repository, engine)
        goal, badges = book.add("Walk after lunch")
    """

    def __init__(
        self,
        repository: WellnessRepository,
        engine: ProgressionEngine,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._repo = repository
        self._engine = engine
        self._clock = clock

    def list(self) -> list[Goal]:
        return self._repo.get_goals()

    def _save(self, goals: list[Goal]) -> list[str]:
        self._repo.save_goals(goals)
        return self._engine.record_event(GOALS_UPDATED)

    def _new_id(self, existing: set[str]) -> str:
        base = self._clock().isoformat()
        candidate, n = base, 1
        while candidate in existing:
            candidate = f"{base}-{n}"
            n += 1
        return candidate

    def add(self, text: str, category: str = "general") -> tuple[Goal, list[str]]:
        """Append a goal.

        Returns:
            The new goal and any badges earned by the update.

        Raises:
            ValidationError: If ``text`` is blank or ``category`` is unknown.
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError("Goal text must not be empty")
        if category not in GOAL_CATEGORIES:
            raise ValidationError(f"category must be one of {GOAL_CATEGORIES}, got {category!r}")

        goals = self.list()
        goal = Goal(id=self._new_id({g.id for g in goals}), text=text, category=category)
        goals.append(goal)
        badges = self._save(goals)
        logger.info("Goal added (%s): %d goals total", category, len(goals))
        return goal, badges

    def toggle(self, goal_id: str) -> Goal:
        goals = self.list()
        for goal in goals:
            if goal.id == goal_id:
                goal.completed = not goal.completed
                self._save(goals)
                return goal
        raise GoalNotFoundError(f"No goal with id {goal_id!r}")

    def delete(self, goal_id: str) -> list[Goal]:
        goals = self.list()
        remaining = [g for g in goals if g.id != goal_id]
        if len(remaining) == len(goals):
            raise GoalNotFoundError(f"No goal with id {goal_id!r}")
        self._save(remaining)
        return remaining
