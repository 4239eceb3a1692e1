"""Aura Point progression: the leveling curve, AP awards and badge rules.

The persisted record keeps the raw ``(level, cumulative ap)`` pair. The
level/leftover view shown to the user is always derived with ``normalize``,
which is idempotent, so re-deriving it never double-counts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from nutriaura.core.storage.repository import WellnessRepository
from nutriaura.domains.wellness.registries import BadgeRegistry

logger = logging.getLogger(__name__)

# Progression events
ANALYSIS_COMPLETED = "analysis_completed"
POINTS_AWARDED = "points_awarded"
GOALS_UPDATED = "goals_updated"


class InvalidAwardError(ValueError):
    """Raised for a non-positive AP award."""


def level_threshold(level: int) -> int:
    """AP needed to clear ``level``: 200 at level 1, then +100 per level."""
    return level * 100 + 100


@dataclass(frozen=True)
class LevelProfile:
    level: int
    ap: int
    ap_for_next_level: int

    @property
    def progress_pct(self) -> float:
        return round(self.ap / self.ap_for_next_level * 100, 1)

    def to_dict(self) -> dict[str, int | float]:
        return {
            "level": self.level,
            "ap": self.ap,
            "ap_for_next_level": self.ap_for_next_level,
            "progress_pct": self.progress_pct,
        }


def normalize(level: int, ap: int) -> LevelProfile:
    """Carry ``ap`` over level thresholds until it is below the current one."""
    if level < 1:
        raise ValueError(f"level must be >= 1, got {level}")
    if ap < 0:
        raise ValueError(f"ap must be >= 0, got {ap}")

    threshold = level_threshold(level)
    while ap >= threshold:
        ap -= threshold
        level += 1
        threshold = level_threshold(level)
    return LevelProfile(level=level, ap=ap, ap_for_next_level=threshold)


def total_ap(level: int, ap: int) -> int:
    """Lifetime AP represented by a (level, ap) pair."""
    return sum(level_threshold(lv) for lv in range(1, level)) + ap


# ---------------------------------------------------------------------------
# Badge rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EventContext:
    """State read after the triggering write, handed to badge predicates."""

    profile: LevelProfile
    history_count: int
    goal_count: int


@dataclass(frozen=True)
class BadgeRule:
    badge_id: str
    predicate: Callable[[EventContext], bool]


BADGE_RULES: dict[str, tuple[BadgeRule, ...]] = {
    ANALYSIS_COMPLETED: (BadgeRule("first_analysis", lambda ctx: ctx.history_count >= 1),),
    POINTS_AWARDED: (BadgeRule("level_5", lambda ctx: ctx.profile.level >= 5),),
    GOALS_UPDATED: (BadgeRule("five_goals", lambda ctx: ctx.goal_count >= 5),),
}


@dataclass
class AwardOutcome:
    profile: LevelProfile
    points: int
    levels_gained: int
    new_badges: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.to_dict(),
            "points": self.points,
            "levels_gained": self.levels_gained,
            "new_badges": list(self.new_badges),
        }


class ProgressionEngine:
    """Awards AP against the stored raw record and evaluates badge rules.

    Usage::

        engine = ProgressionEngine(repository, BadgeRegistry(repository))
        outcome = engine.award_points(100)
        engine.record_event(ANALYSIS_COMPLETED)
    """

    def __init__(
        self,
        repository: WellnessRepository,
        badges: BadgeRegistry,
        rules: dict[str, tuple[BadgeRule, ...]] | None = None,
    ) -> None:
        self._repo = repository
        self._badges = badges
        self._rules = rules if rules is not None else BADGE_RULES

    def profile(self) -> LevelProfile:
        raw = self._repo.get_stored_profile()
        return normalize(max(raw.level, 1), max(raw.ap, 0))

    def award_points(self, points: int) -> AwardOutcome:
        """Add ``points`` to the raw AP total and re-derive the profile.

        Raises:
            InvalidAwardError: If ``points`` is not a positive integer.
        """
        if isinstance(points, bool) or not isinstance(points, int) or points <= 0:
            raise InvalidAwardError(f"AP award must be a positive integer, got {points!r}")

        raw = self._repo.get_stored_profile()
        before = normalize(max(raw.level, 1), max(raw.ap, 0))
        raw.level = max(raw.level, 1)
        raw.ap = max(raw.ap, 0) + points
        self._repo.save_stored_profile(raw)

        after = self.profile()
        levels_gained = after.level - before.level
        if levels_gained:
            logger.info("Level up: %d -> %d", before.level, after.level)

        new_badges = self.record_event(POINTS_AWARDED)
        return AwardOutcome(
            profile=after,
            points=points,
            levels_gained=levels_gained,
            new_badges=new_badges,
        )

    def record_event(self, event: str) -> list[str]:
        """Evaluate the badge rules for ``event`` against freshly read state.

        Returns:
            Badge ids newly earned by this event.
        """
        rules = self._rules.get(event, ())
        if not rules:
            return []

        context = EventContext(
            profile=self.profile(),
            history_count=len(self._repo.get_history()),
            goal_count=len(self._repo.get_goals()),
        )
        earned: list[str] = []
        for rule in rules:
            if rule.predicate(context) and self._badges.grant(rule.badge_id):
                earned.append(rule.badge_id)
        return earned
