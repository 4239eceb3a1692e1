"""Quests: daily/weekly missions that pay AP, and joinable community challenges."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from nutriaura.domains.wellness.catalog import Challenge, Mission
from nutriaura.domains.wellness.progression import AwardOutcome, ProgressionEngine
from nutriaura.domains.wellness.registries import ChallengeRegistry, MissionRegistry

logger = logging.getLogger(__name__)


@dataclass
class MissionCompletion:
    mission: Mission
    completed_now: bool
    award: AwardOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mission_id": self.mission.id,
            "completed_now": self.completed_now,
            "award": self.award.to_dict() if self.award else None,
        }


@dataclass
class QuestBoardView:
    daily: list[dict[str, Any]] = field(default_factory=list)
    weekly: list[dict[str, Any]] = field(default_factory=list)
    challenges: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"daily": self.daily, "weekly": self.weekly, "challenges": self.challenges}


def _mission_entry(mission: Mission, completed: bool) -> dict[str, Any]:
    return {
        "id": mission.id,
        "title": mission.title,
        "description": mission.description,
        "icon": mission.icon,
        "ap_reward": mission.ap_reward,
        "completed": completed,
    }


def _challenge_entry(challenge: Challenge, joined: bool) -> dict[str, Any]:
    return {
        "id": challenge.id,
        "title": challenge.title,
        "description": challenge.description,
        "icon": challenge.icon,
        "duration": challenge.duration,
        "details": list(challenge.details),
        "joined": joined,
    }


class QuestBoard:
    """Mission completion and challenge membership on top of the registries.

    Completing a mission awards its AP before recording completion, and only
    the first completion pays.
    """

    def __init__(
        self,
        missions: MissionRegistry,
        challenges: ChallengeRegistry,
        engine: ProgressionEngine,
    ) -> None:
        self._missions = missions
        self._challenges = challenges
        self._engine = engine

    def view(self) -> QuestBoardView:
        done = self._missions.get_memberships()
        joined = self._challenges.get_memberships()
        board = QuestBoardView()
        for mission in self._missions.list():
            entry = _mission_entry(mission, mission.id in done)
            (board.daily if mission.type == "daily" else board.weekly).append(entry)
        board.challenges = [_challenge_entry(c, c.id in joined) for c in self._challenges.list()]
        return board

    def complete_mission(self, mission_id: str) -> MissionCompletion:
        """Raises ``UnknownCatalogEntryError`` for an id outside the catalog."""
        mission = self._missions.get(mission_id)
        if self._missions.is_member(mission.id):
            logger.info("Mission %s already completed; no AP awarded", mission.id)
            return MissionCompletion(mission=mission, completed_now=False)

        award = self._engine.award_points(mission.ap_reward)
        self._missions.grant(mission.id)
        return MissionCompletion(mission=mission, completed_now=True, award=award)

    def join_challenge(self, challenge_id: str) -> bool:
        """Returns True if newly joined."""
        return self._challenges.grant(challenge_id)
