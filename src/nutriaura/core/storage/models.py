"""Data models for the persistence layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

GoalCategory = Literal["nutrition", "sleep", "stress", "hydration", "general"]
GOAL_CATEGORIES = ("nutrition", "sleep", "stress", "hydration", "general")

SCORE_KEYS = ("nutrition", "sleep", "stress", "hydration")


@dataclass
class WellnessDataPoint:
    """One completed analysis: when it finished and the four scores it produced."""

    timestamp: str  # ISO 8601
    scores: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "scores": dict(self.scores)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WellnessDataPoint:
        scores = data.get("scores") or {}
        return cls(
            timestamp=str(data["timestamp"]),
            scores={k: int(scores[k]) for k in SCORE_KEYS if k in scores},
        )


@dataclass
class Goal:
    """A user-defined goal. ``id`` is derived from the creation timestamp."""

    id: str
    text: str
    category: GoalCategory = "general"
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Goal:
        category = data.get("category", "general")
        if category not in GOAL_CATEGORIES:
            category = "general"
        return cls(
            id=str(data["id"]),
            text=str(data.get("text", "")),
            category=category,
            completed=bool(data.get("completed", False)),
        )


@dataclass
class ForumPost:
    """A community forum post."""

    id: str
    author: str
    content: str
    timestamp: str  # ISO 8601

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ForumPost:
        return cls(
            id=str(data["id"]),
            author=str(data.get("author", "")),
            content=str(data.get("content", "")),
            timestamp=str(data.get("timestamp", "")),
        )


@dataclass
class StoredProfile:
    """Raw progression record as persisted.

    ``ap`` is the cumulative total awarded since ``level`` was stored, not the
    normalized leftover. Normalizing it is always safe to repeat.
    """

    level: int = 1
    ap: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"level": self.level, "ap": self.ap}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoredProfile:
        return cls(level=int(data.get("level", 1)), ap=int(data.get("ap", 0)))
