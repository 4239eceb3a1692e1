"""Wellness repository: the typed Persistence Adapter over a key-value store.

Each named resource has a getter with a defined default and a setter. Reads
and writes never raise: when the backing store is unavailable the failure is
logged and the repository serves a per-session in-memory copy instead, so the
client keeps working for the rest of the session.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, TypeVar

from nutriaura.core.storage.models import ForumPost, Goal, StoredProfile, WellnessDataPoint
from nutriaura.core.storage.store import KeyValueStore, StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

HISTORY_KEY = "wellness-history"
GOALS_KEY = "user-goals"
CHALLENGES_KEY = "joined-challenges"
PROFILE_KEY = "user-profile"
COMPLETED_MISSIONS_KEY = "completed-missions"
EARNED_BADGES_KEY = "earned-badges"
FORUM_KEY = "forum-posts"
THEME_KEY = "theme"
NOVELTY_MODE_KEY = "novelty-mode"

ALL_KEYS = (
    HISTORY_KEY,
    GOALS_KEY,
    CHALLENGES_KEY,
    PROFILE_KEY,
    COMPLETED_MISSIONS_KEY,
    EARNED_BADGES_KEY,
    FORUM_KEY,
    THEME_KEY,
    NOVELTY_MODE_KEY,
)

MEMBERSHIP_KEYS = (CHALLENGES_KEY, COMPLETED_MISSIONS_KEY, EARNED_BADGES_KEY)

THEMES = ("light", "dark")


class WellnessRepository:
    """Typed get/set per named resource.

    Usage::

        repo = WellnessRepository(InMemoryKeyValueStore())
        repo.append_history(WellnessDataPoint(timestamp=..., scores={...}))
        repo.add_member(EARNED_BADGES_KEY, "first_analysis")
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        # Values whose durable write failed; served until a write succeeds.
        self._session: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Raw access with fallback
    # ------------------------------------------------------------------

    def _read(self, key: str, default: Any) -> Any:
        # A pending session value is newer than anything the store holds
        if key in self._session:
            return copy.deepcopy(self._session[key])
        try:
            value = self._store.get(key)
        except StorageUnavailableError as exc:
            logger.warning("Storage read failed for %s, using default: %s", key, exc)
            return copy.deepcopy(default)
        return copy.deepcopy(default) if value is None else value

    def _write(self, key: str, value: Any) -> None:
        try:
            self._store.set(key, value)
        except StorageUnavailableError as exc:
            logger.warning("Storage write failed for %s, keeping it for this session: %s", key, exc)
            self._session[key] = copy.deepcopy(value)
            return
        self._session.pop(key, None)

    def _read_list(self, key: str, parse: Callable[[Any], T]) -> list[T]:
        raw = self._read(key, [])
        if not isinstance(raw, list):
            logger.warning("Stored %s is not a list, ignoring it", key)
            return []
        items: list[T] = []
        for entry in raw:
            try:
                items.append(parse(entry))
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("Skipping malformed %s entry: %r", key, entry)
        return items

    # ------------------------------------------------------------------
    # Wellness history (append-only)
    # ------------------------------------------------------------------

    def get_history(self) -> list[WellnessDataPoint]:
        """Return all history points in insertion (chronological) order."""
        return self._read_list(HISTORY_KEY, WellnessDataPoint.from_dict)

    def append_history(self, point: WellnessDataPoint) -> list[WellnessDataPoint]:
        """Append one point and return the updated history."""
        history = self.get_history()
        history.append(point)
        self._write(HISTORY_KEY, [p.to_dict() for p in history])
        return history

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def get_goals(self) -> list[Goal]:
        return self._read_list(GOALS_KEY, Goal.from_dict)

    def save_goals(self, goals: list[Goal]) -> None:
        self._write(GOALS_KEY, [g.to_dict() for g in goals])

    # ------------------------------------------------------------------
    # Progression (raw record)
    # ------------------------------------------------------------------

    def get_stored_profile(self) -> StoredProfile:
        raw = self._read(PROFILE_KEY, None)
        if raw is None:
            return StoredProfile()
        try:
            return StoredProfile.from_dict(raw)
        except (AttributeError, TypeError, ValueError):
            logger.warning("Stored profile is malformed, starting from level 1")
            return StoredProfile()

    def save_stored_profile(self, profile: StoredProfile) -> None:
        self._write(PROFILE_KEY, profile.to_dict())

    # ------------------------------------------------------------------
    # Membership sets (badges, missions, challenges)
    # ------------------------------------------------------------------

    def get_members(self, key: str) -> list[str]:
        """Return the ids in a membership set, in the order they were added."""
        if key not in MEMBERSHIP_KEYS:
            raise KeyError(f"Not a membership resource: {key!r}")
        ids = self._read_list(key, str)
        # Collapse duplicates a hand-edited store might contain
        return list(dict.fromkeys(ids))

    def add_member(self, key: str, member_id: str) -> tuple[list[str], bool]:
        """Add an id to a membership set.

        Returns:
            The updated ids and whether the id was newly added.
        """
        members = self.get_members(key)
        if member_id in members:
            return members, False
        members.append(member_id)
        self._write(key, members)
        return members, True

    # ------------------------------------------------------------------
    # Forum
    # ------------------------------------------------------------------

    def get_forum_posts(self) -> list[ForumPost] | None:
        """Return stored posts, or None when the forum was never written."""
        if self._read(FORUM_KEY, None) is None:
            return None
        return self._read_list(FORUM_KEY, ForumPost.from_dict)

    def save_forum_posts(self, posts: list[ForumPost]) -> None:
        self._write(FORUM_KEY, [p.to_dict() for p in posts])

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_theme(self) -> str:
        theme = self._read(THEME_KEY, "light")
        return theme if theme in THEMES else "light"

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"theme must be one of {THEMES}, got {theme!r}")
        self._write(THEME_KEY, theme)

    def get_novelty_mode(self) -> bool:
        return bool(self._read(NOVELTY_MODE_KEY, False))

    def set_novelty_mode(self, enabled: bool) -> None:
        self._write(NOVELTY_MODE_KEY, bool(enabled))

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def clear_all(self) -> int:
        """Delete every resource this repository owns.

        Returns:
            Number of resources that held a value.
        """
        held = {key for key in self._session if key in ALL_KEYS}
        for key in ALL_KEYS:
            try:
                if self._store.get(key) is not None:
                    held.add(key)
                self._store.delete(key)
            except StorageUnavailableError as exc:
                logger.warning("Storage delete failed for %s: %s", key, exc)
        self._session.clear()
        logger.warning("Cleared all stored wellness data (%d resources)", len(held))
        return len(held)
