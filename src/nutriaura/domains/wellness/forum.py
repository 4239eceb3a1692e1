"""Community forum: persisted posts, newest first, seeded on first read."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from nutriaura.core.storage.models import ForumPost
from nutriaura.core.storage.repository import WellnessRepository
from nutriaura.domains.wellness.models import ValidationError

logger = logging.getLogger(__name__)

CURRENT_USER = "You"

COMMUNITY_TIPS = (
    "Feeling stressed? Try the 4-7-8 breathing technique: inhale for 4s, hold for 7s, exhale for 8s.",
    "For better sleep, try to get 10-15 minutes of morning sunlight. It helps regulate your circadian rhythm.",
    "A simple tip for hydration: keep a water bottle on your desk at all times. Out of sight, out of mind!",
)

_UNITS = (
    (31536000, "years"),
    (2592000, "months"),
    (86400, "days"),
    (3600, "hours"),
    (60, "minutes"),
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse(timestamp: str) -> datetime:
    parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def time_since(timestamp: str, now: datetime | None = None) -> str:
    """Relative age such as ``"2 hours ago"``. A unit is used once it exceeds 1."""
    now = now or _utc_now()
    seconds = int((now - _parse(timestamp)).total_seconds())
    for size, unit in _UNITS:
        interval = seconds / size
        if interval > 1:
            return f"{int(interval)} {unit} ago"
    return f"{seconds} seconds ago"


def seed_posts(now: datetime) -> list[ForumPost]:
    return [
        ForumPost(
            id="1",
            author="WellnessExplorer",
            content=(
                "Just got my first analysis! The sleep score was a real eye-opener. "
                "Anyone have tips for winding down at night?"
            ),
            timestamp=(now - timedelta(hours=2)).isoformat(),
        ),
        ForumPost(
            id="2",
            author="GlowingGrace",
            content=(
                "My hydration score was low, so I bought a new water bottle to keep "
                "at my desk. Small changes!"
            ),
            timestamp=(now - timedelta(days=1)).isoformat(),
        ),
    ]


class ForumBoard:
    def __init__(
        self,
        repository: WellnessRepository,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._repo = repository
        self._clock = clock

    def posts(self) -> list[ForumPost]:
        stored = self._repo.get_forum_posts()
        if stored is None:
            stored = seed_posts(self._clock())
            self._repo.save_forum_posts(stored)
            logger.info("Forum seeded with %d posts", len(stored))
        return stored

    def add_post(self, content: str) -> list[ForumPost]:
        """Prepend a post by the current user and return the updated list.

        Raises:
            ValidationError: If ``content`` is blank.
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("Post content must not be empty")

        now = self._clock().isoformat()
        posts = self.posts()
        ids = {p.id for p in posts}
        post_id, n = now, 1
        while post_id in ids:
            post_id = f"{now}-{n}"
            n += 1

        updated = [ForumPost(id=post_id, author=CURRENT_USER, content=content, timestamp=now), *posts]
        self._repo.save_forum_posts(updated)
        return updated

    def report_post(self, post_id: str) -> bool:
        """Flag a post for moderation. Returns False for an unknown id."""
        if not any(p.id == post_id for p in self.posts()):
            logger.warning("Report for unknown forum post %s", post_id)
            return False
        logger.info("Post %s reported", post_id)
        return True

    def view(self) -> dict:
        now = self._clock()
        posts = []
        for p in self.posts():
            try:
                age = time_since(p.timestamp, now)
            except ValueError:
                age = ""
            posts.append({**p.to_dict(), "age": age})
        return {"tips": list(COMMUNITY_TIPS), "posts": posts}
