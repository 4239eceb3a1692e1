"""Leaderboard: the user's lifetime AP ranked against a simulated peer list.

Nothing here is persisted. The user's entry is composed from the stored
profile at read time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from nutriaura.domains.wellness.forum import CURRENT_USER
from nutriaura.domains.wellness.progression import LevelProfile, normalize, total_ap

SIMULATED_PEERS: tuple[tuple[str, int], ...] = (
    ("GlowingGrace", 2150),
    ("WellnessExplorer", 1420),
    ("HydroHero", 980),
    ("ZenSeeker", 610),
    ("SleepySloth", 240),
)


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    name: str
    total_ap: int
    level: int
    is_current_user: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "name": self.name,
            "total_ap": self.total_ap,
            "level": self.level,
            "is_current_user": self.is_current_user,
        }


def build_leaderboard(
    profile: LevelProfile,
    peers: tuple[tuple[str, int], ...] = SIMULATED_PEERS,
) -> list[LeaderboardEntry]:
    """Rank peers and the current user by lifetime AP, highest first.

    On a tie the current user ranks below the peer.
    """
    user_total = total_ap(profile.level, profile.ap)
    rows = [(name, ap, False) for name, ap in peers]
    rows.append((CURRENT_USER, user_total, True))
    rows.sort(key=lambda r: (-r[1], r[2]))
    return [
        LeaderboardEntry(
            rank=i,
            name=name,
            total_ap=ap,
            level=normalize(1, ap).level,
            is_current_user=is_user,
        )
        for i, (name, ap, is_user) in enumerate(rows, start=1)
    ]
