"""Static gamification catalogs, read from the YAML files shipped in ``catalogs/``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

logger = logging.getLogger(__name__)

CATALOG_DIR = Path(__file__).resolve().parent / "catalogs"

MissionType = Literal["daily", "weekly"]


@dataclass(frozen=True)
class Badge:
    id: str
    title: str
    description: str
    icon: str


@dataclass(frozen=True)
class Mission:
    id: str
    title: str
    description: str
    icon: str
    type: MissionType
    ap_reward: int


@dataclass(frozen=True)
class Challenge:
    id: str
    title: str
    description: str
    icon: str
    duration: str = ""
    details: tuple[str, ...] = field(default_factory=tuple)


def _read_entries(path: Path, kind: str) -> list[dict[str, Any]]:
    with open(path) as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}
    if data.get("kind") != kind:
        raise ValueError(f"{path.name}: expected kind {kind!r}, found {data.get('kind')!r}")
    entries = data.get("entries") or []
    ids = [e["id"] for e in entries]
    if len(ids) != len(set(ids)):
        raise ValueError(f"{path.name}: duplicate ids in catalog")
    return entries


def load_badges(path: Path | None = None) -> tuple[Badge, ...]:
    entries = _read_entries(path or CATALOG_DIR / "badges.yaml", "badge")
    return tuple(
        Badge(
            id=e["id"],
            title=e["title"],
            description=e.get("description", "").strip(),
            icon=e.get("icon", "badge"),
        )
        for e in entries
    )


def load_missions(path: Path | None = None) -> tuple[Mission, ...]:
    entries = _read_entries(path or CATALOG_DIR / "missions.yaml", "mission")
    missions = []
    for e in entries:
        if e.get("type") not in ("daily", "weekly"):
            raise ValueError(f"mission {e['id']!r}: type must be daily or weekly")
        reward = int(e["ap_reward"])
        if reward <= 0:
            raise ValueError(f"mission {e['id']!r}: ap_reward must be positive")
        missions.append(Mission(
            id=e["id"],
            title=e["title"],
            description=e.get("description", "").strip(),
            icon=e.get("icon", "quest"),
            type=e["type"],
            ap_reward=reward,
        ))
    return tuple(missions)


def load_challenges(path: Path | None = None) -> tuple[Challenge, ...]:
    entries = _read_entries(path or CATALOG_DIR / "challenges.yaml", "challenge")
    return tuple(
        Challenge(
            id=e["id"],
            title=e["title"],
            description=e.get("description", "").strip(),
            icon=e.get("icon", "users"),
            duration=str(e.get("duration", "")),
            details=tuple(e.get("details", [])),
        )
        for e in entries
    )


@dataclass(frozen=True)
class InfoSection:
    id: str
    title: str
    body: tuple[str, ...]
    cues: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "body": list(self.body), "cues": list(self.cues)}


def load_info_sections(path: Path | None = None) -> tuple[InfoSection, ...]:
    """Static "how it works" copy shown on the algorithm info screen."""
    entries = _read_entries(path or CATALOG_DIR / "algorithm_info.yaml", "info_section")
    return tuple(
        InfoSection(
            id=e["id"],
            title=e["title"],
            body=tuple(p.strip() for p in e.get("body", [])),
            cues=tuple(e.get("cues", [])),
        )
        for e in entries
    )
