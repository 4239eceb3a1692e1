"""MCP Resources for gamification catalog discovery."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from nutriaura.domains.wellness.session import WellnessSession


def register_catalog_resources(mcp: FastMCP, session: WellnessSession) -> None:
    """Register badge, mission and challenge catalogs as read-only resources."""

    @mcp.resource("catalog://wellness/badges")
    def badge_catalog_resource() -> str:
        """All badges that can be earned."""
        badges = session.badges.list()
        return json.dumps(
            {"kind": "badge", "count": len(badges), "entries": [asdict(b) for b in badges]},
            indent=2,
        )

    @mcp.resource("catalog://wellness/missions")
    def mission_catalog_resource() -> str:
        """Daily and weekly missions with their Aura Point rewards."""
        missions = session.missions.list()
        return json.dumps(
            {"kind": "mission", "count": len(missions), "entries": [asdict(m) for m in missions]},
            indent=2,
        )

    @mcp.resource("catalog://wellness/challenges")
    def challenge_catalog_resource() -> str:
        """Community challenges that can be joined."""
        challenges = session.challenges.list()
        return json.dumps(
            {
                "kind": "challenge",
                "count": len(challenges),
                "entries": [{**asdict(c), "details": list(c.details)} for c in challenges],
            },
            indent=2,
        )
