"""MCP tools for the profile, progress history, preferences and data reset.

Deleting all data is audit-logged.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from nutriaura.domains.wellness.models import ValidationError

if TYPE_CHECKING:
    from nutriaura.domains.wellness.session import WellnessSession

logger = logging.getLogger(__name__)


def register_profile_tools(mcp: FastMCP, session: WellnessSession) -> None:
    """Register profile and preference tools on the MCP server."""

    @mcp.tool
    async def get_profile(ctx: Context) -> str:
        """Show your level, Aura Points, badges, goals and leaderboard position."""
        return json.dumps({"status": "ok", **session.profile_payload()}, indent=2)

    @mcp.tool
    async def progress_report(ctx: Context) -> str:
        """Show how each wellness score has moved across your analyses."""
        return json.dumps(session.trends.progress_report(), indent=2)

    @mcp.tool
    async def set_theme(ctx: Context, theme: str) -> str:
        """Switch between the light and dark theme.

        Args:
            theme: 'light' or 'dark'.
        """
        try:
            session.preferences.set_theme(theme)
        except ValidationError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({"status": "ok", **session.preferences.to_dict()})

    @mcp.tool
    async def set_novelty_mode(ctx: Context, enabled: bool) -> str:
        """Turn novelty ("chaos") mode on or off.

        Only changes how results are displayed; saved history is unaffected.

        Args:
            enabled: True to turn it on.
        """
        session.preferences.set_novelty_mode(enabled)
        return json.dumps({"status": "ok", **session.preferences.to_dict()})

    @mcp.tool
    async def delete_all_data(ctx: Context, confirm: bool = False) -> str:
        """Permanently delete your history, progress, goals, badges and posts.

        Args:
            confirm: Must be True to proceed.
        """
        if not confirm:
            return json.dumps({
                "status": "error",
                "message": "Set confirm=true to delete all stored data.",
            })
        count = session.clear_data()
        logger.info("All wellness data deleted (%d resources)", count)
        return json.dumps({"status": "deleted", "resources_cleared": count})
