"""MCP tools for quests, challenges, goals and the community forum."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from nutriaura.domains.wellness.goals import GoalNotFoundError
from nutriaura.domains.wellness.models import ValidationError
from nutriaura.domains.wellness.registries import UnknownCatalogEntryError

if TYPE_CHECKING:
    from nutriaura.domains.wellness.session import WellnessSession

logger = logging.getLogger(__name__)


def register_activity_tools(mcp: FastMCP, session: WellnessSession) -> None:
    """Register quest, goal and forum tools on the MCP server."""

    # -- Quests ------------------------------------------------------------

    @mcp.tool
    async def list_quests(ctx: Context) -> str:
        """List daily and weekly missions and community challenges with their status."""
        return json.dumps({"status": "ok", **session.quests.view().to_dict()}, indent=2)

    @mcp.tool
    async def complete_mission(ctx: Context, mission_id: str) -> str:
        """Mark a mission done and collect its Aura Points (first completion only).

        Args:
            mission_id: Mission id from ``list_quests`` (e.g. 'daily_hydrate').
        """
        try:
            completion = session.quests.complete_mission(mission_id)
        except UnknownCatalogEntryError as exc:
            return json.dumps({"status": "not_found", "message": exc.args[0]})

        return json.dumps({
            "status": "completed" if completion.completed_now else "already_completed",
            **completion.to_dict(),
            "profile": session.engine.profile().to_dict(),
        }, indent=2)

    @mcp.tool
    async def join_challenge(ctx: Context, challenge_id: str) -> str:
        """Join a community challenge. Joining twice has no effect.

        Args:
            challenge_id: Challenge id from ``list_quests``.
        """
        try:
            joined = session.quests.join_challenge(challenge_id)
        except UnknownCatalogEntryError as exc:
            return json.dumps({"status": "not_found", "message": exc.args[0]})
        return json.dumps({
            "status": "joined" if joined else "already_joined",
            "challenge_id": challenge_id,
        })

    # -- Goals -------------------------------------------------------------

    @mcp.tool
    async def list_goals(ctx: Context) -> str:
        """List your goals."""
        return json.dumps({
            "status": "ok",
            "goals": [g.to_dict() for g in session.goals.list()],
        }, indent=2)

    @mcp.tool
    async def add_goal(ctx: Context, text: str, category: str = "general") -> str:
        """Add a personal goal.

        Args:
            text: What you want to do, e.g. 'Drink 8 glasses of water a day.'
            category: 'nutrition', 'sleep', 'stress', 'hydration' or 'general'.
        """
        try:
            goal, badges = session.goals.add(text, category)
        except ValidationError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({"status": "added", "goal": goal.to_dict(), "new_badges": badges})

    @mcp.tool
    async def toggle_goal(ctx: Context, goal_id: str) -> str:
        """Mark a goal complete, or incomplete again.

        Args:
            goal_id: Id of the goal to toggle.
        """
        try:
            goal = session.goals.toggle(goal_id)
        except GoalNotFoundError as exc:
            return json.dumps({"status": "not_found", "message": exc.args[0]})
        return json.dumps({"status": "ok", "goal": goal.to_dict()})

    @mcp.tool
    async def delete_goal(ctx: Context, goal_id: str) -> str:
        """Remove a goal.

        Args:
            goal_id: Id of the goal to remove.
        """
        try:
            remaining = session.goals.delete(goal_id)
        except GoalNotFoundError as exc:
            return json.dumps({"status": "not_found", "message": exc.args[0]})
        return json.dumps({"status": "deleted", "goal_id": goal_id, "remaining": len(remaining)})

    # -- Forum -------------------------------------------------------------

    @mcp.tool
    async def list_forum_posts(ctx: Context) -> str:
        """Show community posts (newest first) and community tips."""
        return json.dumps({"status": "ok", **session.forum.view()}, indent=2)

    @mcp.tool
    async def add_forum_post(ctx: Context, content: str) -> str:
        """Share a post with the community.

        Args:
            content: Post text.
        """
        try:
            posts = session.forum.add_post(content)
        except ValidationError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({"status": "posted", "post": posts[0].to_dict(), "post_count": len(posts)})

    @mcp.tool
    async def report_forum_post(ctx: Context, post_id: str) -> str:
        """Report a post to the moderators.

        Args:
            post_id: Id of the post to report.
        """
        if not session.forum.report_post(post_id):
            return json.dumps({"status": "not_found", "post_id": post_id})
        return json.dumps({
            "status": "reported",
            "post_id": post_id,
            "message": "Thank you for your report. Our moderators will review this post.",
        })
