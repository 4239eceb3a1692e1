"""MCP tools for the capture-and-analyze flow and screen navigation.

Each tool performs one user action and returns the rendered view, so a
client can draw the current screen from any response.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from nutriaura.domains.wellness.models import CapturedImage, Location, QuizAnswers, ValidationError

if TYPE_CHECKING:
    from nutriaura.domains.wellness.session import WellnessSession

logger = logging.getLogger(__name__)


def _error(message: str) -> str:
    return json.dumps({"status": "error", "message": message})


def register_navigation_tools(mcp: FastMCP, session: WellnessSession) -> None:
    """Register flow and navigation tools on the MCP server."""

    def _ok(**extra) -> str:
        return json.dumps({"status": "ok", **extra, "view": session.view()}, indent=2)

    @mcp.tool
    async def get_view(ctx: Context) -> str:
        """Return the current screen, navigation stack and screen payload."""
        return _ok()

    @mcp.tool
    async def start_analysis(ctx: Context) -> str:
        """Leave the welcome screen and open the camera."""
        try:
            session.start()
        except ValidationError as exc:
            return _error(str(exc))
        return _ok()

    @mcp.tool
    async def capture_photo(ctx: Context, image_data_url: str) -> str:
        """Submit the selfie taken on the camera screen.

        Args:
            image_data_url: The photo as a data URL (``data:image/jpeg;base64,...``).
        """
        try:
            session.capture_photo(CapturedImage.from_data_url(image_data_url))
        except ValidationError as exc:
            return _error(str(exc))
        return _ok()

    @mcp.tool
    async def retake_photo(ctx: Context) -> str:
        """Discard the captured photo and return to the camera."""
        try:
            session.retake_photo()
        except ValidationError as exc:
            return _error(str(exc))
        return _ok()

    @mcp.tool
    async def confirm_photo(ctx: Context) -> str:
        """Accept the captured photo and continue to the lifestyle quiz."""
        try:
            session.confirm_photo()
        except ValidationError as exc:
            return _error(str(exc))
        return _ok()

    @mcp.tool
    async def submit_quiz(
        ctx: Context,
        sleep_hours: float,
        stress_level: int,
        energy_level: int,
        diet_quality: str,
        hydration: str,
        activity_level: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> str:
        """Submit the lifestyle quiz and run the wellness analysis.

        The photo and answers are sent to the configured AI provider. The
        response lands on the results screen, or the error screen if the
        analysis failed.

        Args:
            sleep_hours: Average hours of sleep per night (0-24).
            stress_level: Stress from 1 (low) to 5 (high).
            energy_level: Energy from 1 (low) to 5 (high).
            diet_quality: 'Very Healthy', 'Mostly Healthy', 'Average' or 'Unhealthy'.
            hydration: Daily water intake, e.g. '6-8 glasses'.
            activity_level: 'Sedentary', 'Light', 'Moderate' or 'Very Active'.
            latitude: Optional latitude to ground regional recommendations.
            longitude: Optional longitude, required with latitude.
        """
        try:
            answers = QuizAnswers(
                sleep_hours=sleep_hours,
                stress_level=stress_level,
                energy_level=energy_level,
                diet_quality=diet_quality,
                hydration=hydration,
                activity_level=activity_level,
            )
            location = None
            if latitude is not None and longitude is not None:
                if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
                    raise ValidationError(f"Invalid coordinates: {latitude}, {longitude}")
                location = Location(latitude=latitude, longitude=longitude)
            outcome = await session.submit_quiz(answers, location=location)
        except ValidationError as exc:
            return _error(str(exc))

        return _ok(analysis=outcome.to_dict())

    @mcp.tool
    async def go_back(ctx: Context) -> str:
        """Return to the previous screen, if the back button is shown."""
        session.back()
        return _ok()

    @mcp.tool
    async def open_tab(ctx: Context, tab: str) -> str:
        """Switch to a main tab, clearing back-history.

        Args:
            tab: One of 'forum', 'progress', 'quests', 'profile'.
        """
        try:
            session.open_tab(tab)
        except (ValueError, ValidationError) as exc:
            return _error(str(exc))
        return _ok()

    @mcp.tool
    async def open_algorithm_info(ctx: Context) -> str:
        """Open the "how it works" explanation screen."""
        session.open_algorithm_info()
        return _ok()

    @mcp.tool
    async def reset_session(ctx: Context) -> str:
        """Start over from the welcome screen. Saved progress is kept.

        An analysis still running is abandoned; its result is not saved.
        """
        session.reset()
        return _ok()
