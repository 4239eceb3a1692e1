"""Best-effort geolocation for grounding analysis results."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, runtime_checkable

from nutriaura.domains.wellness.models import Location

logger = logging.getLogger(__name__)


class LocationUnavailableError(Exception):
    """Raised when no position can be obtained (denied, unsupported, failed)."""


@runtime_checkable
class GeolocationSource(Protocol):
    async def get_position(self) -> Location: ...


class NoGeolocation:
    """The capability is absent."""

    async def get_position(self) -> Location:
        raise LocationUnavailableError("Geolocation is not supported")


class DeniedGeolocation:
    """The user refused the permission prompt."""

    async def get_position(self) -> Location:
        raise LocationUnavailableError("Geolocation permission denied")


class StaticGeolocation:
    """A fixed position (configured home coordinates, or supplied by the client)."""

    def __init__(self, latitude: float, longitude: float) -> None:
        if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
            raise ValueError(f"Invalid coordinates: {latitude}, {longitude}")
        self._location = Location(latitude=latitude, longitude=longitude)

    async def get_position(self) -> Location:
        return self._location


async def resolve_location(source: GeolocationSource | None, timeout_s: float) -> Location | None:
    """Ask ``source`` for a position within ``timeout_s``; ``None`` on any failure."""
    if source is None:
        return None
    try:
        return await asyncio.wait_for(source.get_position(), timeout=timeout_s)
    except LocationUnavailableError as exc:
        logger.warning("Could not get user location: %s", exc)
    except asyncio.TimeoutError:
        logger.warning("Geolocation timed out after %.1fs", timeout_s)
    except Exception as exc:
        logger.warning("Geolocation source failed (%s): %s", type(exc).__name__, exc)
    return None
