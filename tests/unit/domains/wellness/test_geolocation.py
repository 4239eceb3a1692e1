"""Tests for best-effort location lookup."""

from __future__ import annotations

import asyncio

import pytest

from nutriaura.domains.wellness.geolocation import (
    DeniedGeolocation,
    GeolocationSource,
    NoGeolocation,
    StaticGeolocation,
    resolve_location,
)
from nutriaura.domains.wellness.models import Location


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class SlowGeolocation:
    async def get_position(self) -> Location:
        await asyncio.sleep(5)
        return Location(0.0, 0.0)


def test_static_position():
    assert _run(resolve_location(StaticGeolocation(48.85, 2.35), 1.0)) == Location(48.85, 2.35)


@pytest.mark.parametrize("source", [None, NoGeolocation(), DeniedGeolocation()])
def test_unavailable_resolves_to_none(source):
    assert _run(resolve_location(source, 1.0)) is None


class RefusingGeolocation:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def get_position(self) -> Location:
        raise self.exc


@pytest.mark.parametrize("exc", [PermissionError("user denied geolocation"), OSError("no gps"), RuntimeError("boom")])
def test_source_errors_resolve_to_none(exc):
    assert _run(resolve_location(RefusingGeolocation(exc), 1.0)) is None


def test_timeout_resolves_to_none():
    assert _run(resolve_location(SlowGeolocation(), 0.01)) is None


@pytest.mark.parametrize("lat,lon", [(91.0, 0.0), (0.0, -181.0)])
def test_static_rejects_out_of_range(lat, lon):
    with pytest.raises(ValueError):
        StaticGeolocation(lat, lon)


def test_sources_satisfy_protocol():
    for source in (NoGeolocation(), DeniedGeolocation(), StaticGeolocation(0, 0), SlowGeolocation()):
        assert isinstance(source, GeolocationSource)
