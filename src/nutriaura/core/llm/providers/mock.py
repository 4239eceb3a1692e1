"""Mock LLM provider for testing and keyless local runs."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from nutriaura.core.llm.provider import ImagePart, ProviderResponse

DEFAULT_MOCK_ANALYSIS: dict[str, Any] = {
    "scores": {"nutrition": 72, "sleep": 64, "stress": 58, "hydration": 70},
    "keyFindings": [
        {
            "title": "Steady Energy",
            "description": "Your answers point to a fairly balanced routine.",
            "icon": "nutrition",
        },
        {
            "title": "Rest Could Improve",
            "description": "A little more sleep would likely lift your energy.",
            "icon": "sleep",
        },
    ],
    "recommendations": [
        {
            "title": "Evening Wind-Down Routine",
            "description": "Consistent evenings make deeper sleep easier.",
            "items": [
                "Dim screens an hour before bed.",
                "Keep a fixed bedtime, weekends included.",
                "Try a short breathing exercise before sleep.",
            ],
        }
    ],
}


class MockProvider:
    """Mock provider. Returns canned content and records each call.

    Set ``error`` to make every call raise it, and ``gate`` to an
    ``asyncio.Event`` to hold calls until the event is set.
    """

    name = "mock"

    def __init__(
        self,
        response_content: str | None = None,
        *,
        error: Exception | None = None,
        attributions: list[dict[str, Any]] | None = None,
    ) -> None:
        self.response_content = (
            response_content if response_content is not None else json.dumps(DEFAULT_MOCK_ANALYSIS)
        )
        self.error = error
        self.attributions = attributions or []
        self.gate: asyncio.Event | None = None
        self.last_system_message: str = ""
        self.last_user_message: str = ""
        self.last_image: ImagePart | None = None
        self.call_count: int = 0

    async def generate(
        self,
        system_message: str,
        user_message: str,
        image: ImagePart | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        self.last_system_message = system_message
        self.last_user_message = user_message
        self.last_image = image
        self.call_count += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return ProviderResponse(
            content=self.response_content,
            input_tokens=len(system_message.split()) + len(user_message.split()),
            output_tokens=len(self.response_content.split()),
            model="mock",
            latency_ms=0.0,
            attributions=list(self.attributions),
        )
