"""LLM client: one structured-output call to the configured provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from nutriaura.core.llm.provider import ImagePart, LLMProvider, ProviderResponse
from nutriaura.core.llm.response import MalformedResponseError, extract_structured_block
from nutriaura.core.llm.system_prompt import build_full_system_prompt

logger = logging.getLogger(__name__)

USER_FACING_FAILURE = "Failed to get analysis from AI. Please try again."


class AnalysisServiceError(Exception):
    """Base class for fatal analysis service failures."""


class ServiceUnavailableError(AnalysisServiceError):
    """Raised when the provider call itself fails (network, auth, outage)."""


@dataclass
class StructuredResponse:
    """Parsed structured block plus what the provider reported alongside it."""

    payload: dict[str, Any]
    model: str
    attributions: list[dict[str, Any]] = field(default_factory=list)
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0


class LLMClient:
    """Sends a multimodal request and returns the structured block it contains."""

    def __init__(self, provider: LLMProvider) -> None:
        self.provider = provider

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", type(self.provider).__name__)

    async def generate_structured(
        self,
        task_instructions: str,
        user_message: str,
        image: ImagePart | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> StructuredResponse:
        """Call the provider and locate the JSON object in its output.

        Raises:
            ServiceUnavailableError: The provider call raised.
            MalformedResponseError: The output held no JSON object.
        """
        try:
            provider_response: ProviderResponse = await self.provider.generate(
                system_message=build_full_system_prompt(task_instructions),
                user_message=user_message,
                image=image,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as exc:
            logger.warning("Analysis provider %s failed: %s", self.provider_name, exc)
            raise ServiceUnavailableError(USER_FACING_FAILURE) from exc

        logger.info(
            "Analysis call: provider=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            self.provider_name,
            provider_response.model,
            provider_response.input_tokens,
            provider_response.output_tokens,
            provider_response.latency_ms,
        )

        try:
            payload = extract_structured_block(provider_response.content)
        except MalformedResponseError as exc:
            raise MalformedResponseError(USER_FACING_FAILURE) from exc

        return StructuredResponse(
            payload=payload,
            model=provider_response.model,
            attributions=list(provider_response.attributions),
            usage={
                "input_tokens": provider_response.input_tokens,
                "output_tokens": provider_response.output_tokens,
            },
            latency_ms=provider_response.latency_ms,
        )
