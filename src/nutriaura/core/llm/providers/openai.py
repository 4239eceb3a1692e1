"""OpenAI GPT provider."""

from __future__ import annotations

import time
from typing import Any

from nutriaura.core.llm.provider import ImagePart, ProviderResponse


class OpenAIProvider:
    """OpenAI provider using the OpenAI SDK. Images go in as data-URL parts."""

    name = "openai"

    def __init__(self, api_key: str, model: str = "gpt-4o") -> None:
        import openai

        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        image: ImagePart | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        user_content: list[dict[str, Any]] = []
        if image is not None:
            user_content.append({"type": "image_url", "image_url": {"url": image.data_url}})
        user_content.append({"type": "text", "text": user_message})

        start = time.monotonic()
        response = await self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_message},
                {"role": "user", "content": user_content},
            ],
        )
        elapsed_ms = (time.monotonic() - start) * 1000

        choice = response.choices[0] if response.choices else None
        content = choice.message.content or "" if choice else ""
        usage = response.usage
        return ProviderResponse(
            content=content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self.model,
            latency_ms=elapsed_ms,
        )
