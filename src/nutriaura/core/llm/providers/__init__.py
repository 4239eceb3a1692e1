"""LLM provider implementations."""

from nutriaura.core.llm.providers.anthropic import AnthropicProvider
from nutriaura.core.llm.providers.mock import MockProvider
from nutriaura.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider"]
