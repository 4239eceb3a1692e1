"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """NutriAura server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: the session holds a single user's selfie and wellness state.
    nutriaura_host: str = "127.0.0.1"
    nutriaura_port: int = 8011
    nutriaura_log_level: str = "info"
    # There is no auth layer; binding a non-loopback host needs this set true.
    nutriaura_allow_insecure_bind: bool = False

    # Analysis service (multimodal LLM)
    llm_provider: Literal["anthropic", "openai", "mock"] = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    # Storage
    db_path: str = "~/.nutriaura/state.db"
    store_namespace: str = "nutriaura"
    encryption_key: str = ""

    # Geolocation
    geolocation_timeout_s: float = 10.0
    home_latitude: float | None = None
    home_longitude: float | None = None

    # Gamification
    analysis_reward_ap: int = 100


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
