"""NutriAura MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
import sqlite3

from fastmcp import FastMCP

from nutriaura.core.audit.logger import AuditLogger
from nutriaura.core.config.settings import Settings, get_settings
from nutriaura.core.llm.client import LLMClient
from nutriaura.core.llm.provider import create_provider
from nutriaura.core.storage.database import DatabaseError, WellnessDatabase
from nutriaura.core.storage.encryption import EncryptionError, build_codec
from nutriaura.core.storage.repository import WellnessRepository
from nutriaura.core.storage.store import InMemoryKeyValueStore, KeyValueStore, SQLiteKeyValueStore
from nutriaura.domains.wellness.analysis_service import AnalysisService, WellnessAnalysisService
from nutriaura.domains.wellness.geolocation import GeolocationSource, NoGeolocation, StaticGeolocation
from nutriaura.domains.wellness.resources.catalogs import register_catalog_resources
from nutriaura.domains.wellness.session import WellnessSession
from nutriaura.domains.wellness.tools.activity_tools import register_activity_tools
from nutriaura.domains.wellness.tools.navigation_tools import register_navigation_tools
from nutriaura.domains.wellness.tools.profile_tools import register_profile_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "NutriAura"
SERVER_VERSION = "0.1.0"


def _build_analysis_service(settings: Settings) -> AnalysisService:
    if settings.llm_provider == "mock":
        provider_name = "mock"
        api_key = ""
        model = ""
    elif settings.llm_provider == "anthropic":
        api_key = settings.anthropic_api_key
        model = settings.anthropic_model
        provider_name = "anthropic" if api_key else "mock"
    elif settings.llm_provider == "openai":
        api_key = settings.openai_api_key
        model = settings.openai_model
        provider_name = "openai" if api_key else "mock"
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

    if provider_name == "mock" and settings.llm_provider != "mock":
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            settings.llm_provider,
        )

    provider = create_provider(provider_name=provider_name, api_key=api_key, model=model)
    return WellnessAnalysisService(LLMClient(provider=provider))


def _build_geolocation(settings: Settings) -> GeolocationSource:
    if settings.home_latitude is not None and settings.home_longitude is not None:
        return StaticGeolocation(settings.home_latitude, settings.home_longitude)
    return NoGeolocation()


def create_app(
    *,
    analysis_service_override: AnalysisService | None = None,
    store_override: KeyValueStore | None = None,
    geolocation_override: GeolocationSource | None = None,
    database_override: WellnessDatabase | None = None,
) -> FastMCP:
    """Create and configure the NutriAura MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Builds the analysis service on the configured provider
    3. Opens the state database (key-value store and audit log)
    4. Creates the wellness session
    5. Registers all tools and resources
    """
    settings = get_settings()

    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "NutriAura wellness companion. Take a selfie, answer a short "
            "lifestyle quiz and get AI-generated wellness scores, findings and "
            "recommendations. Earn Aura Points, badges and quests, set goals "
            "and share with the community. Every tool returns the current view."
        ),
    )

    service = analysis_service_override or _build_analysis_service(settings)

    # --- Storage ---
    database: WellnessDatabase | None = database_override
    store: KeyValueStore
    if store_override is not None:
        store = store_override
        if database is not None:
            database.initialize()
    else:
        try:
            if database is None:
                database = WellnessDatabase(settings.db_path)
            database.initialize()
            store = SQLiteKeyValueStore(
                database,
                build_codec(settings.encryption_key),
                namespace=settings.store_namespace,
            )
            logger.info(
                "State database ready: %s (schema v%d)",
                database.path,
                database.get_schema_version(),
            )
        except (DatabaseError, EncryptionError, sqlite3.Error, OSError) as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing with in-memory storage; data will not survive a restart")
            database = None
            store = InMemoryKeyValueStore()

    audit_logger = AuditLogger(database) if database is not None else None
    repository = WellnessRepository(store)

    session = WellnessSession(
        repository,
        service,
        geolocation=geolocation_override or _build_geolocation(settings),
        geolocation_timeout_s=settings.geolocation_timeout_s,
        reward_ap=settings.analysis_reward_ap,
        audit_logger=audit_logger,
    )

    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "llm_provider": service.provider_name,
            "storage": "sqlite" if isinstance(store, SQLiteKeyValueStore) else "memory",
            "audit_enabled": audit_logger is not None,
            "screen": session.nav.current().value,
        }

    register_navigation_tools(server, session)
    register_activity_tools(server, session)
    register_profile_tools(server, session)
    logger.info("Wellness session tools registered (provider: %s)", service.provider_name)

    if audit_logger is not None:
        from nutriaura.domains.wellness.tools.audit_tools import register_audit_tools

        register_audit_tools(server, audit_logger)
        logger.info("Audit tools registered")

    register_catalog_resources(server, session)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
