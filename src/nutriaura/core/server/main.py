"""NutriAura server entry point: ``python -m nutriaura.core.server.main``.

The server has no auth layer of its own, so it only listens on loopback
unless ``NUTRIAURA_ALLOW_INSECURE_BIND`` is set.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from nutriaura.core.config.settings import Settings, get_settings
from nutriaura.core.server.app import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class InsecureBindError(RuntimeError):
    """Raised when asked to listen on a public interface without opting in."""


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def check_bind(settings: Settings) -> None:
    """Reject a non-loopback host unless insecure binding was explicitly allowed."""
    host = settings.nutriaura_host
    if _is_loopback_host(host):
        return
    if settings.nutriaura_allow_insecure_bind:
        logger.warning("Listening on non-loopback host %s with no authentication", host)
        return
    raise InsecureBindError(
        f"Refusing to bind NutriAura to non-loopback host {host!r}: the server has no auth layer. "
        "Set NUTRIAURA_ALLOW_INSECURE_BIND=true to override (unsafe)."
    )


def run() -> None:
    """Start the NutriAura MCP server with Streamable HTTP transport."""
    settings = get_settings()
    _configure_logging(settings.nutriaura_log_level)
    check_bind(settings)

    logger.info(
        "Starting NutriAura on %s:%d (llm=%s, db=%s, encrypted=%s)",
        settings.nutriaura_host,
        settings.nutriaura_port,
        settings.llm_provider,
        settings.db_path,
        bool(settings.encryption_key),
    )
    create_app().run(
        transport="streamable-http",
        host=settings.nutriaura_host,
        port=settings.nutriaura_port,
    )


if __name__ == "__main__":
    run()
