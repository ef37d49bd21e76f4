"""moodtrack server entry point: ``python -m moodtrack.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from moodtrack.core.config.settings import get_settings
from moodtrack.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the moodtrack MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.moodtrack_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.moodtrack_allow_insecure_bind and not _is_loopback_host(settings.moodtrack_host):
        raise RuntimeError(
            "Refusing to bind moodtrack to a non-loopback host without an auth layer. "
            "Set MOODTRACK_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting moodtrack server on %s:%d",
        settings.moodtrack_host,
        settings.moodtrack_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.moodtrack_host,
        port=settings.moodtrack_port,
    )


if __name__ == "__main__":
    run()
