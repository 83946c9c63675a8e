"""wellscale server entry point — ``python -m wellscale.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from wellscale.core.config.settings import get_settings
from wellscale.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the wellscale MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.wellscale_log_level.upper(), logging.INFO)
    )

    logger = logging.getLogger(__name__)
    if not settings.wellscale_allow_insecure_bind and not _is_loopback_host(
        settings.wellscale_host
    ):
        raise RuntimeError(
            "Refusing to bind wellscale server to a non-loopback host without an auth layer. "
            "Set WELLSCALE_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting wellscale server on %s:%d",
        settings.wellscale_host,
        settings.wellscale_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.wellscale_host,
        port=settings.wellscale_port,
    )


if __name__ == "__main__":
    run()
