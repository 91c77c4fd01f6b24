"""cli.py – Slack MCP Gateway command-line entrypoint

Starts the gateway over one of two transports:

Usage examples
--------------
# stdio (default) – for MCP clients that spawn the server as a subprocess
$ slack-mcp-gateway

# HTTP – JSON-RPC on POST /mcp
$ slack-mcp-gateway --transport http --port 8000

Environment variables
---------------------
SLACK_TOKEN  Required user token (xoxp-…), also read from .env.
LOG_LEVEL    error | warn | info | debug (default warn).
"""

from __future__ import annotations

from typing import Optional

import anyio
import click
import uvicorn

from src.config import get_settings
from src.logging_config import configure_logging, resolve_log_level
from src.mcp_transport.stdio import run_stdio_server
from src.slack.exceptions import ConfigurationError, SlackGatewayError


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "http"]),
    default="stdio",
    show_default=True,
    help="How MCP clients reach the gateway.",
)
@click.option("--host", default=None, help="Bind address for the HTTP transport.")
@click.option("--port", type=int, default=None, help="Port for the HTTP transport.")
def main(transport: str, host: Optional[str], port: Optional[int]) -> None:
    """Serve Slack Web API tools over MCP."""
    settings = get_settings()
    logger = configure_logging(settings.LOG_LEVEL)

    # Fail before binding or reading stdin when the token is missing
    if not settings.SLACK_TOKEN.strip():
        exc = ConfigurationError("SLACK_TOKEN missing. Put your xoxp-… user token in .env")
        logger.error("startup_failed", code=exc.code, error=exc.message)
        raise SystemExit(1)

    if transport == "http":
        uvicorn.run(
            "src.main:app",
            host=host or settings.HOST,
            port=port or settings.PORT,
            log_level=resolve_log_level(settings.LOG_LEVEL),
        )
        return

    try:
        anyio.run(run_stdio_server, settings, logger)
    except SlackGatewayError as exc:
        logger.error("startup_failed", code=exc.code, error=exc.message)
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
