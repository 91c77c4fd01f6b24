"""Stdio transport for the MCP protocol.

Messages are newline-delimited JSON-RPC on stdin/stdout. Nothing but
protocol messages may be written to stdout.
"""

import json
import sys
from typing import Any, AsyncIterable, Protocol

import anyio
from structlog.typing import FilteringBoundLogger

from src.config import Settings
from src.slack.client import connect_slack, create_http_client
from src.tools import ToolDispatcher

from .schemas import MCPErrorCodes
from .service import handle_message, jsonrpc_error


class AsyncWriter(Protocol):
    async def write(self, data: str) -> Any: ...

    async def flush(self) -> Any: ...


async def serve_stdio(
    dispatcher: ToolDispatcher,
    settings: Settings,
    logger: FilteringBoundLogger,
    stdin: AsyncIterable[str] | None = None,
    stdout: AsyncWriter | None = None,
) -> None:
    """Answer JSON-RPC messages one line at a time until stdin closes.

    Args:
        dispatcher: Tool dispatcher.
        settings: Application settings.
        logger: Process logger.
        stdin: Line source (defaults to the process stdin).
        stdout: Response sink (defaults to the process stdout).
    """
    reader = stdin if stdin is not None else anyio.wrap_file(sys.stdin)
    writer = stdout if stdout is not None else anyio.wrap_file(sys.stdout)

    async for line in reader:
        line = line.strip()
        if not line:
            continue

        try:
            body = json.loads(line)
        except ValueError:
            logger.warning("stdio_parse_error", line=line[:200])
            response = jsonrpc_error(None, MCPErrorCodes.PARSE_ERROR, "Parse error")
        else:
            response = await handle_message(dispatcher, body, settings, logger)

        if response is None:
            continue
        await writer.write(json.dumps(response.to_wire(), ensure_ascii=False) + "\n")
        await writer.flush()

    logger.info("stdio_closed")


async def run_stdio_server(settings: Settings, logger: FilteringBoundLogger) -> None:
    """Check the Slack token, then serve MCP over stdio.

    Raises:
        ConfigurationError: If SLACK_TOKEN is missing.
        SlackGatewayError: If the startup auth check fails.
    """
    async with create_http_client() as http_client:
        slack = await connect_slack(settings, http_client, logger)
        dispatcher = ToolDispatcher(slack, logger)
        logger.info("stdio_serving", server=settings.MCP_SERVER_NAME, version=settings.MCP_SERVER_VERSION)
        await serve_stdio(dispatcher, settings, logger)
