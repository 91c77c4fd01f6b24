"""Business logic for MCP protocol handlers.

These handlers are shared by the stdio and HTTP transports.
"""

from typing import Any

from pydantic import ValidationError
from structlog.typing import FilteringBoundLogger

from src.config import Settings
from src.slack.exceptions import SlackGatewayError
from src.tools import ToolDispatcher, ToolNotFoundError

from .schemas import (
    MCPContent,
    MCPErrorCodes,
    MCPInitializeParams,
    MCPJSONRPCRequest,
    MCPJSONRPCResponse,
    MCPToolCallParams,
    MCPToolCallResult,
    MCPToolListResult,
)

DEFAULT_PROTOCOL_VERSION = "2024-11-05"


def _format_validation_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {
            "loc": ".".join(str(part) for part in error.get("loc", ())),
            "msg": error.get("msg", ""),
        }
        for error in exc.errors()
    ]


def jsonrpc_error(
    request_id: str | int | None,
    code: int,
    message: str,
    data: Any | None = None,
) -> MCPJSONRPCResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return MCPJSONRPCResponse(id=request_id, error=error)


async def handle_initialize(params: MCPInitializeParams, settings: Settings) -> dict[str, Any]:
    """Handle initialize request.

    Args:
        params: Initialize parameters from client.
        settings: Application settings with server name and version.

    Returns:
        Server initialization response.
    """
    return {
        "protocolVersion": params.protocolVersion or DEFAULT_PROTOCOL_VERSION,
        "capabilities": {
            "tools": {
                "listChanged": False
            }
        },
        "serverInfo": {
            "name": settings.MCP_SERVER_NAME,
            "version": settings.MCP_SERVER_VERSION
        }
    }


async def handle_tools_list(dispatcher: ToolDispatcher) -> MCPToolListResult:
    """Handle tools/list request."""
    return MCPToolListResult(tools=dispatcher.list_tools())


async def handle_tools_call(
    dispatcher: ToolDispatcher,
    name: str,
    arguments: dict[str, Any],
    logger: FilteringBoundLogger,
) -> MCPToolCallResult:
    """Handle tools/call request.

    Gateway failures become an ``isError`` result carrying the error
    message. Unknown tools and invalid arguments propagate to the caller.

    Args:
        dispatcher: Tool dispatcher.
        name: Tool name to invoke.
        arguments: Tool arguments.
        logger: Process logger.

    Returns:
        Tool execution result.
    """
    try:
        return await dispatcher.call(name, arguments)
    except (ToolNotFoundError, ValidationError):
        raise
    except SlackGatewayError as e:
        logger.warning("tool_call_failed", tool=name, code=e.code, error=e.message)
        return MCPToolCallResult(
            content=[MCPContent(type="text", text=e.message)],
            isError=True
        )


async def handle_message(
    dispatcher: ToolDispatcher,
    body: Any,
    settings: Settings,
    logger: FilteringBoundLogger,
) -> MCPJSONRPCResponse | None:
    """Route one decoded JSON-RPC message.

    Returns:
        The response to send, or None for notifications.
    """
    if not isinstance(body, dict):
        return jsonrpc_error(None, MCPErrorCodes.INVALID_REQUEST, "Invalid Request")

    try:
        jsonrpc_request = MCPJSONRPCRequest(**body)
    except ValidationError:
        return jsonrpc_error(body.get("id"), MCPErrorCodes.INVALID_REQUEST, "Invalid Request")

    method = jsonrpc_request.method
    params = jsonrpc_request.params or {}
    request_id = jsonrpc_request.id

    if method.startswith("notifications/"):
        logger.debug("notification_received", method=method)
        return None

    try:
        if method == "initialize":
            init_params = MCPInitializeParams(**params)
            result = await handle_initialize(init_params, settings)
            return MCPJSONRPCResponse(id=request_id, result=result)

        elif method == "ping":
            return MCPJSONRPCResponse(id=request_id, result={})

        elif method == "tools/list":
            result = await handle_tools_list(dispatcher)
            return MCPJSONRPCResponse(id=request_id, result=result.model_dump(exclude_none=True))

        elif method == "tools/call":
            call_params = MCPToolCallParams(**params)
            try:
                result = await handle_tools_call(
                    dispatcher,
                    name=call_params.name,
                    arguments=call_params.arguments,
                    logger=logger,
                )
            except ToolNotFoundError as e:
                return jsonrpc_error(request_id, MCPErrorCodes.INVALID_PARAMS, e.message)
            return MCPJSONRPCResponse(id=request_id, result=result.model_dump(exclude_none=True))

        else:
            return jsonrpc_error(request_id, MCPErrorCodes.METHOD_NOT_FOUND, f"Method not found: {method}")

    except ValidationError as e:
        return jsonrpc_error(
            request_id,
            MCPErrorCodes.INVALID_PARAMS,
            "Invalid params",
            data={"details": _format_validation_errors(e)},
        )
    except Exception as e:
        logger.error("internal_error", method=method, error=str(e), exc_info=True)
        return jsonrpc_error(request_id, MCPErrorCodes.INTERNAL_ERROR, f"Internal error: {str(e)}")
