"""HTTP transport for the MCP protocol."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from structlog.typing import FilteringBoundLogger

from src.config import Settings, get_settings
from src.dependencies import get_dispatcher, get_logger
from src.tools import ToolDispatcher

from .schemas import MCPErrorCodes
from .service import handle_message, jsonrpc_error


router = APIRouter(prefix="", tags=["mcp"])


@router.post("/mcp", operation_id="mcp_endpoint_post")
async def mcp_post_endpoint(
    request: Request,
    dispatcher: Annotated[ToolDispatcher, Depends(get_dispatcher)],
    logger: Annotated[FilteringBoundLogger, Depends(get_logger)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Handle JSON-RPC 2.0 messages."""
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(
            content=jsonrpc_error(None, MCPErrorCodes.PARSE_ERROR, "Parse error").to_wire()
        )

    response = await handle_message(dispatcher, body, settings, logger)
    if response is None:
        return Response(status_code=202)
    return JSONResponse(content=response.to_wire())
