"""Global dependencies for the application."""

from fastapi import Request
from structlog.typing import FilteringBoundLogger

from src.tools import ToolDispatcher


async def get_dispatcher(request: Request) -> ToolDispatcher:
    """Dependency to get the tool dispatcher built at startup.

    The dispatcher wraps the Slack client, which shares the global
    httpx.AsyncClient created in main.py lifespan.

    Args:
        request: The FastAPI request object.

    Returns:
        The process-wide ToolDispatcher.
    """
    return request.app.state.dispatcher


async def get_logger(request: Request) -> FilteringBoundLogger:
    """Dependency to get the process logger configured at startup."""
    return request.app.state.logger
