"""Tools module - Slack tool inputs, handlers and dispatch."""

from .exceptions import (
    ToolInputError,
    ToolNotFoundError,
    ChannelNotFoundError,
    FileNotAccessibleError,
    NoDownloadableURLError,
)
from .registry import TOOLS, ToolSpec, ToolDispatcher


__all__ = [
    # Exceptions
    "ToolInputError",
    "ToolNotFoundError",
    "ChannelNotFoundError",
    "FileNotAccessibleError",
    "NoDownloadableURLError",
    # Registry
    "TOOLS",
    "ToolSpec",
    "ToolDispatcher",
]
