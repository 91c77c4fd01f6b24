"""Exceptions raised by tool handlers and the dispatcher."""

from src.slack.exceptions import SlackGatewayError


class ToolInputError(SlackGatewayError):
    """Raised when tool input cannot be turned into a Slack call."""

    def __init__(self, message: str, code: str = "INVALID_TOOL_INPUT"):
        super().__init__(message=message, code=code)


class ToolNotFoundError(SlackGatewayError):
    """Raised when a call names a tool that is not registered.

    Attributes:
        tool_name: Name of the tool that was not found.
    """

    def __init__(self, tool_name: str):
        super().__init__(
            message=f"Tool not found: {tool_name}",
            code="TOOL_NOT_FOUND"
        )
        self.tool_name = tool_name


class ChannelNotFoundError(ToolInputError):
    """Raised when a channel ID does not resolve to a channel name.

    Attributes:
        channel: The channel reference that failed to resolve.
    """

    def __init__(self, channel: str):
        super().__init__("Channel not found or not accessible.", code="CHANNEL_NOT_FOUND")
        self.channel = channel


class FileNotAccessibleError(ToolInputError):
    """Raised when ``files.info`` returns no file object."""

    def __init__(self, file_id: str):
        super().__init__("File not found or not accessible.", code="FILE_NOT_FOUND")
        self.file_id = file_id


class NoDownloadableURLError(ToolInputError):
    """Raised when file metadata carries none of the download URLs."""

    def __init__(self, file_id: str):
        super().__init__("No downloadable URL available for this file.", code="NO_DOWNLOADABLE_URL")
        self.file_id = file_id
