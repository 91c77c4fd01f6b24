"""Tool registry and dispatcher."""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel
from structlog.typing import FilteringBoundLogger

from src.slack.client import SlackClient
from src.mcp_transport.schemas import MCPContent, MCPTool, MCPToolCallResult

from . import handlers
from .exceptions import ToolNotFoundError
from .schemas import (
    DownloadFileParams,
    FetchHistoryParams,
    FileParams,
    ListConversationsParams,
    ListFilesParams,
    OpenDMParams,
    PostMessageParams,
    SearchInChannelParams,
    SearchMessagesParams,
    UploadFileParams,
    UsersListParams,
)


Handler = Callable[[SlackClient, Any], Awaitable[list[MCPContent]]]


@dataclass(frozen=True)
class ToolSpec:
    """A registered tool.

    Attributes:
        name: Tool name exposed to MCP clients.
        title: Short human-readable title.
        description: What the tool does.
        input_model: Pydantic model validating the arguments.
        handler: Coroutine performing the Slack calls.
    """

    name: str
    title: str
    description: str
    input_model: type[BaseModel]
    handler: Handler

    def to_mcp_tool(self) -> MCPTool:
        return MCPTool(
            name=self.name,
            title=self.title,
            description=self.description,
            inputSchema=self.input_model.model_json_schema(),
        )


TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="slack_list_conversations",
        title="List Slack conversations",
        description="List channels/DMs visible to the user token.",
        input_model=ListConversationsParams,
        handler=handlers.list_conversations,
    ),
    ToolSpec(
        name="slack_fetch_history",
        title="Fetch conversation history",
        description="conversations.history for public/private/DM/MPIM.",
        input_model=FetchHistoryParams,
        handler=handlers.fetch_history,
    ),
    ToolSpec(
        name="slack_search_messages",
        title="Search Slack messages",
        description="search.messages respecting your user visibility.",
        input_model=SearchMessagesParams,
        handler=handlers.search_messages,
    ),
    ToolSpec(
        name="slack_search_in_channel",
        title="Search messages in a specific channel",
        description=(
            "Search Slack messages limited to one channel (public or private) "
            "by channel name (e.g. #general) or ID (C…/G…)."
        ),
        input_model=SearchInChannelParams,
        handler=handlers.search_in_channel,
    ),
    ToolSpec(
        name="slack_list_files",
        title="List files",
        description="List Slack-hosted files you can access; filter by channel/user/time/type.",
        input_model=ListFilesParams,
        handler=handlers.list_files,
    ),
    ToolSpec(
        name="slack_get_file_info",
        title="Get file info",
        description="files.info for a given file ID.",
        input_model=FileParams,
        handler=handlers.get_file_info,
    ),
    ToolSpec(
        name="slack_download_file",
        title="Download file",
        description="Download a Slack-hosted file as a resource (not external GDrive/Dropbox links).",
        input_model=DownloadFileParams,
        handler=handlers.download_file,
    ),
    ToolSpec(
        name="slack_upload_file",
        title="Upload file",
        description="Upload a file. Provide either 'content' (text) or 'data_base64' (binary).",
        input_model=UploadFileParams,
        handler=handlers.upload_file,
    ),
    ToolSpec(
        name="slack_delete_file",
        title="Delete file",
        description="files.delete by ID.",
        input_model=FileParams,
        handler=handlers.delete_file,
    ),
    ToolSpec(
        name="slack_users_list",
        title="List users",
        description="users.list (requires users:read).",
        input_model=UsersListParams,
        handler=handlers.users_list,
    ),
    ToolSpec(
        name="slack_open_dm",
        title="Open DM",
        description="Open a direct message with a user and return the channel ID (D…). Requires im:write.",
        input_model=OpenDMParams,
        handler=handlers.open_dm,
    ),
    ToolSpec(
        name="slack_post_message",
        title="Post message",
        description="chat.postMessage (posts as the user token). Provide channel ID (C…/G…/D…).",
        input_model=PostMessageParams,
        handler=handlers.post_message,
    ),
)


class ToolDispatcher:
    """Validates tool arguments and routes calls to their handlers."""

    def __init__(
        self,
        slack: SlackClient,
        logger: FilteringBoundLogger,
        tools: tuple[ToolSpec, ...] = TOOLS,
    ) -> None:
        self._slack = slack
        self._logger = logger
        self._tools = {tool.name: tool for tool in tools}

    def list_tools(self) -> list[MCPTool]:
        return [tool.to_mcp_tool() for tool in self._tools.values()]

    async def call(self, name: str, arguments: dict[str, Any]) -> MCPToolCallResult:
        """Invoke a tool by name.

        Args:
            name: Registered tool name.
            arguments: Raw tool arguments.

        Returns:
            The handler's content blocks.

        Raises:
            ToolNotFoundError: If no tool has this name.
            pydantic.ValidationError: If the arguments do not fit the input model.
            SlackGatewayError: If a Slack call fails.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)

        params = tool.input_model.model_validate(arguments)
        self._logger.info("tool_call", tool=name)
        content = await tool.handler(self._slack, params)
        return MCPToolCallResult(content=content)
