"""Tool handlers: each maps one validated tool call onto Slack Web API calls."""

import base64
import json
import re
from typing import Any

from src.slack.client import SlackClient
from src.slack.schemas import BinaryResource, SlackFileInfo
from src.mcp_transport.schemas import MCPContent, MCPResourceContents

from .exceptions import ChannelNotFoundError, FileNotAccessibleError, NoDownloadableURLError
from .schemas import (
    ALL_CONVERSATION_TYPES,
    DownloadFileParams,
    FetchHistoryParams,
    FileParams,
    ListConversationsParams,
    ListFilesParams,
    OpenDMParams,
    PostMessageParams,
    SearchInChannelParams,
    SearchMessagesParams,
    TextPayload,
    UploadFileParams,
    UsersListParams,
)


DEFAULT_PAGE_SIZE = 200
DEFAULT_SEARCH_COUNT = 20
CHANNEL_ID_PATTERN = re.compile(r"^[CG][A-Z0-9]+$")
EXTERNAL_FILE_NOTE = "Cannot download external files via Slack API."


def json_block(payload: Any) -> MCPContent:
    """Wrap a structured value as a text content block."""
    return MCPContent(type="text", text=json.dumps(payload, ensure_ascii=False))


def is_textual_mime_type(mime_type: str) -> bool:
    base = mime_type.split(";", 1)[0].strip().lower()
    return base.startswith("text/") or base == "application/json"


async def resolve_channel_name(slack: SlackClient, channel: str) -> str:
    """Turn a channel reference into the bare name used by search filters.

    ``#general`` and ``general`` both give ``general``; IDs such as
    ``C0123ABCD`` are looked up with ``conversations.info``.

    Raises:
        ChannelNotFoundError: If an ID lookup yields no channel name.
    """
    raw = channel.strip()
    if raw.startswith("#"):
        return raw[1:]
    if CHANNEL_ID_PATTERN.match(raw):
        info = await slack.get("conversations.info", {"channel": raw})
        name = (info.get("channel") or {}).get("name")
        if not name:
            raise ChannelNotFoundError(raw)
        return name
    return raw


async def list_conversations(slack: SlackClient, params: ListConversationsParams) -> list[MCPContent]:
    data = await slack.get("conversations.list", {
        "types": ",".join(params.types or ALL_CONVERSATION_TYPES),
        "limit": params.limit or DEFAULT_PAGE_SIZE,
        "cursor": params.cursor,
    })
    items = [
        {
            "id": channel.get("id"),
            "name": channel.get("name"),
            "is_private": bool(channel.get("is_private")),
            "is_im": bool(channel.get("is_im")),
            "is_mpim": bool(channel.get("is_mpim")),
        }
        for channel in data.get("channels") or []
    ]
    return [json_block({"ok": True, "items": items, "response_metadata": data.get("response_metadata")})]


async def fetch_history(slack: SlackClient, params: FetchHistoryParams) -> list[MCPContent]:
    data = await slack.get("conversations.history", {
        "channel": params.channel,
        "oldest": params.oldest,
        "latest": params.latest,
        "inclusive": params.inclusive,
        "limit": params.limit or DEFAULT_PAGE_SIZE,
        "cursor": params.cursor,
    })
    return [json_block(data)]


async def _search(slack: SlackClient, query: str, params: SearchMessagesParams) -> list[MCPContent]:
    data = await slack.get("search.messages", {
        "query": query,
        "count": params.count or DEFAULT_SEARCH_COUNT,
        "sort": params.sort,
        "sort_dir": params.sort_dir,
    })
    return [json_block(data)]


async def search_messages(slack: SlackClient, params: SearchMessagesParams) -> list[MCPContent]:
    return await _search(slack, params.query, params)


async def search_in_channel(slack: SlackClient, params: SearchInChannelParams) -> list[MCPContent]:
    """Search within one channel using the ``in:#name`` filter."""
    channel_name = await resolve_channel_name(slack, params.channel)
    return await _search(slack, f"{params.query} in:#{channel_name}", params)


async def list_files(slack: SlackClient, params: ListFilesParams) -> list[MCPContent]:
    data = await slack.get("files.list", params.model_dump(exclude_none=True))
    return [json_block(data)]


async def get_file_info(slack: SlackClient, params: FileParams) -> list[MCPContent]:
    data = await slack.get("files.info", {"file": params.file})
    return [json_block(data)]


async def download_file(slack: SlackClient, params: DownloadFileParams) -> list[MCPContent]:
    """Download a Slack-hosted file as a resource block.

    Externally hosted files are reported as an ``external_file`` result
    instead of raising, and no download is attempted for them.

    Raises:
        FileNotAccessibleError: If ``files.info`` returns no file.
        NoDownloadableURLError: If the file has no download URL.
    """
    info = await slack.get("files.info", {"file": params.file})
    raw_file = info.get("file")
    if not raw_file:
        raise FileNotAccessibleError(params.file)

    file_info = SlackFileInfo.model_validate(raw_file)
    if file_info.is_hosted_externally:
        return [json_block({
            "ok": False,
            "error": "external_file",
            "note": EXTERNAL_FILE_NOTE,
            "file": raw_file,
        })]

    url = file_info.download_url
    if not url:
        raise NoDownloadableURLError(params.file)

    resource: BinaryResource = await slack.fetch_binary(url)
    blocks = [
        MCPContent(
            type="resource",
            resource=MCPResourceContents(uri=url, mimeType=resource.mime_type, blob=resource.data_base64),
        )
    ]
    if params.preferText and is_textual_mime_type(resource.mime_type):
        text = base64.b64decode(resource.data_base64).decode("utf-8", errors="replace")
        blocks.append(MCPContent(type="text", text=text))
    else:
        blocks.append(json_block({
            "ok": True,
            "file": {
                "id": file_info.id,
                "name": file_info.name,
                "mimetype": file_info.mimetype,
                "size": file_info.size,
            },
        }))
    return blocks


async def upload_file(slack: SlackClient, params: UploadFileParams) -> list[MCPContent]:
    """Upload text content as a form field or binary content as an attachment."""
    fields: dict[str, Any] = params.metadata_fields()
    payload = params.payload()

    if isinstance(payload, TextPayload):
        fields["content"] = payload.content
        data = await slack.post_form("files.upload", fields)
    else:
        data = await slack.post_form(
            "files.upload",
            fields,
            attachment=(params.filename, payload.data, payload.mime_type),
        )
    return [json_block(data)]


async def delete_file(slack: SlackClient, params: FileParams) -> list[MCPContent]:
    data = await slack.post_json("files.delete", {"file": params.file})
    return [json_block(data)]


async def users_list(slack: SlackClient, params: UsersListParams) -> list[MCPContent]:
    data = await slack.get("users.list", {
        "limit": params.limit or DEFAULT_PAGE_SIZE,
        "cursor": params.cursor,
    })
    return [json_block(data)]


async def open_dm(slack: SlackClient, params: OpenDMParams) -> list[MCPContent]:
    data = await slack.post_json("conversations.open", {"users": params.user})
    return [json_block(data)]


async def post_message(slack: SlackClient, params: PostMessageParams) -> list[MCPContent]:
    data = await slack.post_json("chat.postMessage", {
        "channel": params.channel,
        "text": params.text,
        "thread_ts": params.thread_ts,
        "unfurl_links": params.unfurl_links,
    })
    return [json_block(data)]
