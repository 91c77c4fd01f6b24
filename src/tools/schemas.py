"""Input models for the Slack tools.

Each model doubles as the tool's published ``inputSchema``. Validation runs
before any Slack call is made.
"""

import base64
import binascii
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.slack.schemas import DEFAULT_MIME_TYPE


ConversationType = Literal["public_channel", "private_channel", "im", "mpim"]
SearchSort = Literal["score", "timestamp"]
SortDirection = Literal["asc", "desc"]

ALL_CONVERSATION_TYPES: tuple[ConversationType, ...] = ("public_channel", "private_channel", "im", "mpim")


class StrictModel(BaseModel):
    """Base model that forbids unknown fields for strict schemas."""

    model_config = ConfigDict(extra="forbid")


class ListConversationsParams(StrictModel):
    types: Optional[List[ConversationType]] = Field(default=None, description="Conversation types to include")
    limit: Optional[int] = Field(default=None, ge=1, le=1000, description="Page size (default 200)")
    cursor: Optional[str] = Field(default=None, description="Pagination cursor from a previous call")


class FetchHistoryParams(StrictModel):
    channel: str = Field(..., min_length=1, description="Conversation ID")
    oldest: Optional[str] = None
    latest: Optional[str] = None
    inclusive: Optional[bool] = None
    limit: Optional[int] = Field(default=None, ge=1, le=1000, description="Page size (default 200)")
    cursor: Optional[str] = Field(default=None, description="Pagination cursor from a previous call")


class SearchMessagesParams(StrictModel):
    query: str = Field(..., min_length=1, description="Slack search query")
    count: Optional[int] = Field(default=None, ge=1, le=100, description="Results per page (default 20)")
    sort: Optional[SearchSort] = None
    sort_dir: Optional[SortDirection] = None


class SearchInChannelParams(SearchMessagesParams):
    channel: str = Field(..., min_length=1, description="Channel name (#general, general) or ID (C…/G…)")


class ListFilesParams(StrictModel):
    channel: Optional[str] = None
    user: Optional[str] = None
    ts_from: Optional[str] = None
    ts_to: Optional[str] = None
    types: Optional[str] = None
    count: Optional[int] = Field(default=None, ge=1, le=1000)
    page: Optional[int] = Field(default=None, ge=1)
    cursor: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1, le=200)


class FileParams(StrictModel):
    file: str = Field(..., min_length=1, description="File ID")


class DownloadFileParams(FileParams):
    preferText: Optional[bool] = Field(
        default=None,
        description="Also return text/* and application/json files as decoded UTF-8 text",
    )


class TextPayload(BaseModel):
    """Upload content sent as a plain form field."""

    kind: Literal["text"] = "text"
    content: str


class BinaryPayload(BaseModel):
    """Upload content sent as a multipart file attachment."""

    kind: Literal["binary"] = "binary"
    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE


UploadPayload = Union[TextPayload, BinaryPayload]


_URLSAFE_ALPHABET = str.maketrans("-_", "+/")


def decode_base64(value: str) -> bytes:
    """Decode base64 text, tolerating line breaks.

    Both the standard and URL-safe alphabets are accepted, with or
    without trailing padding.

    Raises:
        ValueError: If the text is not valid base64.
    """
    text = "".join(value.split()).rstrip("=").translate(_URLSAFE_ALPHABET)
    text += "=" * (-len(text) % 4)
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise ValueError(f"'data_base64' is not valid base64: {e}") from e


class UploadFileParams(StrictModel):
    channels: Optional[str] = Field(default=None, description="Comma-separated channel IDs")
    filename: str = Field(..., min_length=1)
    title: Optional[str] = None
    initial_comment: Optional[str] = None
    content: Optional[str] = Field(default=None, description="Plain text content")
    data_base64: Optional[str] = Field(default=None, description="Base64-encoded bytes")
    mimeType: Optional[str] = Field(default=None, description="MIME type for data_base64 uploads")

    @model_validator(mode="after")
    def check_single_payload(self) -> "UploadFileParams":
        """Require exactly one of ``content`` and ``data_base64``."""
        if not self.content and not self.data_base64:
            raise ValueError("Provide either 'content' or 'data_base64'.")
        if self.content and self.data_base64:
            raise ValueError("Provide either 'content' or 'data_base64', not both.")
        if self.data_base64:
            decode_base64(self.data_base64)
        return self

    def payload(self) -> UploadPayload:
        """Return the single upload payload this input carries."""
        if self.content:
            return TextPayload(content=self.content)
        return BinaryPayload(
            data=decode_base64(self.data_base64 or ""),
            mime_type=self.mimeType or DEFAULT_MIME_TYPE,
        )

    def metadata_fields(self) -> dict[str, Optional[str]]:
        return {
            "filename": self.filename,
            "channels": self.channels,
            "title": self.title,
            "initial_comment": self.initial_comment,
        }


class UsersListParams(StrictModel):
    limit: Optional[int] = Field(default=None, ge=1, le=200, description="Page size (default 200)")
    cursor: Optional[str] = Field(default=None, description="Pagination cursor from a previous call")


class OpenDMParams(StrictModel):
    user: str = Field(..., min_length=1, description="User ID")


class PostMessageParams(StrictModel):
    channel: str = Field(..., min_length=1, description="Channel ID (C…/G…/D…)")
    text: str = Field(..., min_length=1)
    thread_ts: Optional[str] = None
    unfurl_links: Optional[bool] = None
