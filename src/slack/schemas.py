"""Pydantic schemas for Slack Web API calls and responses."""

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_MIME_TYPE = "application/octet-stream"


class TransportKind(str, Enum):
    """How an endpoint call is put on the wire."""

    QUERY = "query"
    JSON = "json"
    FORM = "form"
    MULTIPART = "multipart"


class SlackOk(BaseModel):
    """Successful Web API response.

    Attributes:
        payload: The decoded body; its shape depends on the method.
    """

    ok: Literal[True] = True
    payload: dict[str, Any] = Field(default_factory=dict)


class SlackFailure(BaseModel):
    """Web API response with ``ok: false``.

    Attributes:
        error: Slack's short error code.
    """

    ok: Literal[False] = False
    error: str


SlackEnvelope = Union[SlackOk, SlackFailure]


class BinaryResource(BaseModel):
    """Bytes fetched from a direct URL, base64-encoded for transport."""

    data_base64: str
    mime_type: str = DEFAULT_MIME_TYPE


class SlackFileInfo(BaseModel):
    """The parts of a ``files.info`` file object the gateway relies on.

    Slack reports external hosting through two independent fields, both are
    kept as sent.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    name: str | None = None
    mimetype: str | None = None
    size: int | None = None
    is_external: bool | None = None
    external_type: str | None = None
    url_private_download: str | None = None
    url_private: str | None = None
    permalink_public: str | None = None

    @property
    def is_hosted_externally(self) -> bool:
        return bool(self.is_external) or bool(self.external_type)

    @property
    def download_url(self) -> str | None:
        """First available URL in order of preference."""
        return self.url_private_download or self.url_private or self.permalink_public or None
