"""Slack module - authenticated Web API calls and response normalization."""

from .schemas import (
    TransportKind,
    SlackOk,
    SlackFailure,
    SlackEnvelope,
    BinaryResource,
    SlackFileInfo,
)
from .exceptions import (
    SlackGatewayError,
    ConfigurationError,
    SlackTransportError,
    SlackHTTPError,
    SlackAPIError,
)
from .normalizer import normalize_response, parse_envelope
from .client import SlackClient, connect_slack, create_http_client, mask_token


__all__ = [
    # Schemas
    "TransportKind",
    "SlackOk",
    "SlackFailure",
    "SlackEnvelope",
    "BinaryResource",
    "SlackFileInfo",
    # Exceptions
    "SlackGatewayError",
    "ConfigurationError",
    "SlackTransportError",
    "SlackHTTPError",
    "SlackAPIError",
    # Normalizer
    "normalize_response",
    "parse_envelope",
    # Client
    "SlackClient",
    "connect_slack",
    "create_http_client",
    "mask_token",
]
