"""Uniform success/failure classification for Slack Web API responses."""

import json
from typing import Any

from .schemas import SlackEnvelope, SlackFailure, SlackOk
from .exceptions import SlackAPIError, SlackHTTPError, SlackTransportError


UNKNOWN_ERROR = "unknown_error"


def parse_envelope(payload: dict[str, Any]) -> SlackEnvelope:
    """Split a decoded body into the success or failure case.

    Only an explicit ``ok: false`` is a failure.
    """
    if payload.get("ok") is False:
        error = payload.get("error")
        return SlackFailure(error=UNKNOWN_ERROR if error is None else str(error))
    return SlackOk(payload=payload)


def normalize_response(method: str, status_code: int, text: str) -> dict[str, Any]:
    """Decode a Web API response or raise a classified error.

    Args:
        method: Web API method name, used in error messages.
        status_code: HTTP status of the response.
        text: Raw response body.

    Returns:
        The decoded payload of a successful call.

    Raises:
        SlackHTTPError: If the status is 400 or above, whatever the body.
        SlackTransportError: If the body is not a JSON object.
        SlackAPIError: If Slack reports ``ok: false``.
    """
    if status_code >= 400:
        raise SlackHTTPError(status_code=status_code, body=text)

    try:
        payload = json.loads(text)
    except ValueError:
        raise SlackTransportError(text) from None

    if not isinstance(payload, dict):
        raise SlackTransportError(text)

    envelope = parse_envelope(payload)
    if isinstance(envelope, SlackFailure):
        raise SlackAPIError(method=method, error=envelope.error)
    return envelope.payload
