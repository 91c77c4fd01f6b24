"""Custom exceptions for the Slack gateway."""


class SlackGatewayError(Exception):
    """Base exception for all Slack gateway errors."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class ConfigurationError(SlackGatewayError):
    """Raised at startup when required configuration is missing."""

    def __init__(self, message: str):
        super().__init__(message=message, code="CONFIGURATION_ERROR")


class SlackTransportError(SlackGatewayError):
    """Raised when a request fails on the wire or the body is not JSON.

    The message is the raw diagnostic text (network failure description or
    the unparsed response body) so non-JSON error pages stay debuggable.
    """

    def __init__(self, raw_text: str):
        super().__init__(message=raw_text, code="SLACK_TRANSPORT_ERROR")
        self.raw_text = raw_text


class SlackHTTPError(SlackGatewayError):
    """Raised when Slack answers with an HTTP status of 400 or above.

    Attributes:
        status_code: HTTP status code from Slack.
        body: Raw response body.
    """

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(
            message=f"HTTP {status_code}: {body}",
            code="SLACK_HTTP_ERROR"
        )
        self.status_code = status_code
        self.body = body


class SlackAPIError(SlackGatewayError):
    """Raised when Slack returns ``ok: false``.

    Attributes:
        method: Web API method that was called.
        error: Slack's short error code.
    """

    def __init__(self, method: str, error: str):
        super().__init__(
            message=f"Slack {method} error: {error}",
            code="SLACK_API_ERROR"
        )
        self.method = method
        self.error = error
