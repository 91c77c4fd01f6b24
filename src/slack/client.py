"""HTTP client for the Slack Web API."""

import base64
import json
from typing import Any, Mapping

import httpx
from structlog.typing import FilteringBoundLogger

from src.config import Settings
from .schemas import BinaryResource, TransportKind, DEFAULT_MIME_TYPE
from .exceptions import ConfigurationError, SlackGatewayError, SlackHTTPError, SlackTransportError
from .normalizer import normalize_response


DEFAULT_BASE_URL = "https://slack.com/api"
MAX_REDIRECTS = 5
JSON_CONTENT_TYPE = "application/json; charset=utf-8"


def create_http_client() -> httpx.AsyncClient:
    """Create the shared HTTP client.

    No timeout is applied; only binary fetches follow redirects, at most
    MAX_REDIRECTS of them.
    """
    return httpx.AsyncClient(timeout=None, max_redirects=MAX_REDIRECTS)


def mask_token(token: str) -> str:
    """Shorten a token for log output."""
    if len(token) > 12:
        return f"{token[:6]}…{token[-6:]}"
    return token


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query(params: Mapping[str, Any]) -> dict[str, str]:
    """Encode parameters as query entries, dropping None and empty strings."""
    return {
        key: _stringify(value)
        for key, value in params.items()
        if value is not None and value != ""
    }


class SlackClient:
    """Authenticated caller for Slack Web API methods.

    Every call reads the whole response body and hands it to
    ``normalize_response``; callers only ever see a decoded payload or a
    ``SlackGatewayError``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token: str,
        logger: FilteringBoundLogger,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self._http = http_client
        self._token = token
        self._logger = logger
        self._base_url = base_url.rstrip("/")

    def _url(self, method: str) -> str:
        return f"{self._base_url}/{method}"

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def _call(
        self,
        kind: TransportKind,
        method: str,
        **request_kwargs: Any,
    ) -> dict[str, Any]:
        headers = self._auth_headers()
        headers.update(request_kwargs.pop("headers", {}))
        http_method = "GET" if kind is TransportKind.QUERY else "POST"

        self._logger.debug("slack_request", method=method, transport=kind.value)
        try:
            response = await self._http.request(
                http_method,
                self._url(method),
                headers=headers,
                **request_kwargs,
            )
        except httpx.RequestError as e:
            self._logger.error("slack_transport_failed", method=method, error=str(e))
            raise SlackTransportError(f"Request to {method} failed: {e}") from e

        try:
            return normalize_response(method, response.status_code, response.text)
        except SlackGatewayError as e:
            self._logger.warning("slack_call_failed", method=method, code=e.code, error=e.message)
            raise

    async def get(self, method: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Call a method with its parameters in the query string."""
        return await self._call(TransportKind.QUERY, method, params=build_query(params or {}))

    async def post_json(self, method: str, body: Mapping[str, Any]) -> dict[str, Any]:
        """Call a method with a JSON document body.

        None values are dropped, everything else is sent as given.
        """
        document = {key: value for key, value in body.items() if value is not None}
        return await self._call(
            TransportKind.JSON,
            method,
            content=json.dumps(document).encode("utf-8"),
            headers={"Content-Type": JSON_CONTENT_TYPE},
        )

    async def post_form(
        self,
        method: str,
        fields: Mapping[str, Any],
        attachment: tuple[str, bytes, str] | None = None,
    ) -> dict[str, Any]:
        """Call a method with form fields and at most one file attachment.

        Args:
            method: Web API method name.
            fields: Form fields; None and empty strings are omitted.
            attachment: Optional ``(filename, data, mime_type)`` sent as the
                ``file`` part of a multipart body.
        """
        data = build_query(fields)
        if attachment is None:
            return await self._call(TransportKind.FORM, method, data=data)
        return await self._call(
            TransportKind.MULTIPART,
            method,
            data=data,
            files={"file": attachment},
        )

    async def fetch_binary(self, url: str) -> BinaryResource:
        """Download a file from a direct URL with the bearer token.

        Follows up to MAX_REDIRECTS redirects and reads the whole body.

        Raises:
            SlackTransportError: On network failure or too many redirects.
            SlackHTTPError: If the final status is 400 or above.
        """
        self._logger.debug("slack_fetch_binary", url=url)
        try:
            response = await self._http.get(url, headers=self._auth_headers(), follow_redirects=True)
        except httpx.RequestError as e:
            self._logger.error("slack_fetch_failed", url=url, error=str(e))
            raise SlackTransportError(f"Download from {url} failed: {e}") from e

        if response.status_code >= 400:
            raise SlackHTTPError(status_code=response.status_code, body=response.text)

        content_types = response.headers.get_list("content-type")
        mime_type = content_types[0] if content_types else DEFAULT_MIME_TYPE
        return BinaryResource(
            data_base64=base64.b64encode(response.content).decode("ascii"),
            mime_type=mime_type or DEFAULT_MIME_TYPE,
        )


async def connect_slack(
    settings: Settings,
    http_client: httpx.AsyncClient,
    logger: FilteringBoundLogger,
) -> SlackClient:
    """Build the client and check the token with ``auth.test``.

    Raises:
        ConfigurationError: If SLACK_TOKEN is missing or blank.
        SlackGatewayError: If the token check fails.
    """
    token = settings.SLACK_TOKEN.strip()
    if not token:
        raise ConfigurationError("SLACK_TOKEN missing. Put your xoxp-… user token in .env")

    logger.info("slack_token_loaded", token=mask_token(token))
    client = SlackClient(http_client, token, logger, base_url=settings.SLACK_API_BASE_URL)
    identity = await client.get("auth.test")
    logger.info("startup_auth_ok", user=identity.get("user"), team=identity.get("team"))
    return client
