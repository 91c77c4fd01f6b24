"""Tests for tool handlers and the dispatcher."""

import base64
import json

import pytest
from pydantic import ValidationError

from src.slack.exceptions import SlackAPIError
from src.slack.schemas import BinaryResource
from src.tools import (
    ChannelNotFoundError,
    FileNotAccessibleError,
    NoDownloadableURLError,
    ToolDispatcher,
    ToolNotFoundError,
)
from src.tools.handlers import is_textual_mime_type, resolve_channel_name
from src.tools.schemas import BinaryPayload, TextPayload, UploadFileParams, decode_base64


def _route_get(slack, responses: dict) -> None:
    async def get(method, params=None):
        return responses[method]

    slack.get.side_effect = get


def _payload(block) -> dict:
    return json.loads(block.text)


@pytest.fixture
def dispatcher(slack, logger) -> ToolDispatcher:
    return ToolDispatcher(slack, logger)


class TestResolveChannelName:
    """Tests for channel reference resolution."""

    @pytest.mark.asyncio
    async def test_hash_prefix_is_stripped(self, slack):
        assert await resolve_channel_name(slack, "#general") == "general"
        slack.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bare_name_is_unchanged(self, slack):
        assert await resolve_channel_name(slack, "general") == "general"
        slack.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_surrounding_whitespace_is_trimmed(self, slack):
        assert await resolve_channel_name(slack, "  #random ") == "random"

    @pytest.mark.asyncio
    async def test_lowercase_id_lookalike_is_a_name(self, slack):
        assert await resolve_channel_name(slack, "c0123abcd") == "c0123abcd"
        slack.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_channel_id_is_looked_up(self, slack):
        _route_get(slack, {"conversations.info": {"ok": True, "channel": {"id": "C0123ABCD", "name": "general"}}})

        assert await resolve_channel_name(slack, "C0123ABCD") == "general"
        slack.get.assert_awaited_once_with("conversations.info", {"channel": "C0123ABCD"})

    @pytest.mark.asyncio
    async def test_private_group_id_is_looked_up(self, slack):
        _route_get(slack, {"conversations.info": {"ok": True, "channel": {"name": "secret"}}})

        assert await resolve_channel_name(slack, "G42XYZ") == "secret"

    @pytest.mark.asyncio
    async def test_lookup_without_name_raises(self, slack):
        _route_get(slack, {"conversations.info": {"ok": True, "channel": {}}})

        with pytest.raises(ChannelNotFoundError) as exc_info:
            await resolve_channel_name(slack, "C0123ABCD")

        assert "Channel not found" in exc_info.value.message


class TestSearchTools:
    """Tests for message search tools."""

    @pytest.mark.asyncio
    async def test_search_in_channel_builds_filtered_query(self, dispatcher, slack):
        _route_get(slack, {"search.messages": {"ok": True, "messages": {"matches": []}}})

        result = await dispatcher.call("slack_search_in_channel", {"channel": "#general", "query": "deploy"})

        slack.get.assert_awaited_once_with("search.messages", {
            "query": "deploy in:#general",
            "count": 20,
            "sort": None,
            "sort_dir": None,
        })
        assert _payload(result.content[0])["ok"] is True

    @pytest.mark.asyncio
    async def test_search_in_channel_resolves_id_first(self, dispatcher, slack):
        _route_get(slack, {
            "conversations.info": {"ok": True, "channel": {"name": "eng"}},
            "search.messages": {"ok": True},
        })

        await dispatcher.call("slack_search_in_channel", {
            "channel": "C0123ABCD",
            "query": "outage",
            "count": 50,
            "sort": "timestamp",
        })

        methods = [call.args[0] for call in slack.get.await_args_list]
        assert methods == ["conversations.info", "search.messages"]
        assert slack.get.await_args_list[1].args[1]["query"] == "outage in:#eng"
        assert slack.get.await_args_list[1].args[1]["count"] == 50

    @pytest.mark.asyncio
    async def test_search_count_above_limit_is_rejected(self, dispatcher, slack):
        with pytest.raises(ValidationError):
            await dispatcher.call("slack_search_messages", {"query": "x", "count": 101})

        slack.get.assert_not_awaited()


class TestListingTools:
    """Tests for defaults and cursor pass-through of listing tools."""

    @pytest.mark.asyncio
    async def test_list_conversations_defaults(self, dispatcher, slack):
        _route_get(slack, {"conversations.list": {
            "ok": True,
            "channels": [{"id": "C1", "name": "general", "is_private": 0, "is_im": False}],
            "response_metadata": {"next_cursor": "bmV4dA=="},
        }})

        result = await dispatcher.call("slack_list_conversations", {})

        slack.get.assert_awaited_once_with("conversations.list", {
            "types": "public_channel,private_channel,im,mpim",
            "limit": 200,
            "cursor": None,
        })
        payload = _payload(result.content[0])
        assert payload["items"] == [
            {"id": "C1", "name": "general", "is_private": False, "is_im": False, "is_mpim": False}
        ]
        assert payload["response_metadata"]["next_cursor"] == "bmV4dA=="

    @pytest.mark.asyncio
    async def test_cursor_is_forwarded_verbatim(self, dispatcher, slack):
        _route_get(slack, {"conversations.list": {"ok": True, "channels": []}})
        cursor = "dGVhbTpDMDYxRkE1UEI= "

        await dispatcher.call("slack_list_conversations", {"cursor": cursor, "types": ["im"], "limit": 5})

        params = slack.get.await_args.args[1]
        assert params["cursor"] == cursor
        assert params["types"] == "im"
        assert params["limit"] == 5

    @pytest.mark.asyncio
    async def test_fetch_history_default_limit(self, dispatcher, slack):
        _route_get(slack, {"conversations.history": {"ok": True, "messages": []}})

        await dispatcher.call("slack_fetch_history", {"channel": "C1", "inclusive": True, "cursor": "abc"})

        params = slack.get.await_args.args[1]
        assert params["limit"] == 200
        assert params["cursor"] == "abc"
        assert params["inclusive"] is True

    @pytest.mark.asyncio
    async def test_users_list_default_limit(self, dispatcher, slack):
        _route_get(slack, {"users.list": {"ok": True, "members": []}})

        await dispatcher.call("slack_users_list", {})

        slack.get.assert_awaited_once_with("users.list", {"limit": 200, "cursor": None})

    @pytest.mark.asyncio
    async def test_list_files_passes_only_given_fields(self, dispatcher, slack):
        _route_get(slack, {"files.list": {"ok": True, "files": []}})

        await dispatcher.call("slack_list_files", {"channel": "C1", "types": "images", "page": 2})

        slack.get.assert_awaited_once_with("files.list", {"channel": "C1", "types": "images", "page": 2})

    @pytest.mark.asyncio
    async def test_limit_out_of_range_fails_before_network(self, dispatcher, slack):
        with pytest.raises(ValidationError):
            await dispatcher.call("slack_users_list", {"limit": 201})

        slack.get.assert_not_awaited()


class TestDownloadFile:
    """Tests for file download."""

    @pytest.mark.asyncio
    async def test_external_file_returns_soft_failure(self, dispatcher, slack):
        file_meta = {"id": "F1", "name": "Plan", "is_external": True, "external_type": "gdrive"}
        _route_get(slack, {"files.info": {"ok": True, "file": file_meta}})

        result = await dispatcher.call("slack_download_file", {"file": "F1"})

        assert result.isError is False
        assert len(result.content) == 1
        payload = _payload(result.content[0])
        assert payload["ok"] is False
        assert payload["error"] == "external_file"
        assert payload["note"]
        assert payload["file"] == file_meta
        slack.fetch_binary.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_external_type_alone_marks_file_external(self, dispatcher, slack):
        _route_get(slack, {"files.info": {"ok": True, "file": {
            "id": "F1",
            "external_type": "dropbox",
            "url_private": "https://files.slack.test/F1",
        }}})

        result = await dispatcher.call("slack_download_file", {"file": "F1"})

        assert _payload(result.content[0])["error"] == "external_file"
        slack.fetch_binary.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_downloadable_url_raises(self, dispatcher, slack):
        _route_get(slack, {"files.info": {"ok": True, "file": {"id": "F1", "name": "x"}}})

        with pytest.raises(NoDownloadableURLError) as exc_info:
            await dispatcher.call("slack_download_file", {"file": "F1"})

        assert "No downloadable URL" in exc_info.value.message
        slack.fetch_binary.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_file_raises(self, dispatcher, slack):
        _route_get(slack, {"files.info": {"ok": True}})

        with pytest.raises(FileNotAccessibleError):
            await dispatcher.call("slack_download_file", {"file": "F1"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "file_meta, expected_url",
        [
            (
                {"url_private_download": "https://a/dl", "url_private": "https://a/p", "permalink_public": "https://a/pub"},
                "https://a/dl",
            ),
            ({"url_private": "https://a/p", "permalink_public": "https://a/pub"}, "https://a/p"),
            ({"permalink_public": "https://a/pub"}, "https://a/pub"),
        ],
    )
    async def test_url_preference(self, dispatcher, slack, file_meta, expected_url):
        _route_get(slack, {"files.info": {"ok": True, "file": {"id": "F1", **file_meta}}})
        slack.fetch_binary.return_value = BinaryResource(data_base64="AAE=", mime_type="image/png")

        await dispatcher.call("slack_download_file", {"file": "F1"})

        slack.fetch_binary.assert_awaited_once_with(expected_url)

    @pytest.mark.asyncio
    async def test_prefer_text_adds_decoded_text(self, dispatcher, slack):
        text = "name,value\nä,1\n"
        _route_get(slack, {"files.info": {"ok": True, "file": {"id": "F1", "url_private": "https://a/p"}}})
        slack.fetch_binary.return_value = BinaryResource(
            data_base64=base64.b64encode(text.encode("utf-8")).decode(),
            mime_type="text/csv; charset=utf-8",
        )

        result = await dispatcher.call("slack_download_file", {"file": "F1", "preferText": True})

        resource_block, text_block = result.content
        assert resource_block.type == "resource"
        assert resource_block.resource.mimeType == "text/csv; charset=utf-8"
        assert resource_block.resource.uri == "https://a/p"
        assert text_block.text == text

    @pytest.mark.asyncio
    async def test_binary_file_gets_summary_block(self, dispatcher, slack):
        _route_get(slack, {"files.info": {"ok": True, "file": {
            "id": "F1",
            "name": "photo.png",
            "mimetype": "image/png",
            "size": 2,
            "url_private_download": "https://a/dl",
        }}})
        slack.fetch_binary.return_value = BinaryResource(data_base64="AAE=", mime_type="image/png")

        result = await dispatcher.call("slack_download_file", {"file": "F1", "preferText": True})

        resource_block, summary_block = result.content
        assert resource_block.resource.blob == "AAE="
        assert _payload(summary_block) == {
            "ok": True,
            "file": {"id": "F1", "name": "photo.png", "mimetype": "image/png", "size": 2},
        }

    @pytest.mark.asyncio
    async def test_text_file_without_prefer_text_gets_summary(self, dispatcher, slack):
        _route_get(slack, {"files.info": {"ok": True, "file": {"id": "F1", "url_private": "https://a/p"}}})
        slack.fetch_binary.return_value = BinaryResource(data_base64="aGk=", mime_type="application/json")

        result = await dispatcher.call("slack_download_file", {"file": "F1"})

        assert _payload(result.content[1])["ok"] is True


@pytest.mark.parametrize(
    "mime_type, expected",
    [
        ("text/plain", True),
        ("text/html; charset=utf-8", True),
        ("application/json", True),
        ("application/json; charset=utf-8", True),
        ("application/jsonl", False),
        ("image/png", False),
        ("application/octet-stream", False),
    ],
)
def test_is_textual_mime_type(mime_type, expected):
    assert is_textual_mime_type(mime_type) is expected


class TestUploadFile:
    """Tests for upload validation and transport path selection."""

    @pytest.mark.asyncio
    async def test_neither_payload_is_rejected(self, dispatcher, slack):
        with pytest.raises(ValidationError) as exc_info:
            await dispatcher.call("slack_upload_file", {"filename": "a.txt"})

        assert "Provide either 'content' or 'data_base64'." in str(exc_info.value)
        slack.post_form.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_both_payloads_are_rejected(self, dispatcher, slack):
        with pytest.raises(ValidationError) as exc_info:
            await dispatcher.call("slack_upload_file", {
                "filename": "a.txt",
                "content": "hi",
                "data_base64": "aGk=",
            })

        assert "not both" in str(exc_info.value)
        slack.post_form.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_base64_is_rejected(self, dispatcher, slack):
        with pytest.raises(ValidationError):
            await dispatcher.call("slack_upload_file", {"filename": "a.bin", "data_base64": "not base64!"})

        slack.post_form.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_text_payload_is_sent_as_field(self, dispatcher, slack):
        slack.post_form.return_value = {"ok": True, "file": {"id": "F1"}}

        result = await dispatcher.call("slack_upload_file", {
            "filename": "notes.txt",
            "channels": "C1,C2",
            "content": "hello",
            "initial_comment": "fyi",
        })

        slack.post_form.assert_awaited_once_with("files.upload", {
            "filename": "notes.txt",
            "channels": "C1,C2",
            "title": None,
            "initial_comment": "fyi",
            "content": "hello",
        })
        assert _payload(result.content[0])["file"]["id"] == "F1"

    @pytest.mark.asyncio
    async def test_binary_payload_is_sent_as_attachment(self, dispatcher, slack):
        raw = b"\x89PNG\r\n\x1a\n\x00"
        slack.post_form.return_value = {"ok": True}

        await dispatcher.call("slack_upload_file", {
            "filename": "img.png",
            "title": "Screenshot",
            "data_base64": base64.b64encode(raw).decode(),
        })

        args, kwargs = slack.post_form.await_args
        assert args == ("files.upload", {
            "filename": "img.png",
            "channels": None,
            "title": "Screenshot",
            "initial_comment": None,
        })
        assert kwargs["attachment"] == ("img.png", raw, "application/octet-stream")

    @pytest.mark.asyncio
    async def test_binary_payload_uses_declared_mime_type(self, dispatcher, slack):
        slack.post_form.return_value = {"ok": True}

        await dispatcher.call("slack_upload_file", {
            "filename": "img.png",
            "data_base64": "iVBORw0K\nGgo=",
            "mimeType": "image/png",
        })

        assert slack.post_form.await_args.kwargs["attachment"][2] == "image/png"

    def test_payload_variants(self):
        text_params = UploadFileParams(filename="a.txt", content="hi")
        binary_params = UploadFileParams(filename="a.bin", data_base64="aGk=")

        assert text_params.payload() == TextPayload(content="hi")
        assert binary_params.payload() == BinaryPayload(data=b"hi")

    @pytest.mark.parametrize(
        "encoded, raw",
        [
            ("aGk", b"hi"),
            ("aGk=", b"hi"),
            ("-_-_", b"\xfb\xff\xbf"),
            ("+/+/", b"\xfb\xff\xbf"),
            ("-_8", b"\xfb\xff"),
        ],
    )
    def test_unpadded_and_urlsafe_base64_are_accepted(self, encoded, raw):
        assert decode_base64(encoded) == raw

    @pytest.mark.asyncio
    async def test_urlsafe_upload_reaches_slack(self, dispatcher, slack):
        slack.post_form.return_value = {"ok": True}

        await dispatcher.call("slack_upload_file", {"filename": "a.bin", "data_base64": "-_-_"})

        assert slack.post_form.await_args.kwargs["attachment"][1] == b"\xfb\xff\xbf"

    def test_truncated_base64_is_rejected(self):
        with pytest.raises(ValueError):
            decode_base64("aGkab")


class TestWriteTools:
    """Tests for JSON POST tools."""

    @pytest.mark.asyncio
    async def test_post_message(self, dispatcher, slack):
        slack.post_json.return_value = {"ok": True, "ts": "1700000000.000100"}

        result = await dispatcher.call("slack_post_message", {"channel": "C1", "text": "hi", "thread_ts": "1.0"})

        slack.post_json.assert_awaited_once_with("chat.postMessage", {
            "channel": "C1",
            "text": "hi",
            "thread_ts": "1.0",
            "unfurl_links": None,
        })
        assert _payload(result.content[0])["ts"] == "1700000000.000100"

    @pytest.mark.asyncio
    async def test_open_dm_sends_users(self, dispatcher, slack):
        slack.post_json.return_value = {"ok": True, "channel": {"id": "D1"}}

        await dispatcher.call("slack_open_dm", {"user": "U1"})

        slack.post_json.assert_awaited_once_with("conversations.open", {"users": "U1"})

    @pytest.mark.asyncio
    async def test_delete_file(self, dispatcher, slack):
        slack.post_json.return_value = {"ok": True}

        await dispatcher.call("slack_delete_file", {"file": "F1"})

        slack.post_json.assert_awaited_once_with("files.delete", {"file": "F1"})

    @pytest.mark.asyncio
    async def test_empty_text_is_rejected(self, dispatcher, slack):
        with pytest.raises(ValidationError):
            await dispatcher.call("slack_post_message", {"channel": "C1", "text": ""})

        slack.post_json.assert_not_awaited()


class TestDispatcher:
    """Tests for tool lookup and publication."""

    def test_lists_all_tools_with_schemas(self, dispatcher):
        tools = {tool.name: tool for tool in dispatcher.list_tools()}

        assert set(tools) == {
            "slack_list_conversations",
            "slack_fetch_history",
            "slack_search_messages",
            "slack_search_in_channel",
            "slack_list_files",
            "slack_get_file_info",
            "slack_download_file",
            "slack_upload_file",
            "slack_delete_file",
            "slack_users_list",
            "slack_open_dm",
            "slack_post_message",
        }
        schema = tools["slack_search_in_channel"].inputSchema
        assert schema["type"] == "object"
        assert set(schema["required"]) == {"channel", "query"}

    @pytest.mark.asyncio
    async def test_unknown_tool_raises(self, dispatcher):
        with pytest.raises(ToolNotFoundError):
            await dispatcher.call("slack_nope", {})

    @pytest.mark.asyncio
    async def test_unknown_argument_is_rejected(self, dispatcher, slack):
        with pytest.raises(ValidationError):
            await dispatcher.call("slack_get_file_info", {"file": "F1", "extra": 1})

        slack.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_slack_errors_propagate(self, dispatcher, slack):
        slack.get.side_effect = SlackAPIError(method="files.info", error="file_not_found")

        with pytest.raises(SlackAPIError):
            await dispatcher.call("slack_get_file_info", {"file": "F1"})
