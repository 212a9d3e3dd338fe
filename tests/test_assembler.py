"""Tests for request assembly and execution."""

import base64
import io
import json
from unittest.mock import MagicMock

import httpx
import pytest

from conftest import RecordingHandler, TrackingStream
from reqkit import (
    DEFAULT_USER_AGENT,
    ClientBuilder,
    Cookie,
    DebugOutput,
    FileUpload,
    InvalidInputError,
    RequestOptions,
    URLParseError,
    assemble,
    build_url,
    perform_request,
)


class TestBuildURL:
    """Tests for merging params into the query string."""

    def test_appends_params(self):
        assert build_url("https://example.com/search", {"q": "python"}) == (
            "https://example.com/search?q=python"
        )

    def test_params_override_existing(self):
        url = build_url("https://example.com/?b=1&a=old&a=older", {"a": "new"})
        assert url == "https://example.com/?a=new&b=1"

    def test_keys_sorted(self):
        url = build_url("https://example.com/?z=1", {"m": "2", "a": "3"})
        assert url == "https://example.com/?a=3&m=2&z=1"

    def test_keeps_blank_values(self):
        assert build_url("https://example.com/?flag=", {"x": "1"}) == (
            "https://example.com/?flag=&x=1"
        )

    def test_fragment_preserved(self):
        url = build_url("https://example.com/page?a=1#section", {"b": "2"})
        assert url == "https://example.com/page?a=1&b=2#section"

    def test_unparseable_url(self):
        with pytest.raises(URLParseError) as exc_info:
            build_url("http://[::1/path", {"a": "1"})
        assert exc_info.value.url == "http://[::1/path"
        assert isinstance(exc_info.value.original_error, ValueError)


class TestAssemble:
    """Tests for building requests from options."""

    def test_params_applied(self, builder):
        request, _ = assemble("get", "https://example.com/?a=1", RequestOptions(params={"b": "2"}), builder=builder)

        assert request.method == "GET"
        assert str(request.url) == "https://example.com/?a=1&b=2"

    def test_invalid_url(self, builder):
        with pytest.raises(URLParseError):
            assemble("GET", "https://example.com:notaport/", builder=builder)

    def test_json_selected_over_xml(self, builder):
        options = RequestOptions(json={"a": 1}, xml={"root": "x"})
        request, _ = assemble("POST", "https://example.com/", options, builder=builder)

        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.read()) == {"a": 1}

    def test_custom_header_overrides_content_type(self, builder):
        options = RequestOptions(json={"a": 1}, headers={"Content-Type": "application/vnd.api+json"})
        request, _ = assemble("POST", "https://example.com/", options, builder=builder)
        assert request.headers["Content-Type"] == "application/vnd.api+json"

    def test_default_user_agent(self, builder):
        request, _ = assemble("GET", "https://example.com/", builder=builder)
        assert request.headers["User-Agent"] == DEFAULT_USER_AGENT

    def test_user_agent_overrides_header(self, builder):
        options = RequestOptions(user_agent="Test/1.0", headers={"User-Agent": "Other/2.0"})
        request, _ = assemble("GET", "https://example.com/", options, builder=builder)
        assert request.headers["User-Agent"] == "Test/1.0"

    def test_basic_auth(self, builder):
        request, _ = assemble("GET", "https://example.com/", RequestOptions(auth=("alice", "secret")), builder=builder)

        scheme, token = request.headers["Authorization"].split(" ")
        assert scheme == "Basic"
        assert base64.b64decode(token) == b"alice:secret"

    def test_ajax_header(self, builder):
        request, _ = assemble("GET", "https://example.com/", RequestOptions(is_ajax=True), builder=builder)
        assert request.headers["X-Requested-With"] == "XMLHttpRequest"

    def test_no_ajax_header_by_default(self, builder):
        request, _ = assemble("GET", "https://example.com/", builder=builder)
        assert "X-Requested-With" not in request.headers

    def test_cookies_added(self, builder, mock_client):
        options = RequestOptions(cookies=[Cookie("a", "1"), Cookie("b", "2")])
        request, client = assemble("GET", "https://example.com/", options, mock_client)

        assert client is mock_client
        assert request.headers["Cookie"] == "a=1; b=2"

    def test_no_body_for_get(self, builder):
        request, _ = assemble("GET", "https://example.com/", builder=builder)

        assert "Content-Type" not in request.headers
        assert request.read() == b""

    def test_default_client_chosen(self, builder, mock_client):
        _, client = assemble("GET", "https://example.com/", builder=builder)
        assert client is mock_client

    def test_missing_post_stream(self, builder):
        options = RequestOptions(file=FileUpload("data.bin", None))
        with pytest.raises(InvalidInputError):
            assemble("POST", "https://example.com/upload", options, builder=builder)


class TestPerformRequest:
    """Tests for sending assembled requests."""

    def test_returns_response(self, builder, handler):
        resp = perform_request("GET", "https://example.com/", builder=builder)

        assert resp.status_code == 200
        assert resp.content == b"OK"
        assert resp.url == "https://example.com/"
        assert len(handler.requests) == 1

    def test_form_post(self, builder, handler):
        perform_request("POST", "https://example.com/form", RequestOptions(data={"b": "2", "a": "1"}), builder=builder)

        assert handler.last.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert handler.bodies[-1] == b"a=1&b=2"

    def test_nothing_sent_on_encoding_failure(self, builder):
        executor = MagicMock()
        options = RequestOptions(file=FileUpload("data.bin", None))

        with pytest.raises(InvalidInputError):
            perform_request("POST", "https://example.com/upload", options, builder=builder, executor=executor)

        executor.send.assert_not_called()

    def test_put_stream_sent_and_closed(self, builder, handler):
        stream = TrackingStream(b"raw-bytes")
        options = RequestOptions(file=FileUpload("data.bin", stream))

        perform_request("PUT", "https://example.com/upload/data.bin", options, builder=builder)

        assert handler.bodies[-1] == b"raw-bytes"
        assert stream.close_count == 1

    def test_post_upload_is_multipart(self, builder, handler, ten_byte_stream):
        options = RequestOptions(file=FileUpload("data.bin", ten_byte_stream))

        perform_request("POST", "https://example.com/upload", options, builder=builder)

        assert handler.last.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert b"0123456789" in handler.bodies[-1]

    def test_none_cookies(self, builder, handler):
        resp = perform_request("GET", "https://example.com/", RequestOptions(cookies=None), builder=builder)

        assert resp.status_code == 200
        assert "Cookie" not in handler.last.headers

    def test_executor_used(self, builder):
        executor = MagicMock()
        executor.send.return_value = httpx.Response(
            204, request=httpx.Request("GET", "https://example.com/")
        )

        resp = perform_request("GET", "https://example.com/", builder=builder, executor=executor)

        assert resp.status_code == 204
        executor.send.assert_called_once()

    def test_transport_error_propagates(self, builder):
        executor = MagicMock()
        executor.send.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(httpx.ConnectError, match="connection refused"):
            perform_request("GET", "https://example.com/", builder=builder, executor=executor)

    def test_supplied_client_not_closed(self, mock_client):
        perform_request("GET", "https://example.com/", client=mock_client)
        assert not mock_client.is_closed

    def test_options_client_not_closed(self, mock_client):
        perform_request("GET", "https://example.com/", RequestOptions(http_client=mock_client, dial_timeout=5))
        assert not mock_client.is_closed


class _MockDedicatedBuilder(ClientBuilder):
    """Builder whose dedicated clients never touch the network."""

    def __init__(self):
        super().__init__()
        self.handler = RecordingHandler()
        self.built: list[httpx.Client] = []

    def build_dedicated(self, options):
        client = httpx.Client(transport=httpx.MockTransport(self.handler), trust_env=False)
        self.built.append(client)
        return client


class TestDedicatedClientLifecycle:
    """Tests for closing one-shot dedicated clients."""

    def test_closed_after_call(self):
        builder = _MockDedicatedBuilder()

        resp = perform_request("GET", "https://example.com/", RequestOptions(dial_timeout=5), builder=builder)

        assert resp.content == b"OK"
        assert len(builder.built) == 1
        assert builder.built[0].is_closed

    def test_closed_when_decoration_fails(self, monkeypatch):
        def reject(request, options):
            raise ValueError("bad header")

        monkeypatch.setattr("reqkit.assembler.decorate_request", reject)
        builder = _MockDedicatedBuilder()

        with pytest.raises(ValueError, match="bad header"):
            perform_request("GET", "https://example.com/", RequestOptions(dial_timeout=5), builder=builder)

        assert builder.built[0].is_closed
        assert builder.handler.requests == []

    def test_supplied_client_open_when_decoration_fails(self, monkeypatch, mock_client):
        def reject(request, options):
            raise ValueError("bad header")

        monkeypatch.setattr("reqkit.assembler.decorate_request", reject)

        with pytest.raises(ValueError):
            assemble("GET", "https://example.com/", RequestOptions(dial_timeout=5), mock_client)

        assert not mock_client.is_closed

    def test_closed_after_error(self):
        builder = _MockDedicatedBuilder()
        executor = MagicMock()
        executor.send.side_effect = httpx.ReadTimeout("too slow")

        with pytest.raises(httpx.ReadTimeout):
            perform_request(
                "GET",
                "https://example.com/",
                RequestOptions(insecure_skip_verify=True),
                builder=builder,
                executor=executor,
            )

        assert builder.built[0].is_closed


class TestDebugOutput:
    """Tests for verbose output during execution."""

    def test_masks_authorization(self, builder):
        output = io.StringIO()
        debug = DebugOutput(enabled=True, output=output)

        perform_request("GET", "https://example.com/", RequestOptions(auth=("alice", "secret")), builder=builder, debug=debug)

        text = output.getvalue()
        assert "Basic ****" in text
        assert base64.b64encode(b"alice:secret").decode() not in text
        assert "< HTTP 200" in text

    def test_callback_receives_info(self, builder):
        captured = []
        debug = DebugOutput(enabled=True, output=io.StringIO(), callback=captured.append)

        perform_request("POST", "https://example.com/", RequestOptions(json={"a": 1}), builder=builder, debug=debug)

        info = captured[0]
        assert info.method == "POST"
        assert info.client_kind == "default"
        assert info.body_kind == "json"
        assert info.status_code == 200

    def test_error_logged_and_raised(self, builder):
        output = io.StringIO()
        executor = MagicMock()
        executor.send.side_effect = httpx.ConnectError("refused")

        with pytest.raises(httpx.ConnectError):
            perform_request(
                "GET",
                "https://example.com/",
                builder=builder,
                executor=executor,
                debug=DebugOutput(enabled=True, output=output),
            )

        assert "< ERROR: ConnectError: refused" in output.getvalue()

    def test_disabled_writes_nothing(self, builder):
        output = io.StringIO()
        perform_request("GET", "https://example.com/", builder=builder, debug=DebugOutput(output=output))
        assert output.getvalue() == ""
