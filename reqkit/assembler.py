"""Request assembly and execution.

Turns a verb, a URL and RequestOptions into an ``httpx.Request`` and sends it:

    from reqkit import RequestOptions
    from reqkit.assembler import perform_request

    resp = perform_request(
        "POST",
        "https://example.com/api",
        RequestOptions(json={"name": "value"}, auth=("alice", "secret")),
    )
"""

from __future__ import annotations

import base64
from datetime import datetime
from typing import Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from ._debug import DebugInfo, DebugOutput
from .body import encode_body, select_body_source
from .builder import ClientBuilder, default_builder
from .config import AJAX_HEADER, DEFAULT_USER_AGENT, RequestOptions
from .cookies import add_cookie_header
from .models import Response, URLParseError
from .transport import ClientExecutor, Executor

_default_executor = ClientExecutor()


def build_url(url: str, params: Mapping[str, str]) -> str:
    """Merge params into the query string of url.

    Existing parameters are kept unless params has the same key, in which
    case the params value replaces all existing values. The query is
    re-encoded with keys in sorted order.

    Raises:
        URLParseError: If url cannot be parsed.
    """
    try:
        parts = urlsplit(url)
        existing = parse_qsl(parts.query, keep_blank_values=True)
    except ValueError as e:
        raise URLParseError(url, e) from e

    merged: dict[str, list[str]] = {}
    for key, value in existing:
        merged.setdefault(key, []).append(value)
    for key, value in params.items():
        merged[key] = [value]

    query = urlencode([(key, value) for key in sorted(merged) for value in merged[key]])
    return urlunsplit(parts._replace(query=query))


def resolve_url(url: str, params: Mapping[str, str] | None = None) -> httpx.URL:
    """Apply params to url and parse the result.

    Raises:
        URLParseError: If url or the merged URL cannot be parsed.
    """
    if params:
        url = build_url(url, params)
    try:
        return httpx.URL(url)
    except httpx.InvalidURL as e:
        raise URLParseError(url, e) from e


def basic_auth_header(username: str, password: str) -> str:
    """Build an HTTP basic Authorization header value."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def decorate_request(request: httpx.Request, options: RequestOptions) -> None:
    """Apply headers, user agent, basic auth, ajax marker and cookies."""
    for name, value in (options.headers or {}).items():
        request.headers[name] = value

    request.headers["User-Agent"] = options.user_agent or DEFAULT_USER_AGENT

    if options.auth is not None:
        username, password = options.auth
        request.headers["Authorization"] = basic_auth_header(username, password)

    if options.is_ajax:
        name, value = AJAX_HEADER
        request.headers[name] = value

    add_cookie_header(request.headers, options.cookies)


def assemble(
    method: str,
    url: str,
    options: RequestOptions | None = None,
    client: httpx.Client | None = None,
    *,
    builder: ClientBuilder | None = None,
) -> tuple[httpx.Request, httpx.Client]:
    """Build the request described by options, and pick its client.

    Args:
        method: HTTP method.
        url: Target URL.
        options: Request options.
        client: Client to use, bypassing client selection.
        builder: Client builder used when client is None.

    Returns:
        (request, client) ready to be sent.

    Raises:
        URLParseError: If the URL cannot be parsed.
        EncodingError: If the JSON or XML body cannot be serialized.
        InvalidInputError: If a POST upload has no file stream.
        UploadIOError: If reading the upload stream fails.
    """
    options = options or RequestOptions()
    method = method.upper()

    target = resolve_url(url, options.params)
    body = encode_body(options, method)

    dedicated = client is None and _client_kind(options, None) == "dedicated"
    if client is None:
        client = (builder or default_builder()).build(options)

    try:
        # Built through the client so its default headers and jar cookies apply
        request = client.build_request(method, target, content=body.content)
        if body.content_type is not None:
            request.headers["Content-Type"] = body.content_type

        decorate_request(request, options)
    except Exception:
        if dedicated:
            client.close()
        raise
    return request, client


def _client_kind(options: RequestOptions, client: httpx.Client | None) -> str:
    if client is not None or options.http_client is not None:
        return "supplied"
    if options.requires_dedicated_client():
        return "dedicated"
    return "default"


def perform_request(
    method: str,
    url: str,
    options: RequestOptions | None = None,
    client: httpx.Client | None = None,
    *,
    builder: ClientBuilder | None = None,
    executor: Executor | None = None,
    debug: DebugOutput | None = None,
) -> Response:
    """Assemble and send one request.

    Nothing is sent when the URL or body cannot be built. Transport errors
    from httpx propagate unchanged. A dedicated client created for this call
    is closed once the response has been read.

    Args:
        method: HTTP method.
        url: Target URL.
        options: Request options.
        client: Caller-managed client, bypassing client selection.
        builder: Client builder. Defaults to the module default builder.
        executor: Sends the request. Defaults to ``client.send``.
        debug: Verbose output handler.

    Returns:
        Response wrapper.
    """
    options = options or RequestOptions()
    client_kind = _client_kind(options, client)

    request, client = assemble(method, url, options, client, builder=builder)
    executor = executor or _default_executor

    info = None
    if debug is not None and debug.enabled:
        info = DebugInfo(
            timestamp=datetime.now(),
            method=request.method,
            url=str(request.url),
            client_kind=client_kind,
            body_kind=select_body_source(options).kind,
            request_headers=dict(request.headers),
            cookies_sent=request.headers.get("Cookie"),
            proxies=dict(options.proxies or {}),
        )

    try:
        raw = executor.send(request, client)
    except Exception as e:
        if info is not None:
            info.error = f"{type(e).__name__}: {e}"
            debug.log_request(info)
        raise
    finally:
        if client_kind == "dedicated":
            client.close()

    response = Response.from_httpx(raw)

    if info is not None:
        info.final_url = response.url
        info.status_code = response.status_code
        info.response_headers = response.headers
        info.content_length = len(response.content)
        info.elapsed = response.elapsed
        debug.log_request(info)

    return response
