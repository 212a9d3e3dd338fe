"""Sessions: one client and cookie jar shared by many requests.

Basic usage:

    from reqkit import RequestOptions, Session

    with Session(RequestOptions(headers={"Accept": "application/json"})) as s:
        s.post("https://example.com/login", data={"user": "alice", "pw": "..."})
        resp = s.get("https://example.com/dashboard")  # login cookies sent
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

import httpx

from ._debug import DebugInfo, DebugOutput
from .assembler import perform_request
from .builder import ClientBuilder, default_builder
from .config import RequestOptions, resolve_options
from .models import ReqkitError, Response
from .transport import Executor


class Session:
    """Client and cookie jar reused across requests.

    The client is built once from the base options with the cookie jar
    enabled, so cookies set by responses are replayed on later requests.
    Base options also provide defaults for every request made through the
    session: headers, user agent, auth, cookies and the ajax marker.

    Args:
        options: Base options. ``http_client`` here is used as-is.
        builder: Client builder. Defaults to the module default builder.
        executor: Sends requests. Defaults to ``client.send``.
        verbose: Print each request/response cycle to stderr.
        debug_callback: Called with a DebugInfo for every request.
    """

    def __init__(
        self,
        options: RequestOptions | None = None,
        builder: ClientBuilder | None = None,
        executor: Executor | None = None,
        verbose: bool = False,
        debug_callback: Callable[[DebugInfo], None] | None = None,
    ) -> None:
        base = options or RequestOptions()
        self._options = replace(base, use_cookie_jar=True)
        self._owns_client = base.http_client is None
        self.http_client: httpx.Client = (builder or default_builder()).build(self._options)
        self._executor = executor
        self._debug = DebugOutput(
            enabled=verbose or debug_callback is not None,
            callback=debug_callback,
        )
        self._closed = False

    @property
    def base_options(self) -> RequestOptions:
        """Base options applied to every request."""
        return self._options

    # -------------------------------------------------------------------------
    # HTTP Methods
    # -------------------------------------------------------------------------

    def request(
        self,
        method: str,
        url: str,
        options: RequestOptions | None = None,
        **kwargs: Any,
    ) -> Response:
        """Make a request through the session client."""
        if self._closed:
            raise ReqkitError("Session is closed")
        merged = self._combine(resolve_options(options, kwargs))
        return perform_request(
            method,
            url,
            merged,
            self.http_client,
            executor=self._executor,
            debug=self._debug,
        )

    def get(self, url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
        """Make a GET request."""
        return self.request("GET", url, options, **kwargs)

    def post(self, url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
        """Make a POST request."""
        return self.request("POST", url, options, **kwargs)

    def put(self, url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
        """Make a PUT request."""
        return self.request("PUT", url, options, **kwargs)

    def patch(self, url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
        """Make a PATCH request."""
        return self.request("PATCH", url, options, **kwargs)

    def delete(self, url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
        """Make a DELETE request."""
        return self.request("DELETE", url, options, **kwargs)

    def head(self, url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
        """Make a HEAD request."""
        return self.request("HEAD", url, options, **kwargs)

    def options(self, url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
        """Make an OPTIONS request."""
        return self.request("OPTIONS", url, options, **kwargs)

    # -------------------------------------------------------------------------
    # Cookies
    # -------------------------------------------------------------------------

    @property
    def cookies(self) -> dict[str, str]:
        """Cookies currently held by the session."""
        return {cookie.name: cookie.value for cookie in self.http_client.cookies.jar}

    def clear_cookies(self, domain: str | None = None) -> None:
        """Clear cookies, optionally for a specific domain.

        Args:
            domain: If provided, only clear cookies for this domain.
                   If None, clears all cookies.
        """
        self.http_client.cookies.clear(domain=domain)

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    def _combine(self, options: RequestOptions) -> RequestOptions:
        """Fill per-request options from the session's base options.

        User agent and auth fall back to the base values. Headers are merged,
        per-request values taking precedence. Base cookies are sent before
        per-request cookies, and a base ajax marker applies to every request.
        """
        base = self._options
        headers = {**(base.headers or {}), **(options.headers or {})}
        return replace(
            options,
            user_agent=options.user_agent or base.user_agent,
            auth=options.auth if options.auth is not None else base.auth,
            headers=headers or None,
            cookies=(*(base.cookies or ()), *(options.cookies or ())),
            is_ajax=options.is_ajax or base.is_ajax,
        )

    # -------------------------------------------------------------------------
    # Context Managers / Cleanup
    # -------------------------------------------------------------------------

    def __enter__(self) -> "Session":
        """Enter context manager."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self) -> None:
        """Close the session and release its client."""
        if not self._closed:
            if self._owns_client:
                self.http_client.close()
            self._closed = True
