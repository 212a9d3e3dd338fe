"""Response wrapper and exceptions."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx


@dataclass
class Response:
    """HTTP response representation.

    Attributes:
        status_code: HTTP status code.
        headers: Response headers.
        content: Raw response content as bytes.
        url: Final URL after redirects.
        cookies: Cookies set by the response.
        elapsed: Request duration in seconds.
        request: The request that produced this response.
        history: Redirect responses, oldest first.
        raw: The underlying httpx response.
    """

    status_code: int
    headers: dict[str, str]
    content: bytes
    url: str
    cookies: dict[str, str] = field(default_factory=dict)
    elapsed: float = 0.0
    request: httpx.Request | None = None
    history: list["Response"] = field(default_factory=list)
    raw: httpx.Response | None = None

    @classmethod
    def from_httpx(cls, resp: httpx.Response) -> "Response":
        """Wrap a fully read httpx response."""
        try:
            elapsed = resp.elapsed.total_seconds()
        except RuntimeError:
            # only set when the response went through a client
            elapsed = 0.0
        return cls(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            content=resp.content,
            url=str(resp.url),
            cookies=dict(resp.cookies),
            elapsed=elapsed,
            request=resp.request,
            history=[cls.from_httpx(r) for r in resp.history],
            raw=resp,
        )

    @property
    def ok(self) -> bool:
        """Check if status code indicates success (2xx)."""
        return 200 <= self.status_code < 300

    def raise_for_status(self) -> None:
        """Raise HTTPError if status code indicates an error."""
        if not self.ok:
            raise HTTPError(
                f"HTTP {self.status_code} for {self.url}",
                response=self
            )


class ReqkitError(Exception):
    """Base exception for reqkit errors."""
    pass


class URLParseError(ReqkitError, ValueError):
    """The request URL or its query string could not be parsed."""

    def __init__(self, url: str, original_error: Exception | None = None):
        message = f"Invalid URL {url!r}"
        if original_error is not None:
            message += f": {original_error}"
        super().__init__(message)
        self.url = url
        self.original_error = original_error


class EncodingError(ReqkitError):
    """A JSON or XML body could not be serialized."""

    def __init__(self, format: str, message: str, original_error: Exception | None = None):
        super().__init__(f"Cannot encode {format} body: {message}")
        self.format = format
        self.original_error = original_error


class InvalidInputError(ReqkitError, ValueError):
    """Required request input is missing."""
    pass


class UploadIOError(ReqkitError):
    """Reading an upload stream failed."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class HTTPError(ReqkitError):
    """HTTP error response (4xx, 5xx status codes)."""

    def __init__(self, message: str, response: Response | None = None):
        super().__init__(message)
        self.response = response


# Network, DNS and TLS failures are raised by httpx as-is.
TransportError = httpx.TransportError
