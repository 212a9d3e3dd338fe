"""Request options and built-in defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, Mapping, Sequence

if TYPE_CHECKING:
    import httpx

    from .cookies import Cookie


VERSION = "0.1.0"

# User agent sent when RequestOptions.user_agent is empty
DEFAULT_USER_AGENT = f"reqkit/{VERSION}"

# Dedicated client defaults (seconds)
DEFAULT_DIAL_TIMEOUT = 30.0
DEFAULT_DIAL_KEEP_ALIVE = 30.0
DEFAULT_TLS_HANDSHAKE_TIMEOUT = 10.0

AJAX_HEADER = ("X-Requested-With", "XMLHttpRequest")


@dataclass
class FileUpload:
    """A named byte stream to upload.

    Attributes:
        file_name: Name reported to the server and used for MIME guessing.
        file_contents: Readable binary stream. Closed once it has been consumed.
        field_name: Multipart field name for POST uploads.
    """

    file_name: str
    file_contents: BinaryIO | None
    field_name: str = "file"

    @classmethod
    def from_path(cls, path: str | Path, field_name: str = "file") -> "FileUpload":
        """Open a file from disk for upload."""
        path = Path(path)
        return cls(
            file_name=path.name,
            file_contents=path.open("rb"),
            field_name=field_name,
        )


@dataclass(frozen=True)
class RequestOptions:
    """Everything that shapes one outgoing request.

    Body sources are checked in order (json, xml, file, data) and only the
    first one that is not None is used. The remaining fields modify headers,
    cookies and the client the request is sent with.

    Attributes:
        data: Form fields. With ``file`` set, extra multipart fields.
        params: Query parameters merged into the URL (overriding existing ones).
        file: File to upload.
        json: Value sent as a JSON body.
        xml: Value sent as an XML body.
        headers: Headers set on the request, replacing same-named ones.
        user_agent: User-Agent value. Empty means DEFAULT_USER_AGENT.
        auth: (username, password) for HTTP basic auth.
        is_ajax: Mark the request as sent by browser JavaScript.
        cookies: Cookies appended to the request.
        use_cookie_jar: Use a dedicated client that stores response cookies.
        proxies: Scheme to proxy URL, e.g. {"http": "http://127.0.0.1:8080"}.
        insecure_skip_verify: Skip TLS certificate verification.
        disable_compression: Ask the server not to compress responses.
        tls_handshake_timeout: TLS handshake timeout in seconds, 0 = default.
        dial_timeout: TCP connect timeout in seconds, 0 = default.
        dial_keep_alive: TCP keep-alive period in seconds, 0 = default.
        http_client: Client to send with, bypassing client selection.
    """

    # Body sources
    data: Mapping[str, str] | None = None
    params: Mapping[str, str] | None = None
    file: FileUpload | None = None
    json: Any = None
    xml: Any = None

    # Request decoration
    headers: Mapping[str, str] | None = None
    user_agent: str = ""
    auth: Sequence[str] | None = None
    is_ajax: bool = False
    cookies: Sequence["Cookie"] | None = field(default_factory=tuple)

    # Client behavior
    use_cookie_jar: bool = False
    proxies: Mapping[str, str] | None = None
    insecure_skip_verify: bool = False
    disable_compression: bool = False
    tls_handshake_timeout: float = 0.0
    dial_timeout: float = 0.0
    dial_keep_alive: float = 0.0
    http_client: "httpx.Client | None" = None

    def __post_init__(self) -> None:
        """Validate option values."""
        if self.auth is not None and len(self.auth) != 2:
            raise ValueError("auth must be a (username, password) pair")
        if self.tls_handshake_timeout < 0:
            raise ValueError("tls_handshake_timeout must be >= 0")
        if self.dial_timeout < 0:
            raise ValueError("dial_timeout must be >= 0")
        if self.dial_keep_alive < 0:
            raise ValueError("dial_keep_alive must be >= 0")

    def requires_dedicated_client(self) -> bool:
        """Check whether the shared default client cannot serve these options.

        A dedicated client is needed to skip certificate checks, disable
        compression, route through explicit proxies, change any of the
        connection timeouts, or attach cookies / a cookie jar.
        """
        return (
            self.insecure_skip_verify
            or self.disable_compression
            or bool(self.proxies)
            or self.tls_handshake_timeout != 0
            or self.dial_timeout != 0
            or self.dial_keep_alive != 0
            or bool(self.cookies)
            or self.use_cookie_jar
        )


def resolve_options(options: RequestOptions | None, kwargs: Mapping[str, Any]) -> RequestOptions:
    """Build RequestOptions from either an instance or keyword fields.

    Raises:
        TypeError: If both are given, or a keyword is not an option field.
    """
    if kwargs:
        if options is not None:
            raise TypeError("Pass either a RequestOptions or keyword options, not both")
        return RequestOptions(**kwargs)
    return options or RequestOptions()
