"""Ergonomic HTTP request builder on top of httpx.

This package turns a verb, a URL and a single options value into a fully
formed request and sends it:

- JSON, XML, multipart file, raw file stream or form bodies
- Query parameter merging, headers, basic auth, ajax marker, cookies
- Shared default client, or a dedicated one for custom TLS, proxies,
  timeouts and cookie jars
- Sessions that keep cookies across requests

Basic usage:

    import reqkit

    resp = reqkit.get("https://example.com", params={"q": "python"})
    print(resp.status_code)

    # JSON body with basic auth
    resp = reqkit.post(
        "https://example.com/api",
        json={"name": "value"},
        auth=("alice", "secret"),
    )

    # Multipart upload with extra fields
    resp = reqkit.post(
        "https://example.com/upload",
        file=reqkit.FileUpload.from_path("report.pdf"),
        data={"note": "quarterly"},
    )

    # Dedicated client: no certificate checks, explicit proxy
    resp = reqkit.get(
        "https://self-signed.example",
        insecure_skip_verify=True,
        proxies={"https": "http://127.0.0.1:8080"},
    )

    # Cookies persist within a session
    with reqkit.Session() as s:
        s.post("https://example.com/login", data={"user": "alice"})
        s.get("https://example.com/dashboard")
"""

from ._debug import DebugInfo, DebugOutput
from ._proxy import ProxySelector, environment_proxy
from .api import delete, get, head, options, patch, post, put, request
from .assembler import assemble, build_url, perform_request
from .body import EncodedBody, encode_body, select_body_source
from .builder import ClientBuilder, default_builder, set_default_builder
from .config import (
    DEFAULT_USER_AGENT,
    VERSION,
    FileUpload,
    RequestOptions,
)
from .cookies import Cookie, PublicSuffixCookiePolicy, new_cookie_jar
from .models import (
    EncodingError,
    HTTPError,
    InvalidInputError,
    ReqkitError,
    Response,
    TransportError,
    UploadIOError,
    URLParseError,
)
from .session import Session

__version__ = VERSION

__all__ = [
    # Requests
    "request",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "head",
    "options",
    "perform_request",
    "assemble",
    "build_url",
    "Session",
    # Configuration
    "RequestOptions",
    "FileUpload",
    "Cookie",
    "DEFAULT_USER_AGENT",
    # Body encoding
    "encode_body",
    "select_body_source",
    "EncodedBody",
    # Clients
    "ClientBuilder",
    "default_builder",
    "set_default_builder",
    "PublicSuffixCookiePolicy",
    "new_cookie_jar",
    "ProxySelector",
    "environment_proxy",
    # Models
    "Response",
    # Exceptions
    "ReqkitError",
    "URLParseError",
    "EncodingError",
    "InvalidInputError",
    "UploadIOError",
    "HTTPError",
    "TransportError",
    # Debug
    "DebugInfo",
    "DebugOutput",
    # Version
    "__version__",
]
