"""Debug/verbose mode for request assembly and execution."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Mapping, TextIO

_MASKED_HEADERS = {"authorization", "proxy-authorization"}


@dataclass
class DebugInfo:
    """Debug information for a request/response cycle.

    Captures how the request was assembled (client choice, body kind,
    headers, cookies, proxies) and what came back.
    """

    # Request info
    timestamp: datetime
    method: str
    url: str

    # Assembly info
    client_kind: str = "default"  # "default", "dedicated" or "supplied"
    body_kind: str = "none"

    # Request details
    request_headers: dict[str, str] = field(default_factory=dict)
    cookies_sent: str | None = None
    proxies: dict[str, str] = field(default_factory=dict)

    # Response details (populated after request)
    final_url: str | None = None
    status_code: int | None = None
    response_headers: dict[str, str] = field(default_factory=dict)
    content_length: int = 0
    elapsed: float = 0.0

    # Error info
    error: str | None = None


class DebugOutput:
    """Handles verbose output formatting and dispatch."""

    def __init__(
        self,
        enabled: bool = False,
        output: TextIO | None = None,
        callback: Callable[[DebugInfo], None] | None = None,
    ):
        """Initialize debug output handler.

        Args:
            enabled: Whether verbose output is enabled.
            output: Output stream (defaults to stderr).
            callback: Optional callback for programmatic capture.
        """
        self.enabled = enabled
        self.output = output or sys.stderr
        self.callback = callback

    def log_request(self, info: DebugInfo) -> None:
        """Log debug info for a request/response cycle."""
        if not self.enabled:
            return

        if self.callback:
            self.callback(info)

        self._print_formatted(info)

    def _print_formatted(self, info: DebugInfo) -> None:
        out = self.output
        sep = "=" * 80

        out.write(f"\n{sep}\n")
        out.write(f"[{info.timestamp.strftime('%Y-%m-%d %H:%M:%S')}] ")
        out.write(f"{info.method} {info.url}\n")
        out.write(f"{sep}\n")
        out.write(f"Client: {info.client_kind} | Body: {info.body_kind}\n")

        if info.request_headers:
            out.write("\n> Request Headers:\n")
            for header, value in mask_headers(info.request_headers).items():
                if len(value) > 80:
                    value = value[:77] + "..."
                out.write(f"  {header}: {value}\n")

        if info.cookies_sent:
            cookies_str = info.cookies_sent
            if len(cookies_str) > 100:
                cookies_str = cookies_str[:97] + "..."
            out.write(f"\n> Cookies Sent: {cookies_str}\n")

        for scheme, proxy in info.proxies.items():
            out.write(f"> Proxy ({scheme}): {mask_proxy_password(proxy)}\n")

        out.write("\n" + "-" * 80 + "\n")

        if info.error:
            out.write(f"< ERROR: {info.error}\n")
        elif info.status_code is not None:
            out.write(f"< HTTP {info.status_code}")
            if info.elapsed:
                out.write(f"  [{info.elapsed:.3f}s]")
            out.write("\n")

            if info.final_url and info.final_url != info.url:
                out.write(f"< Redirected to: {info.final_url}\n")

            if info.response_headers:
                out.write("\n< Response Headers:\n")
                for header, value in info.response_headers.items():
                    if len(value) > 80:
                        value = value[:77] + "..."
                    out.write(f"  {header}: {value}\n")

            if info.content_length:
                out.write(f"\n< Content Length: {info.content_length:,} bytes\n")

        out.write(f"{sep}\n")
        out.flush()


def mask_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Hide credentials in Authorization-style headers, keeping the scheme."""
    masked = {}
    for name, value in headers.items():
        if name.lower() in _MASKED_HEADERS:
            scheme, _, _ = value.partition(" ")
            value = f"{scheme} ****" if scheme != value else "****"
        masked[name] = value
    return masked


def mask_proxy_password(proxy_url: str) -> str:
    """Mask password in proxy URL for display.

    Args:
        proxy_url: Proxy URL that may contain credentials.

    Returns:
        URL with password masked.
    """
    if "@" not in proxy_url:
        return proxy_url

    if "://" in proxy_url:
        protocol, rest = proxy_url.split("://", 1)
    else:
        protocol, rest = "", proxy_url

    creds, host = rest.rsplit("@", 1)
    if ":" in creds:
        user, _ = creds.split(":", 1)
        creds = f"{user}:****"
    rest = f"{creds}@{host}"

    if protocol:
        return f"{protocol}://{rest}"
    return rest
