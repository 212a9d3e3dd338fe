"""Cookie records and the public-suffix-aware cookie jar."""

from __future__ import annotations

from dataclasses import dataclass
from http.cookiejar import CookieJar, DefaultCookiePolicy, request_host
from typing import Callable, Iterable

import httpx
import tldextract


@dataclass
class Cookie:
    """Cookie representation.

    Attributes:
        name: Cookie name.
        value: Cookie value.
        domain: Cookie domain.
        path: Cookie path.
        expires: Expiration timestamp (None for session cookie).
        secure: Whether cookie requires HTTPS.
        http_only: Whether cookie is HTTP-only.
    """

    name: str
    value: str
    domain: str = ""
    path: str = "/"
    expires: float | None = None
    secure: bool = False
    http_only: bool = False

    def header_value(self) -> str:
        """Render the ``name=value`` pair sent in a Cookie header."""
        value = self.value.replace('"', "").replace(";", "")
        if " " in value or "," in value:
            value = f'"{value}"'
        return f"{self.name}={value}"


def add_cookie_header(headers: httpx.Headers, cookies: Iterable[Cookie] | None) -> None:
    """Append cookies to the Cookie header, after any already present."""
    pairs = [cookie.header_value() for cookie in cookies or ()]
    if not pairs:
        return
    existing = headers.get("Cookie")
    if existing:
        pairs.insert(0, existing)
    headers["Cookie"] = "; ".join(pairs)


_extractor: tldextract.TLDExtract | None = None


def _default_extractor() -> tldextract.TLDExtract:
    """Offline extractor backed by tldextract's bundled suffix list."""
    global _extractor
    if _extractor is None:
        _extractor = tldextract.TLDExtract(
            cache_dir=None,
            suffix_list_urls=(),
            include_psl_private_domains=True,
        )
    return _extractor


class PublicSuffixCookiePolicy(DefaultCookiePolicy):
    """Cookie policy that refuses cookies scoped to a public suffix.

    A response from ``alice.github.io`` may not set a cookie for
    ``github.io``, which would leak it to every other site under that suffix.
    A host that is itself a public suffix may still set host cookies.
    """

    def __init__(
        self,
        extractor: Callable[[str], tldextract.tldextract.ExtractResult] | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._extract = extractor or _default_extractor()

    def is_public_suffix(self, domain: str) -> bool:
        """Check if domain is a public suffix such as ``co.uk``."""
        domain = domain.lstrip(".").lower()
        if not domain:
            return False
        result = self._extract(domain)
        return not result.domain and bool(result.suffix)

    def set_ok_domain(self, cookie, request) -> bool:
        if cookie.domain_specified and self.is_public_suffix(cookie.domain):
            if cookie.domain.lstrip(".").lower() != request_host(request):
                return False
        return super().set_ok_domain(cookie, request)


def new_cookie_jar() -> CookieJar:
    """Create an empty cookie jar using PublicSuffixCookiePolicy."""
    return CookieJar(policy=PublicSuffixCookiePolicy())
