"""Client selection: the shared default client or a dedicated one."""

from __future__ import annotations

import ssl

import certifi
import httpx

from ._proxy import ProxyResolver, ProxySelector, environment_proxy
from .config import DEFAULT_DIAL_TIMEOUT, RequestOptions
from .cookies import new_cookie_jar
from .transport import DialerBackend, ProxyRoutingTransport


def create_ssl_context(verify: bool = True) -> ssl.SSLContext:
    """Create the TLS context for a dedicated client.

    Args:
        verify: Whether to validate server certificates and hostnames.
    """
    if not verify:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context
    return ssl.create_default_context(cafile=certifi.where())


class ClientBuilder:
    """Decide which httpx client sends a request.

    The builder owns one default client, reused for every request whose
    options need nothing special. Options that change TLS, compression,
    proxies, timeouts or cookies get a dedicated client instead.

    Args:
        default_client: Client to reuse by default. Created lazily if None.
        proxy_resolver: Fallback proxy lookup for dedicated clients.

    Example:
        builder = ClientBuilder()
        client = builder.build(RequestOptions())         # shared default
        client = builder.build(RequestOptions(dial_timeout=5))  # dedicated
    """

    def __init__(
        self,
        default_client: httpx.Client | None = None,
        proxy_resolver: ProxyResolver = environment_proxy,
    ):
        self._default_client = default_client
        self._owns_default = default_client is None
        self._proxy_resolver = proxy_resolver

    @property
    def default_client(self) -> httpx.Client:
        """The shared client (lazy initialization)."""
        if self._default_client is None:
            self._default_client = httpx.Client(
                timeout=httpx.Timeout(None, connect=DEFAULT_DIAL_TIMEOUT),
                follow_redirects=True,
            )
        return self._default_client

    def build(self, options: RequestOptions) -> httpx.Client:
        """Return the client that should send a request with options.

        Args:
            options: Request options.

        Returns:
            ``options.http_client`` when set, the shared default client when
            no override is requested, otherwise a new dedicated client.
        """
        if options.http_client is not None:
            return options.http_client

        if not options.requires_dedicated_client():
            return self.default_client

        return self.build_dedicated(options)

    def build_dedicated(self, options: RequestOptions) -> httpx.Client:
        """Build a new client configured from options.

        Unset timeouts fall back to the defaults in ``reqkit.config``. The
        client always carries a public-suffix-aware cookie jar, empty unless
        responses set cookies.
        """
        dialer = DialerBackend(
            dial_timeout=options.dial_timeout,
            tls_handshake_timeout=options.tls_handshake_timeout,
            keep_alive=options.dial_keep_alive,
        )
        transport = ProxyRoutingTransport(
            selector=ProxySelector(dict(options.proxies or {}), self._proxy_resolver),
            ssl_context=create_ssl_context(verify=not options.insecure_skip_verify),
            dialer=dialer,
        )

        headers = {"Accept-Encoding": "identity"} if options.disable_compression else None

        return httpx.Client(
            transport=transport,
            cookies=httpx.Cookies(new_cookie_jar()),
            headers=headers,
            timeout=httpx.Timeout(None, connect=dialer.dial_timeout),
            follow_redirects=True,
            trust_env=False,
        )

    def close(self) -> None:
        """Close the default client if this builder created it."""
        if self._owns_default and self._default_client is not None:
            self._default_client.close()
            self._default_client = None


_default_builder: ClientBuilder | None = None


def default_builder() -> ClientBuilder:
    """Get the builder used when none is passed (created on first use)."""
    global _default_builder
    if _default_builder is None:
        _default_builder = ClientBuilder()
    return _default_builder


def set_default_builder(builder: ClientBuilder | None) -> ClientBuilder | None:
    """Install the builder used when none is passed.

    Call at startup to inject a caller-owned default client. Passing None
    resets to a lazily created builder.

    Returns:
        The previously installed builder, if any.
    """
    global _default_builder
    previous = _default_builder
    _default_builder = builder
    return previous
