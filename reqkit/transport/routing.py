"""httpx transport choosing a proxy for every request."""

from __future__ import annotations

import ssl
from typing import Callable

import httpx

from .._proxy import ProxySelector
from .dialer import DialerBackend

TransportFactory = Callable[["str | None"], httpx.BaseTransport]


class ProxyRoutingTransport(httpx.BaseTransport):
    """Route each request through the proxy its URL resolves to.

    One underlying transport (and connection pool) is kept per distinct
    proxy, plus one for direct connections.

    Args:
        selector: Decides the proxy for each request URL.
        ssl_context: TLS settings shared by every underlying transport.
        dialer: Connection backend with dial/handshake/keep-alive settings.
        factory: Builds the transport for a proxy URL (None = direct).
            Defaults to ``dialer.create_transport``.
    """

    def __init__(
        self,
        selector: ProxySelector,
        ssl_context: ssl.SSLContext,
        dialer: DialerBackend | None = None,
        factory: TransportFactory | None = None,
    ):
        self.selector = selector
        self.ssl_context = ssl_context
        self.dialer = dialer or DialerBackend()
        self._factory = factory or self._create_transport
        self._transports: dict[str | None, httpx.BaseTransport] = {}

    def _create_transport(self, proxy: str | None) -> httpx.BaseTransport:
        return self.dialer.create_transport(self.ssl_context, proxy=proxy)

    def transport_for(self, proxy: str | None) -> httpx.BaseTransport:
        """Get or create the transport used for proxy."""
        transport = self._transports.get(proxy)
        if transport is None:
            transport = self._transports.setdefault(proxy, self._factory(proxy))
        return transport

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        proxy = self.selector.select(request.url)
        return self.transport_for(proxy).handle_request(request)

    def close(self) -> None:
        for transport in self._transports.values():
            transport.close()
        self._transports.clear()
