"""Connection establishment with separate dial and TLS handshake timeouts."""

from __future__ import annotations

import socket
import ssl
from typing import Any, Iterable

import httpcore
import httpx

from ..config import (
    DEFAULT_DIAL_KEEP_ALIVE,
    DEFAULT_DIAL_TIMEOUT,
    DEFAULT_TLS_HANDSHAKE_TIMEOUT,
)
from .pool import (
    KEEPALIVE_EXPIRY,
    MAX_CONNECTIONS,
    MAX_KEEPALIVE_CONNECTIONS,
    PoolTransport,
)

SocketOption = tuple[int, int, int]


class _HandshakeTimeoutStream(httpcore.NetworkStream):
    """Network stream whose TLS upgrades use a fixed handshake timeout."""

    def __init__(self, stream: httpcore.NetworkStream, handshake_timeout: float):
        self._stream = stream
        self._handshake_timeout = handshake_timeout

    def read(self, max_bytes: int, timeout: float | None = None) -> bytes:
        return self._stream.read(max_bytes, timeout=timeout)

    def write(self, buffer: bytes, timeout: float | None = None) -> None:
        self._stream.write(buffer, timeout=timeout)

    def close(self) -> None:
        self._stream.close()

    def start_tls(
        self,
        ssl_context: ssl.SSLContext,
        server_hostname: str | None = None,
        timeout: float | None = None,
    ) -> httpcore.NetworkStream:
        stream = self._stream.start_tls(
            ssl_context,
            server_hostname=server_hostname,
            timeout=self._handshake_timeout,
        )
        # Tunnelled TLS (HTTPS through an HTTPS proxy) upgrades again
        return _HandshakeTimeoutStream(stream, self._handshake_timeout)

    def get_extra_info(self, info: str) -> Any:
        return self._stream.get_extra_info(info)


class DialerBackend(httpcore.SyncBackend):
    """httpcore network backend applying dial and TLS handshake timeouts.

    httpx bounds the TCP connect and the TLS handshake with one ``connect``
    timeout; this backend gives each step its own limit.

    Args:
        dial_timeout: TCP connect timeout in seconds. 0 means default.
        tls_handshake_timeout: TLS handshake timeout in seconds. 0 means default.
        keep_alive: TCP keep-alive period in seconds. 0 means default.
    """

    def __init__(
        self,
        dial_timeout: float = 0.0,
        tls_handshake_timeout: float = 0.0,
        keep_alive: float = 0.0,
    ):
        self.dial_timeout = dial_timeout or DEFAULT_DIAL_TIMEOUT
        self.tls_handshake_timeout = tls_handshake_timeout or DEFAULT_TLS_HANDSHAKE_TIMEOUT
        self.keep_alive = keep_alive or DEFAULT_DIAL_KEEP_ALIVE

    @property
    def socket_options(self) -> list[SocketOption]:
        """Socket options enabling TCP keep-alive with the configured period."""
        seconds = max(1, int(self.keep_alive))
        options = [(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)]
        if hasattr(socket, "TCP_KEEPIDLE"):
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, seconds))
        elif hasattr(socket, "TCP_KEEPALIVE"):
            # macOS
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPALIVE, seconds))
        if hasattr(socket, "TCP_KEEPINTVL"):
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, seconds))
        return options

    def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,
        local_address: str | None = None,
        socket_options: Iterable[SocketOption] | None = None,
    ) -> httpcore.NetworkStream:
        stream = super().connect_tcp(
            host,
            port,
            timeout=self.dial_timeout,
            local_address=local_address,
            socket_options=socket_options,
        )
        return _HandshakeTimeoutStream(stream, self.tls_handshake_timeout)

    def create_transport(
        self,
        ssl_context: ssl.SSLContext,
        proxy: str | None = None,
    ) -> PoolTransport:
        """Create an httpx transport whose connections go through this backend.

        Args:
            ssl_context: TLS settings for origin connections.
            proxy: ``http://``, ``https://`` or ``socks5://`` proxy URL, or
                None to connect directly.
        """
        pool_options = dict(
            max_connections=MAX_CONNECTIONS,
            max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
            keepalive_expiry=KEEPALIVE_EXPIRY,
            network_backend=self,
        )
        if proxy is None:
            pool = httpcore.ConnectionPool(
                ssl_context=ssl_context,
                socket_options=self.socket_options,
                **pool_options,
            )
            return PoolTransport(pool)

        parsed = httpx.Proxy(proxy)
        proxy_url = httpcore.URL(
            scheme=parsed.url.raw_scheme,
            host=parsed.url.raw_host,
            port=parsed.url.port,
            target=parsed.url.raw_path,
        )
        if parsed.url.scheme in ("http", "https"):
            pool = httpcore.HTTPProxy(
                proxy_url=proxy_url,
                proxy_auth=parsed.raw_auth,
                proxy_headers=parsed.headers.raw,
                ssl_context=ssl_context,
                socket_options=self.socket_options,
                **pool_options,
            )
        else:
            # socks5 needs the httpcore[socks] extra
            pool = httpcore.SOCKSProxy(
                proxy_url=proxy_url,
                proxy_auth=parsed.raw_auth,
                ssl_context=ssl_context,
                **pool_options,
            )
        return PoolTransport(pool)
