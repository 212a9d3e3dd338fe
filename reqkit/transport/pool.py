"""httpx transport over an httpcore connection pool."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator

import httpcore
import httpx

# Same limits as httpx.HTTPTransport
MAX_CONNECTIONS = 100
MAX_KEEPALIVE_CONNECTIONS = 20
KEEPALIVE_EXPIRY = 5.0

_EXCEPTION_MAP: dict[type[Exception], type[httpx.TransportError]] = {
    httpcore.TimeoutException: httpx.TimeoutException,
    httpcore.ConnectTimeout: httpx.ConnectTimeout,
    httpcore.ReadTimeout: httpx.ReadTimeout,
    httpcore.WriteTimeout: httpx.WriteTimeout,
    httpcore.PoolTimeout: httpx.PoolTimeout,
    httpcore.NetworkError: httpx.NetworkError,
    httpcore.ConnectError: httpx.ConnectError,
    httpcore.ReadError: httpx.ReadError,
    httpcore.WriteError: httpx.WriteError,
    httpcore.ProxyError: httpx.ProxyError,
    httpcore.UnsupportedProtocol: httpx.UnsupportedProtocol,
    httpcore.ProtocolError: httpx.ProtocolError,
    httpcore.LocalProtocolError: httpx.LocalProtocolError,
    httpcore.RemoteProtocolError: httpx.RemoteProtocolError,
}


@contextmanager
def map_httpcore_errors() -> Iterator[None]:
    """Re-raise httpcore exceptions as the matching httpx.TransportError."""
    try:
        yield
    except Exception as e:
        for cls in type(e).__mro__:
            mapped = _EXCEPTION_MAP.get(cls)
            if mapped is not None:
                raise mapped(str(e)) from e
        raise


class _PoolResponseStream(httpx.SyncByteStream):
    def __init__(self, stream: Iterable[bytes]):
        self._stream = stream

    def __iter__(self) -> Iterator[bytes]:
        with map_httpcore_errors():
            for part in self._stream:
                yield part

    def close(self) -> None:
        if hasattr(self._stream, "close"):
            self._stream.close()


class PoolTransport(httpx.BaseTransport):
    """Send httpx requests through an httpcore pool.

    Args:
        pool: ``httpcore.ConnectionPool``, ``HTTPProxy`` or ``SOCKSProxy``.
    """

    def __init__(self, pool: httpcore.ConnectionPool):
        self.pool = pool

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        req = httpcore.Request(
            method=request.method,
            url=httpcore.URL(
                scheme=request.url.raw_scheme,
                host=request.url.raw_host,
                port=request.url.port,
                target=request.url.raw_path,
            ),
            headers=request.headers.raw,
            content=request.stream,
            extensions=request.extensions,
        )
        with map_httpcore_errors():
            resp = self.pool.handle_request(req)

        return httpx.Response(
            status_code=resp.status,
            headers=resp.headers,
            stream=_PoolResponseStream(resp.stream),
            extensions=resp.extensions,
        )

    def close(self) -> None:
        self.pool.close()
