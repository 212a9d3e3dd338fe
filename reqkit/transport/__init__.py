"""Transport layer for sending requests."""

from .base import ClientExecutor, Executor
from .dialer import DialerBackend
from .pool import PoolTransport
from .routing import ProxyRoutingTransport

__all__ = [
    "ClientExecutor",
    "DialerBackend",
    "Executor",
    "PoolTransport",
    "ProxyRoutingTransport",
]
