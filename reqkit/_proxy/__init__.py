"""Proxy routing for dedicated clients."""

from .selector import ProxyResolver, ProxySelector, environment_proxy

__all__ = [
    "ProxyResolver",
    "ProxySelector",
    "environment_proxy",
]
