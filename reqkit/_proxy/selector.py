"""Per-request proxy selection."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Callable, Mapping
from urllib.request import getproxies_environment, proxy_bypass_environment

import httpx

ProxyResolver = Callable[[httpx.URL], "str | None"]


def _is_loopback(host: str) -> bool:
    if host.lower() == "localhost":
        return True
    try:
        return ipaddress.ip_address(host.strip("[]")).is_loopback
    except ValueError:
        return False


def environment_proxy(url: httpx.URL) -> str | None:
    """Resolve a proxy for url from the process environment.

    Reads ``<scheme>_proxy`` / ``all_proxy`` and honours ``no_proxy``.
    Loopback hosts are never proxied.

    Args:
        url: Request URL.

    Returns:
        Proxy URL, or None for a direct connection.
    """
    host = url.host
    if not host or _is_loopback(host):
        return None

    proxies = getproxies_environment()
    if proxy_bypass_environment(host, proxies):
        return None
    return proxies.get(url.scheme) or proxies.get("all")


@dataclass
class ProxySelector:
    """Choose the proxy for each outgoing request.

    Without a proxy map every request goes through ``resolver``. With one, a
    request whose scheme is in the map uses the mapped proxy and any other
    request falls back to ``resolver``.

    Attributes:
        proxies: Scheme to proxy URL, e.g. {"http": "http://127.0.0.1:8080"}.
        resolver: Fallback resolver, environment variables by default.
    """

    proxies: Mapping[str, str] = field(default_factory=dict)
    resolver: ProxyResolver = environment_proxy

    def select(self, url: httpx.URL) -> str | None:
        """Return the proxy URL for url, or None to connect directly."""
        if self.proxies and url.scheme in self.proxies:
            return self.proxies[url.scheme]
        return self.resolver(url)
