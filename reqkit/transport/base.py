"""Executor protocol for sending assembled requests."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx


@runtime_checkable
class Executor(Protocol):
    """Protocol defining how an assembled request is sent.

    Executors perform the network round trip and must not interpret or
    wrap transport errors.
    """

    def send(self, request: httpx.Request, client: httpx.Client) -> httpx.Response:
        """Send request with client.

        Args:
            request: Fully assembled request.
            client: Client to send it with.

        Returns:
            The response, with its body read.

        Raises:
            httpx.TransportError: On connection, DNS or TLS errors.
        """
        ...


class ClientExecutor:
    """Executor that delegates to ``httpx.Client.send``."""

    def send(self, request: httpx.Request, client: httpx.Client) -> httpx.Response:
        return client.send(request)
