"""Shared test fixtures and configuration."""

import io
from typing import Generator

import httpx
import pytest

from reqkit import ClientBuilder, RequestOptions


class RecordingHandler:
    """httpx.MockTransport handler that records every request it receives."""

    def __init__(self, response_factory=None):
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []
        self._response_factory = response_factory

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(request.read())
        self.requests.append(request)
        if self._response_factory is not None:
            return self._response_factory(request)
        return httpx.Response(200, content=b"OK")

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


class TrackingStream(io.BytesIO):
    """BytesIO that counts close() calls."""

    def __init__(self, data: bytes = b""):
        super().__init__(data)
        self.close_count = 0

    def close(self) -> None:
        self.close_count += 1
        super().close()


class FailingStream(TrackingStream):
    """Stream whose reads fail after construction."""

    def read(self, *args):
        raise OSError("disk on fire")


# ============== Client Fixtures ==============

@pytest.fixture
def handler() -> RecordingHandler:
    """Recording handler returning 200 OK."""
    return RecordingHandler()


@pytest.fixture
def mock_client(handler: RecordingHandler) -> Generator[httpx.Client, None, None]:
    """Client that never touches the network."""
    client = httpx.Client(
        transport=httpx.MockTransport(handler),
        follow_redirects=True,
        trust_env=False,
    )
    yield client
    client.close()


@pytest.fixture
def builder(mock_client: httpx.Client) -> Generator[ClientBuilder, None, None]:
    """Builder whose default client is the mock client."""
    builder = ClientBuilder(default_client=mock_client)
    yield builder
    builder.close()


# ============== Options Fixtures ==============

@pytest.fixture
def default_options() -> RequestOptions:
    """Options with every field at its zero value."""
    return RequestOptions()


@pytest.fixture
def ten_byte_stream() -> TrackingStream:
    """Ten-byte upload stream."""
    return TrackingStream(b"0123456789")
