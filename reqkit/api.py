"""Module-level request helpers.

Each helper takes either a RequestOptions or keyword arguments naming its
fields:

    import reqkit

    resp = reqkit.get("https://example.com", params={"q": "python"})
    resp = reqkit.post("https://example.com/form", data={"a": "1"})
    resp = reqkit.put(
        "https://example.com/upload/report.pdf",
        reqkit.RequestOptions(file=reqkit.FileUpload.from_path("report.pdf")),
    )
"""

from __future__ import annotations

from typing import Any

import httpx

from .assembler import perform_request
from .config import RequestOptions, resolve_options
from .models import Response


def request(
    method: str,
    url: str,
    options: RequestOptions | None = None,
    client: httpx.Client | None = None,
    **kwargs: Any,
) -> Response:
    """Make a request with the given method."""
    return perform_request(method, url, resolve_options(options, kwargs), client)


def get(url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
    """Make a GET request."""
    return request("GET", url, options, **kwargs)


def post(url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
    """Make a POST request."""
    return request("POST", url, options, **kwargs)


def put(url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
    """Make a PUT request."""
    return request("PUT", url, options, **kwargs)


def patch(url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
    """Make a PATCH request."""
    return request("PATCH", url, options, **kwargs)


def delete(url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
    """Make a DELETE request."""
    return request("DELETE", url, options, **kwargs)


def head(url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
    """Make a HEAD request."""
    return request("HEAD", url, options, **kwargs)


def options(url: str, options: RequestOptions | None = None, **kwargs: Any) -> Response:
    """Make an OPTIONS request."""
    return request("OPTIONS", url, options, **kwargs)
