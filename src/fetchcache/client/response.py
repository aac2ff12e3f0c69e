"""Conversions between :class:`httpx.Response` and stored snapshots.

Also bridges responses to the output system for the CLI:
:func:`format_api_response` writes the status line to stderr and the body
to stdout.

Every response built here carries its origin in
``response.extensions["fetchcache"]`` (``"hit"`` or ``"synthesized"``);
responses straight from the network have no such key.

See Also:
    :mod:`fetchcache.output` -- the output manager that renders data.
"""

from __future__ import annotations

from typing import Any

import httpx

from fetchcache.models import CachedResponse, RequestDescriptor
from fetchcache.output import get_output

SOURCE_EXTENSION = "fetchcache"

_TEXTUAL_TYPES = ("xml", "javascript", "ecmascript")


def snapshot(response: httpx.Response, url: str) -> CachedResponse:
    """Capture *response* as an immutable snapshot stored for *url*.

    The body must already have been read (``httpx.AsyncClient.request``
    does this).
    """
    return CachedResponse(
        url=url,
        status_code=response.status_code,
        headers=response.headers.multi_items(),
        body=response.content,
    )


def replay(cached: CachedResponse, request: RequestDescriptor) -> httpx.Response:
    """Rebuild an :class:`httpx.Response` from a stored snapshot.

    The body and the header list are replayed as stored, in order and with
    repeats. ``content-encoding`` and ``content-length`` are dropped
    because the stored body is already decoded.
    """
    headers = [
        (k, v)
        for k, v in cached.headers
        if k.lower() not in ("content-encoding", "content-length")
    ]
    return httpx.Response(
        status_code=cached.status_code,
        headers=headers,
        content=cached.body,
        request=httpx.Request(request.method, request.url),
        extensions={SOURCE_EXTENSION: "hit"},
    )


def synthesize(
    status_code: int, request: RequestDescriptor, text: str | None = None
) -> httpx.Response:
    """Build a response that stands in for an answer the origin never gave.

    Args:
        status_code: ``504`` for a failed fetch, ``503`` for an offline
            navigation.
        request: The request being answered.
        text: Optional plain-text body; the body is empty otherwise.
    """
    headers = {}
    if text is not None:
        headers["content-type"] = "text/plain; charset=utf-8"
    return httpx.Response(
        status_code=status_code,
        headers=headers,
        content=text.encode() if text is not None else b"",
        request=httpx.Request(request.method, request.url),
        extensions={SOURCE_EXTENSION: "synthesized"},
    )


def response_source(response: httpx.Response) -> str:
    """Return ``hit``, ``synthesized`` or ``network``."""
    return response.extensions.get(SOURCE_EXTENSION, "network")


def format_api_response(response: httpx.Response) -> None:
    """Print a response using the global output system.

    Writes the status line (e.g. ``HTTP 200 OK (source: hit)``) to stderr
    and the decoded body to stdout. Binary bodies are summarised on stderr
    instead of being written to the terminal.
    """
    output = get_output()
    output.info(
        f"HTTP {response.status_code} {response.reason_phrase or ''} "
        f"(source: {response_source(response)})"
    )

    content_type = response.headers.get("content-type", "application/octet-stream")
    data = extract_response_data(response)
    if isinstance(data, bytes):
        output.info(f"<{len(data)} bytes of {content_type}>")
    elif data is not None:
        output.format_response(data, content_type)


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Returns:
        Decoded JSON for JSON responses, text for textual responses, raw
        ``bytes`` for anything else, or ``None`` for an empty body.
    """
    if not response.content:
        return None

    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    if not content_type or content_type.startswith("text/"):
        return response.text
    if any(kind in content_type for kind in _TEXTUAL_TYPES):
        return response.text
    return response.content
