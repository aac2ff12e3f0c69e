"""Fetch command -- issue one request through the caching layer.

Registers the configured version against the user cache directory (which
runs an activation cycle and purges stale generations), sends the request
through a :class:`~fetchcache.client.CachingClient`, and waits for any
background refresh before exiting so the next invocation sees it.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx
import typer

from fetchcache.models import GlobalConfig, RequestMode


def fetch_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute URL, or a path resolved against --origin."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    destination: str = typer.Option(
        "", "--destination", "-d",
        help="Declared resource type: image, script, style, font, document, ...",
    ),
    navigate: bool = typer.Option(
        False, "--navigate", help="Treat the request as a top-level navigation."
    ),
    accept: Optional[str] = typer.Option(None, "--accept", help="Accept header value."),
) -> None:
    """Fetch URL through the cache and print the response.

    The status line (including whether the answer came from the network,
    the cache, or was synthesized) goes to stderr; the body goes to stdout.

    Example::

        fetchcache --origin https://app.example.com fetch /api/posts
        fetchcache fetch https://app.example.com/logo.png -d image
        fetchcache fetch https://app.example.com/ --navigate
    """
    from fetchcache.client.response import format_api_response
    from fetchcache.config import resolve_config

    obj = ctx.obj or {}
    config = resolve_config(cli_origin=obj.get("origin"), cli_version=obj.get("cache_version"))
    headers = {"accept": accept} if accept else {}
    mode = RequestMode.NAVIGATE if navigate else RequestMode.CORS

    response = asyncio.run(
        _fetch(config, method, url, destination, headers, mode)
    )
    format_api_response(response)


async def _fetch(
    config: GlobalConfig,
    method: str,
    url: str,
    destination: str,
    headers: dict[str, str],
    mode: RequestMode,
) -> httpx.Response:
    from fetchcache.cache import CacheStore
    from fetchcache.client import CachingClient, OriginClient
    from fetchcache.config import get_cache_dir
    from fetchcache.interceptor import register
    from fetchcache.registry import Registration

    store = CacheStore(get_cache_dir())
    try:
        async with OriginClient(config.request) as network:
            registration = Registration()
            interceptor = await register(registration, store, config.cache, network)
            async with CachingClient(registration, network, origin=config.origin) as client:
                response = await client.request(
                    method, url, destination=destination, headers=headers, mode=mode,
                )
            await interceptor.drain()
            return response
    finally:
        store.close()
