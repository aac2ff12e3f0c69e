"""The three caching strategies.

Each strategy answers one class of request (see :mod:`fetchcache.router`):

* :class:`CacheFirst` -- assets. A hit never touches the network.
* :class:`StaleWhileRevalidate` -- API calls. A hit is returned at once
  while a background fetch refreshes the entry for next time.
* :class:`NetworkFirstWithFallback` -- navigations. The network always
  goes first; the cached root document is the offline fallback.

All three share two rules: only a ``200`` response is ever written to the
store, and a network failure is never raised to the caller.  When nothing
cached can stand in, a synthesized ``504`` (or ``503 Offline`` for
navigations) is returned instead.

Store reads and writes run in a worker thread (:func:`asyncio.to_thread`)
so a slow disk suspends only the handler waiting on it, never the loop.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx

from fetchcache.background import BackgroundTasks
from fetchcache.cache import CacheStore, GenerationStore, request_key
from fetchcache.client.network import OriginClient
from fetchcache.client.response import replay, snapshot, synthesize
from fetchcache.exceptions import NetworkError
from fetchcache.models import CachedResponse, GenerationSet, RequestDescriptor
from fetchcache.output import get_output

CACHEABLE_STATUS = 200
OFFLINE_BODY = "Offline"


async def lookup(generation: GenerationStore, url: str) -> Optional[CachedResponse]:
    """Return the stored snapshot for ``GET url``, or ``None`` on a miss."""
    return await asyncio.to_thread(generation.get, request_key("GET", url))


async def cache_if_ok(
    generation: GenerationStore,
    request: RequestDescriptor,
    response: httpx.Response,
) -> bool:
    """Store *response* for *request* if its status is exactly 200.

    Returns:
        Whether the response was stored.
    """
    if response.status_code != CACHEABLE_STATUS:
        return False
    key = request_key(request.method, request.url)
    await asyncio.to_thread(generation.put, key, snapshot(response, request.url))
    return True


class CacheFirst:
    """Serve from the asset generation; fetch and store only on a miss."""

    def __init__(
        self, store: CacheStore, generations: GenerationSet, network: OriginClient
    ) -> None:
        self._store = store
        self._generations = generations
        self._network = network

    async def handle(self, request: RequestDescriptor) -> httpx.Response:
        output = get_output()
        generation = self._store.open(self._generations.assets)
        cached = await lookup(generation, request.url)
        if cached is not None:
            output.debug(f"Cache hit ({generation.name}): {request.url}")
            return replay(cached, request)

        try:
            response = await self._network.fetch(request)
        except NetworkError as exc:
            output.warning(f"Asset fetch failed, answering 504: {exc}")
            return synthesize(504, request)

        await cache_if_ok(generation, request, response)
        return response


class StaleWhileRevalidate:
    """Serve the API generation's entry immediately and refresh it in the background.

    Args:
        store: The cache store.
        generations: Current generation names.
        network: Origin client used for the refresh.
        tasks: Where the detached refresh fetches are spawned.
    """

    def __init__(
        self,
        store: CacheStore,
        generations: GenerationSet,
        network: OriginClient,
        tasks: BackgroundTasks,
    ) -> None:
        self._store = store
        self._generations = generations
        self._network = network
        self._tasks = tasks

    async def handle(self, request: RequestDescriptor) -> httpx.Response:
        generation = self._store.open(self._generations.api)
        cached = await lookup(generation, request.url)

        refresh = self._tasks.spawn(self._revalidate(generation, request))
        if cached is not None:
            get_output().debug(f"Serving stale ({generation.name}): {request.url}")
            return replay(cached, request)

        # shield: cancelling this handler must not cancel the refresh
        response = await asyncio.shield(refresh)
        if response is None:
            get_output().warning(f"API fetch failed, answering 504: {request.url}")
            return synthesize(504, request)
        return response

    async def _revalidate(
        self, generation: GenerationStore, request: RequestDescriptor
    ) -> Optional[httpx.Response]:
        """Fetch *request* and store a 200 answer. Returns ``None`` on network failure."""
        try:
            response = await self._network.fetch(request)
        except NetworkError as exc:
            get_output().debug(f"Revalidation failed: {exc}")
            return None
        if await cache_if_ok(generation, request, response):
            get_output().debug(f"Revalidated ({generation.name}): {request.url}")
        return response


class NetworkFirstWithFallback:
    """Fetch first; fall back to the cached root document when offline.

    Args:
        store: The cache store.
        generations: Current generation names.
        network: Origin client.
        root_path: Path of the document served while offline, resolved
            against each request's origin.
    """

    def __init__(
        self,
        store: CacheStore,
        generations: GenerationSet,
        network: OriginClient,
        root_path: str = "/",
    ) -> None:
        self._store = store
        self._generations = generations
        self._network = network
        self._root_path = root_path

    async def handle(self, request: RequestDescriptor) -> httpx.Response:
        generation = self._store.open(self._generations.assets)
        try:
            response = await self._network.fetch(request)
        except NetworkError as exc:
            return await self._offline(generation, request, exc)

        await cache_if_ok(generation, request, response)
        return response

    async def _offline(
        self, generation: GenerationStore, request: RequestDescriptor, exc: NetworkError
    ) -> httpx.Response:
        root_url = request.origin_url(self._root_path)
        cached = await lookup(generation, root_url)
        if cached is not None:
            get_output().warning(f"Navigation offline ({exc}), serving {root_url}")
            return replay(cached, request)
        get_output().warning(f"Navigation offline ({exc}), no cached {root_url}")
        return synthesize(503, request, OFFLINE_BODY)
