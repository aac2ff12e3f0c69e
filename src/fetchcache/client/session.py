"""Application-facing client that routes requests through the caching layer.

:class:`CachingClient` is what application code talks to.  It never
addresses the store, the router or generation names: it builds a
:class:`~fetchcache.models.RequestDescriptor`, offers it to whichever
interceptor currently controls its :class:`~fetchcache.registry.Registration`,
and sends it straight to the origin when no interceptor handles it.

Requests that are not intercepted (non-GET, or GETs that match no caching
class) get no offline protection: a network failure raises
:class:`~fetchcache.exceptions.NetworkError`.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urljoin, urlsplit

import httpx

from fetchcache.client.network import OriginClient
from fetchcache.events import FetchEvent
from fetchcache.exceptions import InvalidUsageError
from fetchcache.models import Destination, RequestDescriptor, RequestMode
from fetchcache.registry import Registration


class CachingClient:
    """A session whose GET requests are served through the active interceptor.

    Must be used as an async context manager; the session is attached to
    the registration for the duration of the block.

    Args:
        registration: Registry holding the controlling interceptor.
        network: Origin client for requests that are not intercepted.
        origin: Base URL for relative request URLs.

    Example::

        async with CachingClient(registration, network, origin="https://app.example.com") as client:
            posts = await client.get("/api/posts")
            logo = await client.get("/static/logo.png", destination="image")
            page = await client.navigate("/profile")
    """

    def __init__(
        self,
        registration: Registration,
        network: OriginClient,
        origin: Optional[str] = None,
    ) -> None:
        self._registration = registration
        self._network = network
        self._origin = origin

    async def __aenter__(self) -> CachingClient:
        self._registration.attach(self)
        return self

    async def __aexit__(self, *args: object) -> None:
        self._registration.detach(self)

    @property
    def controlled(self) -> bool:
        """Whether an interceptor currently controls this session."""
        return self._registration.controller is not None

    async def request(
        self,
        method: str,
        url: str,
        destination: Destination | str = Destination.EMPTY,
        headers: Optional[dict[str, str]] = None,
        mode: RequestMode | str = RequestMode.CORS,
    ) -> httpx.Response:
        """Issue a request.

        Args:
            method: HTTP method.
            url: Absolute URL, or a path resolved against ``origin``.
            destination: Declared resource type (``image``, ``script``, ...).
            headers: Request headers.
            mode: Request mode; ``navigate`` marks a top-level document load.

        Raises:
            InvalidUsageError: If *url* is relative and no origin is set, or
                *destination*/*mode* is not a known value.
            NetworkError: If a request that is not intercepted cannot reach
                the origin.
        """
        try:
            descriptor = RequestDescriptor(
                method=method,
                url=self._resolve(url),
                destination=Destination(destination),
                headers=headers or {},
                mode=RequestMode(mode),
            )
        except ValueError as exc:
            raise InvalidUsageError(str(exc)) from exc

        controller = self._registration.controller
        if controller is not None:
            response = await controller.dispatch(FetchEvent(descriptor))
            if response is not None:
                return response
        return await self._network.fetch(descriptor)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def navigate(self, url: str, **kwargs: Any) -> httpx.Response:
        """Load a top-level document (mode ``navigate``, accepting HTML)."""
        headers = {"accept": "text/html,application/xhtml+xml", **kwargs.pop("headers", {})}
        return await self.request(
            "GET", url, destination=Destination.DOCUMENT, headers=headers,
            mode=RequestMode.NAVIGATE, **kwargs,
        )

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    def _resolve(self, url: str) -> str:
        if urlsplit(url).scheme:
            return url
        if not self._origin:
            raise InvalidUsageError(f"Relative URL {url!r} needs a configured origin")
        return urljoin(self._origin, url)
