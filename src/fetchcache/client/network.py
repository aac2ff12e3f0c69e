"""Asynchronous origin client -- the only place fetchcache touches the network.

:class:`OriginClient` wraps :class:`httpx.AsyncClient` and turns request
failures (:class:`httpx.RequestError`) into
:class:`~fetchcache.exceptions.NetworkError`, the one error kind the
caching strategies know how to recover from.  Responses with
error status codes are returned, never raised: a ``404`` is a successful
fetch that simply is not cacheable.

No retries are attempted and, unless configured, no timeout is applied: a
hung fetch only delays the handler waiting on it.
"""

from __future__ import annotations

from typing import Optional

import httpx

from fetchcache.exceptions import NetworkError
from fetchcache.models import RequestConfig, RequestDescriptor
from fetchcache.output import get_output


class OriginClient:
    """Async HTTP client for requests that reach the origin server.

    Must be used as an async context manager.

    Args:
        config: Client settings (timeout, SSL verification, redirects).
        transport: Optional transport override, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        async with OriginClient(RequestConfig()) as network:
            response = await network.fetch(RequestDescriptor(url=url))
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> OriginClient:
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=self._config.follow_redirects,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public
    # ------------------------------------------------------------------ #

    async def fetch(self, request: RequestDescriptor) -> httpx.Response:
        """Send *request* to the origin and read the full body.

        Returns:
            The :class:`httpx.Response`, whatever its status code.

        Raises:
            NetworkError: On connection, DNS, timeout or protocol errors, a
                redirect loop, or a body that cannot be decoded.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        try:
            return await self._client.request(
                request.method, request.url, headers=request.headers,
            )
        except httpx.RequestError as exc:
            get_output().debug(f"Network error for {request.method} {request.url}: {exc}")
            raise NetworkError(f"{request.method} {request.url} failed: {exc}") from exc
