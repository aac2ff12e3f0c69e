"""HTTP client module for fetchcache.

Classes:
    :class:`OriginClient` -- async client for the origin server, backed by
        :class:`httpx.AsyncClient`. Raises
        :class:`~fetchcache.exceptions.NetworkError` on transport failures.
    :class:`CachingClient` -- application-facing session that offers each
        request to the active interceptor before falling back to the
        origin client.

Both are async context managers.
"""

from fetchcache.client.network import OriginClient
from fetchcache.client.session import CachingClient

__all__ = ["OriginClient", "CachingClient"]
