"""fetchcache -- runtime HTTP response caching for client applications.

This package sits between an application and its origin server.  Every
outbound request is classified and answered by one of three caching
strategies, so that repeat requests are fast and the application keeps
working (in a degraded way) while the network is unavailable.

Typical usage::

    from fetchcache import CachingClient, OriginClient, Registration, register
    from fetchcache.cache import CacheStore
    from fetchcache.models import CacheConfig

    registration = Registration()
    async with OriginClient() as network:
        await register(registration, CacheStore(cache_dir), CacheConfig(version="v2"), network)
        async with CachingClient(registration, network) as client:
            response = await client.get("https://app.example.com/api/posts")

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration management.
    router: Request classification.
    strategies: Cache-first, stale-while-revalidate and network-first handlers.
    lifecycle: Install/activate cycle and generation cleanup.
    interceptor: The single event entry point.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"

from fetchcache.client import CachingClient, OriginClient  # noqa: E402
from fetchcache.interceptor import Interceptor, register  # noqa: E402
from fetchcache.registry import Registration  # noqa: E402

__all__ = [
    "CachingClient",
    "Interceptor",
    "OriginClient",
    "Registration",
    "register",
    "__version__",
]
