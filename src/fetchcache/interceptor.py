"""The single entry point of the caching layer.

:class:`Interceptor` receives every event -- outbound fetches as well as
install/activate notifications -- through :meth:`Interceptor.dispatch`.
Fetches are classified by the :class:`~fetchcache.router.PolicyRouter` and
handed to the matching strategy; lifecycle events go to the
:class:`~fetchcache.lifecycle.LifecycleManager`.

:func:`register` is what an application calls once at startup: it builds
an interceptor for the configured version, installs it and activates it.
"""

from __future__ import annotations

from typing import Optional

import httpx

from fetchcache.background import BackgroundTasks
from fetchcache.cache import CacheStore
from fetchcache.client.network import OriginClient
from fetchcache.events import ActivateEvent, Event, FetchEvent, InstallEvent
from fetchcache.exceptions import InvalidUsageError
from fetchcache.lifecycle import LifecycleManager
from fetchcache.models import CacheConfig, Classification, GenerationSet, RequestDescriptor
from fetchcache.output import get_output
from fetchcache.registry import Registration
from fetchcache.router import PolicyRouter
from fetchcache.strategies import CacheFirst, NetworkFirstWithFallback, StaleWhileRevalidate


class Interceptor:
    """Classifies fetches and dispatches them to a caching strategy.

    Args:
        store: Persistent cache store shared by all strategies.
        generations: Generation names owned by this version.
        network: Origin client used by the strategies.
        registration: Registry this interceptor claims on activation.
        api_prefix: Path prefix routed to stale-while-revalidate.
        root_path: Document served to offline navigations.
        version: Label used in diagnostics; defaults to the API
            generation name.

    Example::

        interceptor = Interceptor(store, GenerationSet(api="a-v2", assets="s-v2"),
                                  network, registration)
        response = await interceptor.dispatch(FetchEvent(request))
        if response is None:
            response = await network.fetch(request)   # not intercepted
    """

    def __init__(
        self,
        store: CacheStore,
        generations: GenerationSet,
        network: OriginClient,
        registration: Registration,
        api_prefix: str = "/api/",
        root_path: str = "/",
        version: Optional[str] = None,
    ) -> None:
        self.store = store
        self.generations = generations
        self.network = network
        self.version = version or generations.api
        self.router = PolicyRouter(api_prefix)
        self._tasks = BackgroundTasks()
        self._cache_first = CacheFirst(store, generations, network)
        self._stale_while_revalidate = StaleWhileRevalidate(
            store, generations, network, self._tasks,
        )
        self._network_first = NetworkFirstWithFallback(store, generations, network, root_path)
        self.lifecycle = LifecycleManager(store, generations, registration, self)

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        store: CacheStore,
        network: OriginClient,
        registration: Registration,
    ) -> Interceptor:
        """Build an interceptor for the generation names derived from *config*."""
        return cls(
            store,
            GenerationSet.from_config(config),
            network,
            registration,
            api_prefix=config.api_prefix,
            root_path=config.root_path,
            version=f"{config.namespace}-{config.version}",
        )

    async def dispatch(self, event: Event) -> Optional[httpx.Response]:
        """Handle one event.

        Returns:
            For a :class:`~fetchcache.events.FetchEvent`, the response, or
            ``None`` when the request is not intercepted and should go
            straight to the network. ``None`` for lifecycle events.

        Raises:
            InvalidUsageError: For an unknown event type.
        """
        match event:
            case FetchEvent(request=request):
                return await self.handle_fetch(request)
            case InstallEvent():
                self.lifecycle.install()
                return None
            case ActivateEvent():
                self.lifecycle.activate()
                return None
        raise InvalidUsageError(f"Unknown event: {event!r}")

    async def handle_fetch(self, request: RequestDescriptor) -> Optional[httpx.Response]:
        """Classify *request* and run the matching strategy."""
        classification = self.router.classify(request)
        get_output().debug(f"{request.method} {request.url} -> {classification.value}")
        match classification:
            case Classification.API:
                return await self._stale_while_revalidate.handle(request)
            case Classification.ASSET:
                return await self._cache_first.handle(request)
            case Classification.NAVIGATION:
                return await self._network_first.handle(request)
            case Classification.UNHANDLED:
                return None

    @property
    def pending(self) -> int:
        """Number of background refreshes still running."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for all background refreshes to finish."""
        await self._tasks.drain()


async def register(
    registration: Registration,
    store: CacheStore,
    config: CacheConfig,
    network: OriginClient,
) -> Interceptor:
    """Build, install and activate the interceptor for *config*.

    When caching is disabled the interceptor is built but never installed,
    so the registration stays uncontrolled and every request goes straight
    to the network.

    Returns:
        The new interceptor.
    """
    interceptor = Interceptor.from_config(config, store, network, registration)
    if not config.enabled:
        get_output().debug("Caching disabled, requests will not be intercepted")
        return interceptor
    await interceptor.dispatch(InstallEvent())
    await interceptor.dispatch(ActivateEvent())
    return interceptor
