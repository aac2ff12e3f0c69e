"""Install/activate cycle and generation cleanup.

:class:`LifecycleManager` moves one version of the caching layer through
``parsed -> installing -> activating -> active``.  Installing never waits
for sessions still served by the previous version; activating claims
every open session and then deletes every generation that the current
:class:`~fetchcache.models.GenerationSet` does not name.  Eviction is
therefore per generation, never per entry: bumping the version tag
invalidates everything stored under the old names in one step.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fetchcache.cache import CacheStore
from fetchcache.models import GenerationSet, LifecycleState
from fetchcache.registry import Registration

if TYPE_CHECKING:
    from fetchcache.interceptor import Interceptor

logger = logging.getLogger(__name__)


class LifecycleManager:
    """Drives one interceptor version through installation and activation.

    Args:
        store: The cache store whose generations are cleaned up.
        generations: The generation names this version keeps.
        registration: Registry whose sessions are claimed on activation.
        controller: The interceptor that takes over.
    """

    def __init__(
        self,
        store: CacheStore,
        generations: GenerationSet,
        registration: Registration,
        controller: Interceptor,
    ) -> None:
        self._store = store
        self._generations = generations
        self._registration = registration
        self._controller = controller
        self.state = LifecycleState.PARSED
        self.skip_waiting = False
        self.last_purged: list[str] = []

    def install(self) -> None:
        """Mark this version installed and ready to take over immediately.

        There is no graceful drain: requests still in flight on the previous
        version finish there, everything after activation comes here.
        """
        self.state = LifecycleState.INSTALLING
        self.skip_waiting = True
        self._registration.set_waiting(self._controller)
        logger.info("Installed %s", self._controller.version)

    def activate(self) -> list[str]:
        """Claim all sessions and purge generations outside the current set.

        Installs first if :meth:`install` has not run yet.

        Returns:
            Names of the deleted generations, sorted.

        Raises:
            StoreError: If a generation cannot be listed or deleted. The
                state is left at ``activating``.
        """
        if self.state == LifecycleState.PARSED:
            self.install()
        self.state = LifecycleState.ACTIVATING
        self._registration.claim(self._controller)

        keep = self._generations.names
        stale = sorted(self._store.list_generations() - keep)
        for name in stale:
            self._store.delete_generation(name)

        self.last_purged = stale
        self.state = LifecycleState.ACTIVE
        logger.info("Activated %s, purged %d generation(s)", self._controller.version, len(stale))
        return stale
