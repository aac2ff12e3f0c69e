"""Explicit handler registry.

A :class:`Registration` is the one place that knows which
:class:`~fetchcache.interceptor.Interceptor` currently controls outbound
requests.  Sessions (:class:`~fetchcache.client.CachingClient`) attach to
it and look the controller up on every request, so a newly activated
version takes over open sessions the moment it claims them, without the
sessions being recreated.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from fetchcache.client.session import CachingClient
    from fetchcache.interceptor import Interceptor

logger = logging.getLogger(__name__)


class Registration:
    """Tracks the controlling and waiting interceptor and the open sessions."""

    def __init__(self) -> None:
        self.controller: Optional[Interceptor] = None
        self.waiting: Optional[Interceptor] = None
        self._sessions: set[CachingClient] = set()

    @property
    def sessions(self) -> frozenset[CachingClient]:
        return frozenset(self._sessions)

    def attach(self, session: CachingClient) -> None:
        self._sessions.add(session)

    def detach(self, session: CachingClient) -> None:
        self._sessions.discard(session)

    def set_waiting(self, interceptor: Interceptor) -> None:
        """Record *interceptor* as installed and ready to take over."""
        self.waiting = interceptor

    def claim(self, interceptor: Interceptor) -> int:
        """Make *interceptor* the controller of every session, open or future.

        Returns:
            The number of open sessions now controlled by *interceptor*.
        """
        if self.waiting is interceptor:
            self.waiting = None
        self.controller = interceptor
        logger.info("Interceptor %s claimed %d open session(s)", interceptor.version, len(self._sessions))
        return len(self._sessions)
