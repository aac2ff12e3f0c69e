"""Typed events accepted by :meth:`~fetchcache.interceptor.Interceptor.dispatch`."""

from __future__ import annotations

from dataclasses import dataclass

from fetchcache.models import RequestDescriptor


@dataclass(frozen=True)
class FetchEvent:
    """An outbound request waiting for a response."""

    request: RequestDescriptor


@dataclass(frozen=True)
class InstallEvent:
    """A new version has been deployed and should prepare to take over."""


@dataclass(frozen=True)
class ActivateEvent:
    """The installed version should take control and clean up old generations."""


Event = FetchEvent | InstallEvent | ActivateEvent
