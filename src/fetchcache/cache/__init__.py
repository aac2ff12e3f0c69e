"""Persistent, generation-scoped response storage for fetchcache.

This package provides :class:`CacheStore`, which keeps one
:mod:`diskcache` directory per cache *generation*, and
:class:`GenerationStore`, the handle for reading and writing response
snapshots inside a single generation.

The store is consumed by the strategies in :mod:`fetchcache.strategies`
(entries) and by :class:`~fetchcache.lifecycle.LifecycleManager`
(whole-generation cleanup).
"""

from fetchcache.cache.store import CacheStore, GenerationStore, request_key

__all__ = ["CacheStore", "GenerationStore", "request_key"]
