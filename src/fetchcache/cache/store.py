"""Disk-based response storage split into named generations.

Uses :mod:`diskcache` to persist response snapshots on the filesystem.
Each generation is an independent :class:`diskcache.Cache` directory under
``<root>/generations/<name>/``, so dropping a generation is a single
directory removal and listing generations is a directory scan.

Entries never expire and are never evicted one by one: a snapshot lives
until a later write for the same request replaces it, or until its whole
generation is deleted.

Cache keys are SHA-256 hashes of ``METHOD|URL`` (see :func:`request_key`).
"""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
import sqlite3
from pathlib import Path
from typing import Any, Iterator, Optional

import diskcache

from fetchcache.exceptions import StoreError
from fetchcache.models import CachedResponse

logger = logging.getLogger(__name__)

_GENERATIONS_DIR = "generations"
_VALID_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

# diskcache surfaces SQLite and filesystem failures unchanged
_STORE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


def request_key(method: str, url: str) -> str:
    """Return the canonical identity of a request.

    Lookups are exact: two URLs that differ only in query order or a
    trailing slash are different keys.
    """
    raw = f"{method.upper()}|{url}"
    return hashlib.sha256(raw.encode()).hexdigest()


class GenerationStore:
    """Read/write handle for the entries of one generation.

    Obtained from :meth:`CacheStore.open`; do not construct directly.

    Args:
        name: Generation name.
        cache: The open :class:`diskcache.Cache` backing this generation.
    """

    def __init__(self, name: str, cache: diskcache.Cache) -> None:
        self.name = name
        self._cache = cache

    def get(self, key: str) -> Optional[CachedResponse]:
        """Look up a snapshot by request identity.

        Returns:
            The stored :class:`~fetchcache.models.CachedResponse`, or
            ``None`` on a miss.

        Raises:
            StoreError: If the generation cannot be read.
        """
        try:
            data = self._cache.get(key)
        except _STORE_ERRORS as exc:
            raise StoreError(f"Cannot read from generation '{self.name}': {exc}") from exc
        if data is None:
            return None
        return CachedResponse.model_validate(data)

    def put(self, key: str, response: CachedResponse) -> None:
        """Store a snapshot, replacing any prior entry for *key*.

        The store accepts any status code; keeping non-200 responses out is
        the caller's job.

        Raises:
            StoreError: If the generation cannot be written.
        """
        try:
            self._cache.set(key, response.model_dump())
        except _STORE_ERRORS as exc:
            raise StoreError(f"Cannot write to generation '{self.name}': {exc}") from exc

    def keys(self) -> list[str]:
        """Return the URLs of all stored snapshots, sorted."""
        urls = []
        for key in self._iter_keys():
            data: Any = self._cache.get(key)
            if data is not None:
                urls.append(data["url"])
        return sorted(urls)

    def _iter_keys(self) -> Iterator[str]:
        try:
            yield from self._cache.iterkeys()
        except _STORE_ERRORS as exc:
            raise StoreError(f"Cannot list generation '{self.name}': {exc}") from exc

    def __len__(self) -> int:
        return len(self._cache)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`."""
        self._cache.close()


class CacheStore:
    """A set of named, independently persisted cache generations.

    Args:
        root: Directory holding the ``generations/`` subdirectory.
            Usually :func:`~fetchcache.config.get_cache_dir`.

    Example::

        store = CacheStore(get_cache_dir())
        assets = store.open("snapgram-assets-v1")
        assets.put(request_key("GET", url), snapshot)
        store.list_generations()   # {"snapgram-assets-v1"}
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root) / _GENERATIONS_DIR
        self._open: dict[str, GenerationStore] = {}

    @property
    def root(self) -> Path:
        return self._root

    def open(self, name: str) -> GenerationStore:
        """Return the store for generation *name*, creating it if absent.

        Handles are memoised, so repeated calls return the same object.

        Raises:
            StoreError: If *name* is not a valid generation name or the
                directory cannot be created.
        """
        handle = self._open.get(name)
        if handle is not None:
            return handle
        if not _VALID_NAME.match(name):
            raise StoreError(f"Invalid generation name: {name!r}")
        try:
            cache = diskcache.Cache(str(self._root / name))
        except _STORE_ERRORS as exc:
            raise StoreError(f"Cannot open generation '{name}': {exc}") from exc
        handle = GenerationStore(name, cache)
        self._open[name] = handle
        return handle

    def list_generations(self) -> set[str]:
        """Return every persisted generation, including stale ones."""
        if not self._root.is_dir():
            return set()
        try:
            return {p.name for p in self._root.iterdir() if p.is_dir()}
        except OSError as exc:
            raise StoreError(f"Cannot list generations in {self._root}: {exc}") from exc

    def delete_generation(self, name: str) -> None:
        """Irreversibly remove generation *name* and all of its entries.

        Deleting a generation that does not exist is a no-op.

        Raises:
            StoreError: If the directory cannot be removed.
        """
        handle = self._open.pop(name, None)
        if handle is not None:
            handle.close()
        path = self._root / name
        if not path.is_dir():
            return
        try:
            shutil.rmtree(path)
        except OSError as exc:
            raise StoreError(f"Cannot delete generation '{name}': {exc}") from exc
        logger.info("Deleted cache generation %s", name)

    def stats(self) -> dict[str, int]:
        """Return the entry count of every persisted generation."""
        return {name: len(self.open(name)) for name in sorted(self.list_generations())}

    def close(self) -> None:
        """Close every open generation handle."""
        for handle in self._open.values():
            handle.close()
        self._open.clear()
