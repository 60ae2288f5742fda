"""Explicit expiring cache for slow-changing collaborator data.

The cache is an object handed to the collaborator that uses it, with an
injectable clock, instead of module-level state. Tests drive expiry by
passing a fake clock.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from stall_sync.sources.base import MediaCatalogProvider
from stall_sync.sources.schemas import MediaRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Entry(Generic[T]):
    value: T
    expires_at: float


class ExpiringCache(Generic[T]):
    """Key/value cache whose entries expire `ttl_seconds` after being set."""

    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry[T]] = {}

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: T) -> None:
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + self._ttl)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value, calling `loader` on a miss.

        Loader exceptions propagate and nothing is cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        self.set(key, value)
        return value


class CachedMediaCatalog:
    """Wraps a MediaCatalogProvider so repeated runs reuse a recent catalog."""

    def __init__(self, provider: MediaCatalogProvider, cache: ExpiringCache[list[MediaRecord]]) -> None:
        self._provider = provider
        self._cache = cache
        self.name = provider.name

    async def fetch_catalog(self) -> list[MediaRecord]:
        if self._cache.get(self.name) is None:
            logger.debug("Media catalog cache miss, loading from %s", self._provider.name)
        return await self._cache.get_or_load(self.name, self._provider.fetch_catalog)
