from __future__ import annotations

import copy
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Optional

logger = logging.getLogger(__name__)


class CacheInterface(ABC):
    """Contract for a TTL memoization layer in front of an authoritative store."""

    @abstractmethod
    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[float] = None,
    ) -> Any:
        """Return the cached value if fresh, otherwise await loader(), store and return it."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Drop ``key``. Returns True if an entry was removed."""

    @abstractmethod
    async def keys(self) -> list[str]:
        """Keys of all unexpired entries."""


class MemoryCache(CacheInterface):
    """In-process TTL cache with a per-entry expiry and a size bound.

    - Values are deep-copied on the way in and on the way out, so callers
      mutating a returned object never change what is cached.
    - None is never cached; a loader returning None is re-run next time.
    - When full, the entry closest to expiry is evicted.
    - A loader that raises leaves the cache untouched and the error
      propagates to the caller.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 5 * 60,
        max_size: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._default_ttl = default_ttl_seconds
        self._max_size = max(1, int(max_size))
        self._clock = clock
        self._cache: dict[str, tuple[float, Any]] = {}

    def _is_fresh(self, expiry: float) -> bool:
        return self._clock() < expiry

    def get(self, key: str) -> Any:
        entry = self._cache.get(key)
        if entry is None:
            return None
        expiry, value = entry
        if not self._is_fresh(expiry):
            # Clean up expired item
            del self._cache[key]
            return None
        return copy.deepcopy(value)

    def has(self, key: str) -> bool:
        entry = self._cache.get(key)
        if entry is None:
            return False
        if not self._is_fresh(entry[0]):
            del self._cache[key]
            return False
        return True

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        if value is None:
            logger.warning(f"Attempted to cache None for key: {key}")
            return

        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        if key not in self._cache and len(self._cache) >= self._max_size:
            self._evict_oldest()
        self._cache[key] = (self._clock() + ttl, copy.deepcopy(value))

    def _evict_oldest(self) -> None:
        oldest_key = min(self._cache, key=lambda k: self._cache[k][0])
        del self._cache[oldest_key]
        logger.debug(f"Evicted cache entry {oldest_key}")

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[float] = None,
    ) -> Any:
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        logger.debug(f"Cache miss: {key}")
        value = await loader()
        self.set(key, value, ttl_seconds)
        return value

    async def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return [key for key, (expiry, _) in self._cache.items() if self._is_fresh(expiry)]

    def clear(self) -> None:
        self._cache.clear()

    def cleanup(self) -> int:
        """Remove expired entries. Returns how many were removed."""
        expired = [key for key, (expiry, _) in self._cache.items() if not self._is_fresh(expiry)]
        for key in expired:
            del self._cache[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._cache)


__all__ = ["CacheInterface", "MemoryCache"]
