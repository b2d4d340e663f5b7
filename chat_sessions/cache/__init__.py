"""Cache module - TTL memoization in front of the document store."""

from .memory_cache import CacheInterface, MemoryCache

__all__ = ['CacheInterface', 'MemoryCache']
