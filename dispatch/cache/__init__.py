"""
Cache package - re-exports only, no logic.

Use get_cache() for the shared lookup cache.
"""
from dispatch.cache.lru import LRUCache
from dispatch.cache.core import get_cache, memoize, reset_cache_for_tests

__all__ = ["LRUCache", "get_cache", "memoize", "reset_cache_for_tests"]
