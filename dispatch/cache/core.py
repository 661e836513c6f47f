"""
Process-wide lookup cache and memoization helper.

Keep logic here, not in __init__.py to avoid circular imports.
"""
import functools
import logging
from typing import Any, Callable, Hashable, Optional

from dispatch.cache.lru import LRUCache
from dispatch.config import get_settings

logger = logging.getLogger(__name__)

# Singleton instance (lazy initialization)
_cache: Optional[LRUCache] = None


def get_cache() -> LRUCache:
    """
    Get singleton cache instance.

    Sized from DISPATCH_CACHE_CAPACITY on first use.
    """
    global _cache
    if _cache is None:
        _cache = LRUCache(get_settings().cache_capacity, cache_type="shared")
    return _cache


def reset_cache_for_tests() -> None:
    """Reset singleton for test isolation."""
    global _cache
    _cache = None


def memoize(
    cache: Optional[LRUCache] = None,
    key_fn: Optional[Callable[..., Hashable]] = None
) -> Callable:
    """
    Decorator memoizing a synchronous function in an LRU cache.

    None results are not cached since the cache reports misses as None.

    Args:
        cache: Cache to use (defaults to the shared singleton at call time)
        key_fn: Builds the cache key from the call arguments; defaults to
            (function name, args, sorted kwargs)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            target = cache if cache is not None else get_cache()
            if key_fn is not None:
                key = key_fn(*args, **kwargs)
            else:
                key = (func.__qualname__, args, tuple(sorted(kwargs.items())))

            cached = target.get(key)
            if cached is not None:
                return cached

            result = func(*args, **kwargs)
            if result is not None:
                target.put(key, result)
            return result

        return wrapper
    return decorator
