"""
Capacity-bounded in-memory LRU cache.

OrderedDict keeps a hash map over a doubly-linked recency list, so get/put
refresh recency with an O(1) move_to_end instead of a scan.
"""

import logging
from collections import OrderedDict
from typing import Any, Hashable, Optional

from dispatch.observability.metrics import (
    observe_cache_eviction,
    observe_cache_hit,
    observe_cache_miss,
)

logger = logging.getLogger(__name__)


class LRUCache:
    """Simple in-memory LRU cache implementation"""

    def __init__(self, capacity: int = 100, cache_type: str = "default"):
        if capacity < 1:
            raise ValueError("LRUCache capacity must be >= 1")
        self.capacity = capacity
        self.cache_type = cache_type
        self.cache: "OrderedDict[Hashable, Any]" = OrderedDict()
        self.stats = {"hits": 0, "misses": 0, "evictions": 0}

    def get(self, key: Hashable) -> Optional[Any]:
        if key not in self.cache:
            self.stats["misses"] += 1
            observe_cache_miss(self.cache_type)
            return None
        # Move to end (most recently used)
        self.cache.move_to_end(key)
        self.stats["hits"] += 1
        observe_cache_hit(self.cache_type)
        return self.cache[key]

    def put(self, key: Hashable, value: Any) -> None:
        if key in self.cache:
            self.cache.move_to_end(key)
        self.cache[key] = value
        # put grows the cache by at most one, so one eviction suffices
        if len(self.cache) > self.capacity:
            evicted, _ = self.cache.popitem(last=False)
            self.stats["evictions"] += 1
            observe_cache_eviction(self.cache_type)
            logger.debug(f"Evicted {evicted!r} from {self.cache_type} cache")

    def delete(self, key: Hashable) -> bool:
        if key in self.cache:
            del self.cache[key]
            return True
        return False

    def clear(self) -> None:
        self.cache.clear()

    def get_size(self) -> int:
        return len(self.cache)

    def __len__(self) -> int:
        return len(self.cache)

    def __contains__(self, key: Hashable) -> bool:
        """Membership test that leaves recency untouched."""
        return key in self.cache
