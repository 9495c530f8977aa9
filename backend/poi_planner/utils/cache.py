"""In-memory LRU cache with TTL expiration.

Process-level memo for knowledge-base lookups that never change during a
session (Wikipedia title -> Wikidata identifier). Negative answers are
stored too, so callers must not use it for anything that should be retried.
"""

import time
from collections import OrderedDict
from typing import Generic, Hashable, TypeVar

V = TypeVar("V")

_MISSING = object()


class LRUCache(Generic[V]):
    """TTL-aware LRU cache."""

    def __init__(self, max_size: int = 512, ttl_seconds: int = 86400) -> None:
        self._cache: OrderedDict[Hashable, tuple[float, V]] = OrderedDict()
        self._max_size = max_size
        self._ttl = ttl_seconds

    def get(self, key: Hashable, default=None):
        if key not in self._cache:
            return default
        ts, value = self._cache[key]
        if time.monotonic() - ts > self._ttl:
            del self._cache[key]
            return default
        self._cache.move_to_end(key)
        return value

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(self, key: Hashable, value: V) -> None:
        if key in self._cache:
            self._cache.move_to_end(key)
        self._cache[key] = (time.monotonic(), value)
        if len(self._cache) > self._max_size:
            self._cache.popitem(last=False)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
