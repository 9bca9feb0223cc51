"""Bounded, thread-safe memo table for rendered message text."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable, Generic, Hashable, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

DEFAULT_CAPACITY = 2000

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class RenderCache(Generic[K, V]):
    """LRU cache with a fixed entry limit.

    One lock guards the store. Builds run outside the lock, so two callers
    racing on the same key may both build; the later insert wins and the
    values are equal anyway.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"Cache capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._entries: "OrderedDict[K, V]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: K) -> Optional[V]:
        """Return a cached value and mark it recently used, or None."""

        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                LOGGER.debug("Evicted render cache entry %s", evicted)

    def get_or_build(self, key: K, build: Callable[[], V]) -> V:
        """Return the cached value for key, building and storing it on a miss."""

        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self.hits += 1
                return self._entries[key]
            self.misses += 1

        value = build()
        self.put(key, value)
        return value

    def invalidate(self, key: K) -> bool:
        """Drop one entry; returns whether it was present."""

        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_where(self, predicate: Callable[[K], bool]) -> int:
        """Drop every entry whose key satisfies predicate; returns the count."""

        with self._lock:
            doomed = [key for key in self._entries if predicate(key)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
