"""
Process-wide read-through cache with TTL.

Entries expire ``ttl_seconds`` after they were loaded and are dropped on the next
read of the key or the next write to the cache. Misses (a loader that
returns None) are never cached, so a record created after a failed lookup is
visible on the next call.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TTLCache(Generic[K, V]):
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._data: dict[K, tuple[float, V]] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> V | None:
        now = self._clock()
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            loaded_at, value = entry
            if (now - loaded_at) >= self._ttl:
                del self._data[key]
                return None
            return value

    def put(self, key: K, value: V) -> None:
        now = self._clock()
        with self._lock:
            self._sweep(now)
            self._data[key] = (now, value)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        expired = [key for key, (loaded_at, _) in self._data.items() if (now - loaded_at) >= self._ttl]
        for key in expired:
            del self._data[key]
        if expired:
            logger.debug("Swept %s expired cache entries", len(expired))

    def get_or_load(self, key: K, loader: Callable[[K], V | None]) -> V | None:
        value = self.get(key)
        if value is not None:
            return value

        value = loader(key)
        if value is not None:
            self.put(key, value)
        return value

    def invalidate(self, key: K) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
        logger.debug("Directory cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
