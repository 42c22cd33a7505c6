# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Bounded, time-expiring store joining sent probes to received messages.

The consume loop writes an entry for every record it accepts; probes read
their own key until it shows up or their deadline passes. Entries expire a
fixed duration after their last write, and once the capacity is exceeded
the least recently written entries are evicted first.

Concurrency:
    All operations take an internal ``threading.Lock``, so one writer and
    any number of readers may share an instance without external locking,
    whether they run as coroutines on one loop or on separate threads.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable

from kafka_health_probe.models.model_cache_stats import ModelCacheStats

logger = logging.getLogger(__name__)


class CorrelationCache:
    """Expire-after-write key/value cache with a capacity bound.

    Attributes:
        maximum_size: Maximum number of resident entries
        expire_after_write: Seconds an entry stays visible after its last put

    Example:
        >>> cache = CorrelationCache(maximum_size=200, expire_after_write=2.5)
        >>> cache.put("m-1-health-check-a-10.0.0.1", "m-1")
        >>> cache.get("m-1-health-check-a-10.0.0.1")
        'm-1'
        >>> cache.get("unknown") is None
        True
    """

    def __init__(
        self,
        maximum_size: int,
        expire_after_write: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            maximum_size: Capacity bound, at least 1
            expire_after_write: Entry lifetime in seconds, greater than 0
            clock: Monotonic time source in seconds (injectable for tests)

        Raises:
            ValueError: If maximum_size or expire_after_write is out of range
        """
        if maximum_size < 1:
            raise ValueError(f"maximum_size must be at least 1, got {maximum_size}")
        if expire_after_write <= 0:
            raise ValueError(
                f"expire_after_write must be positive, got {expire_after_write}"
            )

        self._maximum_size = maximum_size
        self._expire_after_write = expire_after_write
        self._clock = clock

        # key -> (value, written_at); insertion order == write order
        self._entries: OrderedDict[str, tuple[str, float]] = OrderedDict()
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    @property
    def maximum_size(self) -> int:
        return self._maximum_size

    @property
    def expire_after_write(self) -> float:
        return self._expire_after_write

    def put(self, key: str, value: str) -> None:
        """Store or overwrite an entry and restart its expiry clock."""
        with self._lock:
            now = self._clock()
            self._entries[key] = (value, now)
            self._entries.move_to_end(key)
            self._purge_expired(now)

            while len(self._entries) > self._maximum_size:
                evicted_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(
                    "Evicted correlation entry over capacity",
                    extra={"key": evicted_key, "maximum_size": self._maximum_size},
                )

    def get(self, key: str) -> str | None:
        """Return the live value for ``key``, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, written_at = entry
            if self._clock() - written_at >= self._expire_after_write:
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None

            self._hits += 1
            return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> ModelCacheStats:
        """Snapshot the counters; expired entries are purged first."""
        with self._lock:
            self._purge_expired(self._clock())
            return ModelCacheStats(
                size=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
            )

    def _purge_expired(self, now: float) -> None:
        # REQUIRES: self._lock held. Write order means the oldest entry is first.
        while self._entries:
            oldest_key = next(iter(self._entries))
            _, written_at = self._entries[oldest_key]
            if now - written_at < self._expire_after_write:
                break
            del self._entries[oldest_key]
            self._expirations += 1

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired(self._clock())
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            entry = self._entries.get(key)
            return (
                entry is not None
                and self._clock() - entry[1] < self._expire_after_write
            )


__all__ = ["CorrelationCache"]
