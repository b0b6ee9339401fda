# pricecache/cache.py
# Purpose: In-memory store of the last good price history per coin.
# Why: Serve repeat requests from memory and keep CoinGecko calls under its rate limits.
# Pitfalls: Not persistent; resets if the process restarts. No eviction.

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Sample:
    """One (timestamp, price) observation; timestamp is epoch milliseconds."""

    timestamp_ms: int
    price: float

    def as_pair(self) -> list[int | float]:
        return [self.timestamp_ms, self.price]


@dataclass(frozen=True, slots=True)
class CacheEntry:
    samples: tuple[Sample, ...]
    fetched_at_ms: int


class CacheStore:
    """
    Thread-safe map of coin id -> CacheEntry.

    Entries are immutable and swapped as a whole under the lock, so readers
    never see a half-written history. Keys are used exactly as given.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, samples: Iterable[Sample], now_ms: int) -> CacheEntry:
        entry = CacheEntry(samples=tuple(samples), fetched_at_ms=now_ms)
        with self._lock:
            self._entries[key] = entry
        return entry

    def contains_fresh(self, key: str, now_ms: int, max_age_ms: int) -> bool:
        entry = self.get(key)
        if entry is None:
            return False
        return now_ms - entry.fetched_at_ms <= max_age_ms

    def keys(self) -> list[str]:
        """Snapshot of cached keys; safe to iterate while other tasks put()."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
