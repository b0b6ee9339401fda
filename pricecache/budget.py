# pricecache/budget.py
# Purpose: Count manual refresh attempts per coin and cap them.
# Pitfalls: Counts only grow. The reset window shown in /status is advertised, not enforced.

from __future__ import annotations

import threading


class RequestBudgetTracker:
    def __init__(self, max_requests: int) -> None:
        self.max_requests = max_requests
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, key: str) -> int:
        """Bump the attempt count for key and return the new value."""
        with self._lock:
            value = self._counts.get(key, 0) + 1
            self._counts[key] = value
            return value

    def count(self, key: str) -> int:
        with self._lock:
            return self._counts.get(key, 0)

    def is_limited(self, key: str) -> bool:
        return self.count(key) >= self.max_requests

    def try_acquire(self, key: str) -> bool:
        """Reserve one attempt for key if the budget allows it; check and bump are atomic."""
        with self._lock:
            value = self._counts.get(key, 0)
            if value >= self.max_requests:
                return False
            self._counts[key] = value + 1
            return True
