"""
Price history service: the read/refresh surface over the cache.

Policy:
  - get_history(): serve from cache while fresh; otherwise fetch first, then
    serve whatever the cache holds (possibly stale, possibly empty).
  - refresh(): manual refresh, gated by the per-coin request budget.
  - force_fetch(): bypasses both staleness and budget (diagnostics, scheduler).

Upstream failures are absorbed at fetch_and_cache(); nothing on the read path
raises because CoinGecko is down. Callers that need to see failures use the
status surface instead.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from pricecache.budget import RequestBudgetTracker
from pricecache.cache import CacheStore, Sample
from pricecache.config import Settings
from pricecache.data_client import Fetcher
from pricecache.errors import FetchError
from pricecache.observability import (
    CACHE_LOOKUPS,
    REFRESH_SKIPPED,
    UPSTREAM_FETCHES,
    UPSTREAM_LATENCY,
)
from pricecache.schemas import CacheStatus, ServiceStatus
from pricecache.status import StatusReporter

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class PriceHistoryService:
    def __init__(
        self,
        fetcher: Fetcher,
        store: CacheStore | None = None,
        budget: RequestBudgetTracker | None = None,
        settings: Settings | None = None,
        clock: Callable[[], int] = wall_clock_ms,
    ):
        self.settings = settings or Settings()
        self.fetcher = fetcher
        self.store = store if store is not None else CacheStore()
        self.budget = (
            budget
            if budget is not None
            else RequestBudgetTracker(self.settings.max_requests_per_coin)
        )
        self.clock = clock
        self.reporter = StatusReporter(self.store, self.budget, self.settings, clock)
        # only used when settings.coalesce_fetches is on
        self._inflight: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # fetch boundary
    # ------------------------------------------------------------------
    async def fetch_and_cache(self, key: str) -> bool:
        """Fetch key from upstream and replace its entry. Returns False on failure."""
        start = time.perf_counter()
        try:
            samples = await asyncio.wait_for(
                self.fetcher.fetch(key), timeout=self.settings.fetch_timeout_s
            )
        except FetchError as e:
            UPSTREAM_FETCHES.labels(outcome="failure").inc()
            logger.warning("failed to fetch price history for %s: %s", key, e.reason)
            return False
        except TimeoutError:
            UPSTREAM_FETCHES.labels(outcome="failure").inc()
            logger.warning(
                "fetch for %s timed out after %.1fs", key, self.settings.fetch_timeout_s
            )
            return False
        except Exception:
            # pluggable fetchers may raise anything; the read path must not
            UPSTREAM_FETCHES.labels(outcome="failure").inc()
            logger.exception("unexpected error fetching price history for %s", key)
            return False
        finally:
            UPSTREAM_LATENCY.observe(time.perf_counter() - start)

        entry = self.store.put(key, samples, self.clock())
        UPSTREAM_FETCHES.labels(outcome="success").inc()
        logger.info("cached %d price points for %s", len(entry.samples), key)
        return True

    def _is_fresh(self, key: str) -> bool:
        return self.store.contains_fresh(key, self.clock(), self.settings.cache_duration_ms)

    async def _fetch_if_stale(self, key: str) -> None:
        if not self.settings.coalesce_fetches:
            await self.fetch_and_cache(key)
            return
        lock = self._inflight.setdefault(key, asyncio.Lock())
        async with lock:
            # another reader may have refilled the entry while we waited
            if not self._is_fresh(key):
                await self.fetch_and_cache(key)

    # ------------------------------------------------------------------
    # read surface
    # ------------------------------------------------------------------
    async def get_history(self, key: str) -> list[Sample]:
        """Return cached samples for key, fetching first if absent or stale."""
        if self._is_fresh(key):
            CACHE_LOOKUPS.labels(result="hit").inc()
            logger.debug("cache hit for %s", key)
        else:
            CACHE_LOOKUPS.labels(result="miss").inc()
            logger.info("cache miss or expired for %s, fetching", key)
            await self._fetch_if_stale(key)

        entry = self.store.get(key)
        if entry is None:
            logger.warning("no price history available for %s", key)
            return []
        return list(entry.samples)

    async def refresh(self, key: str) -> bool:
        """Manual refresh. Returns False if skipped because the budget is spent."""
        if not self.budget.try_acquire(key):
            REFRESH_SKIPPED.inc()
            logger.warning(
                "cannot refresh %s: request budget reached (%d)", key, self.budget.max_requests
            )
            return False
        logger.info("manually refreshing price history for %s", key)
        await self.fetch_and_cache(key)
        return True

    async def force_fetch(self, key: str) -> bool:
        return await self.fetch_and_cache(key)

    def get_cache_status(self, key: str) -> CacheStatus:
        return self.reporter.cache_status(key)

    def get_service_status(self) -> ServiceStatus:
        return self.reporter.service_status()
