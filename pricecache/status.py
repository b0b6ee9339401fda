# pricecache/status.py
# Purpose: Read-only diagnostics over the cache store and request budget.
# Pitfalls: service_status() reads each coin independently, so a refresh landing
#           mid-report can mix pre- and post-update values across coins.

from __future__ import annotations

from collections.abc import Callable

from pricecache.budget import RequestBudgetTracker
from pricecache.cache import CacheStore
from pricecache.config import Settings
from pricecache.schemas import CacheStatus, ServiceStatus

_MS_PER_MINUTE = 60_000


class StatusReporter:
    def __init__(
        self,
        store: CacheStore,
        budget: RequestBudgetTracker,
        settings: Settings,
        clock: Callable[[], int],
    ):
        self.store = store
        self.budget = budget
        self.settings = settings
        self.clock = clock

    def cache_status(self, key: str) -> CacheStatus:
        entry = self.store.get(key)
        last_updated = entry.fetched_at_ms if entry else 0
        # never-fetched coins report their age against epoch 0
        age_minutes = (self.clock() - last_updated) // _MS_PER_MINUTE
        count = self.budget.count(key)
        return CacheStatus(
            coin_id=key,
            is_cached=entry is not None,
            data_points=len(entry.samples) if entry else 0,
            last_updated=last_updated,
            cache_age_minutes=age_minutes,
            request_count=count,
            max_requests=self.budget.max_requests,
            is_rate_limited=count >= self.budget.max_requests,
            cache_duration_minutes=self.settings.cache_duration_min,
        )

    def service_status(self) -> ServiceStatus:
        coins = {key: self.cache_status(key) for key in self.store.keys()}
        return ServiceStatus(
            total_cached_coins=len(coins),
            cache_duration_minutes=self.settings.cache_duration_min,
            max_requests_per_coin=self.budget.max_requests,
            rate_limit_reset_hours=self.settings.rate_limit_reset_hours,
            refresh_period_minutes=self.settings.refresh_period_min,
            popular_coins=list(self.settings.popular_coins),
            coins=coins,
        )
