# pricecache/scheduler.py
# Purpose: Periodically re-fetch popular coins that some client already asked for.
# Pitfalls: Ignores both staleness and request budget; every tick re-fetches every
#           warm allow-listed coin. Cold coins are never fetched here.

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from pricecache.observability import SCHEDULED_REFRESHES
from pricecache.service import PriceHistoryService

logger = logging.getLogger(__name__)


class ScheduledRefresher:
    def __init__(
        self,
        service: PriceHistoryService,
        allow_list: Iterable[str],
        period_s: float,
    ):
        self.service = service
        self.allow_list = tuple(allow_list)
        self.period_s = period_s
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> list[str]:
        """Re-fetch every allow-listed coin that is already cached. Returns those coins."""
        logger.info("scheduled cache refresh (every %.0fs)", self.period_s)
        refreshed: list[str] = []
        for key in self.allow_list:
            if key not in self.service.store:
                continue
            logger.info("refreshing popular coin %s", key)
            try:
                ok = await self.service.force_fetch(key)
            except Exception:
                # one coin must not cost the rest of the sweep
                logger.exception("scheduled refresh crashed for %s", key)
                ok = False
            SCHEDULED_REFRESHES.inc()
            refreshed.append(key)
            if not ok:
                logger.warning("scheduled refresh failed for %s, keeping previous data", key)
        return refreshed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.period_s)
            try:
                await self.sweep()
            except Exception:
                # keep the timer alive; the next tick retries
                logger.exception("scheduled refresh sweep crashed")

    def start(self) -> None:
        """Start the background loop on the running event loop. Idempotent."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="pricecache-scheduled-refresh"
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
