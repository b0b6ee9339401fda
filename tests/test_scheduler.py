"""Tests for the scheduled refresh sweep."""

import asyncio

import pytest

from pricecache.config import Settings
from pricecache.scheduler import ScheduledRefresher
from pricecache.service import PriceHistoryService
from tests.fakes import CrashingFetcher, FakeClock, FakeFetcher


def make_service(data, **overrides):
    settings = Settings(scheduler_enabled=False, **overrides)
    return PriceHistoryService(FakeFetcher(data), settings=settings, clock=FakeClock())


@pytest.mark.asyncio
async def test_sweep_only_refetches_warm_allow_listed_coins():
    service = make_service({"A": [(1, 1.0)], "B": [(1, 2.0)], "C": [(1, 3.0)]})
    await service.get_history("A")
    await service.get_history("C")  # warm but not allow-listed
    service.fetcher.calls.clear()

    refreshed = await ScheduledRefresher(service, ["A", "B"], period_s=60).sweep()

    assert refreshed == ["A"]
    assert service.fetcher.calls["A"] == 1
    assert service.fetcher.calls["B"] == 0
    assert service.fetcher.calls["C"] == 0


@pytest.mark.asyncio
async def test_sweep_ignores_staleness_and_budget():
    service = make_service({"A": [(1, 1.0)]}, max_requests_per_coin=1)
    await service.refresh("A")
    assert service.budget.is_limited("A")
    service.fetcher.calls.clear()

    refresher = ScheduledRefresher(service, ["A"], period_s=60)
    await refresher.sweep()
    await refresher.sweep()

    assert service.fetcher.calls["A"] == 2
    assert service.budget.count("A") == 1


@pytest.mark.asyncio
async def test_sweep_survives_a_failing_coin():
    service = make_service({"A": [(1, 1.0)], "B": [(1, 2.0)]})
    await service.get_history("A")
    await service.get_history("B")
    service.fetcher.failing.add("A")
    service.fetcher.data["B"] = [(2, 20.0)]

    refreshed = await ScheduledRefresher(service, ["A", "B"], period_s=60).sweep()

    assert refreshed == ["A", "B"]
    assert service.store.get("A").samples[0].price == 1.0
    assert service.store.get("B").samples[0].price == 20.0


@pytest.mark.asyncio
async def test_background_loop_ticks_and_stops():
    service = make_service({"A": [(1, 1.0)]})
    await service.get_history("A")
    service.fetcher.calls.clear()

    refresher = ScheduledRefresher(service, ["A"], period_s=0.01)
    refresher.start()
    refresher.start()  # idempotent
    assert refresher.running
    await asyncio.sleep(0.1)
    await refresher.stop()

    assert not refresher.running
    assert service.fetcher.calls["A"] >= 2


@pytest.mark.asyncio
async def test_loop_keeps_running_after_a_crashing_sweep():
    service = make_service({})
    refresher = ScheduledRefresher(service, ["A"], period_s=0.01)
    sweeps = 0

    async def boom():
        nonlocal sweeps
        sweeps += 1
        raise RuntimeError("boom")

    refresher.sweep = boom
    refresher.start()
    await asyncio.sleep(0.1)
    assert refresher.running
    await refresher.stop()
    assert sweeps >= 2


@pytest.mark.asyncio
async def test_sweep_continues_after_a_crashing_fetcher():
    fetcher = CrashingFetcher({"A": [(1, 1.0)], "B": [(1, 2.0)]})
    service = PriceHistoryService(
        fetcher, settings=Settings(scheduler_enabled=False), clock=FakeClock()
    )
    await service.get_history("A")
    await service.get_history("B")
    fetcher.calls.clear()
    fetcher.crashing.add("A")

    refreshed = await ScheduledRefresher(service, ["A", "B"], period_s=60).sweep()

    assert refreshed == ["A", "B"]
    assert fetcher.calls["A"] == 1
    assert fetcher.calls["B"] == 1


@pytest.mark.asyncio
async def test_sweep_isolates_each_coin_from_service_errors():
    service = make_service({"A": [(1, 1.0)], "B": [(1, 2.0)]})
    await service.get_history("A")
    await service.get_history("B")
    original = service.force_fetch
    seen = []

    async def flaky_force_fetch(key):
        seen.append(key)
        if key == "A":
            raise RuntimeError("store exploded")
        return await original(key)

    service.force_fetch = flaky_force_fetch
    refreshed = await ScheduledRefresher(service, ["A", "B"], period_s=60).sweep()

    assert seen == ["A", "B"]
    assert refreshed == ["A", "B"]
