"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from pricecache.budget import RequestBudgetTracker
from pricecache.cache import CacheStore
from pricecache.config import Settings
from pricecache.main import create_app
from pricecache.service import PriceHistoryService
from tests.fakes import FakeClock, FakeFetcher


@pytest.fixture
def settings():
    return Settings(scheduler_enabled=False)


@pytest.fixture
def clock():
    return FakeClock(now_ms=1000)


@pytest.fixture
def fetcher():
    return FakeFetcher({"bitcoin": [(1000, 100.0), (2000, 110.0)]})


@pytest.fixture
def service(fetcher, settings, clock):
    return PriceHistoryService(
        fetcher,
        store=CacheStore(),
        budget=RequestBudgetTracker(settings.max_requests_per_coin),
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def client(service):
    """Test client wired to the fake fetcher; scheduler disabled."""
    app = create_app(service=service)
    with TestClient(app) as c:
        yield c
