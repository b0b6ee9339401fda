"""Tests for environment-driven settings."""

import pytest

from pricecache.config import Settings


def test_defaults_match_reference_policy(monkeypatch):
    for name in ("PC_CACHE_DURATION_MIN", "PC_MAX_REQUESTS_PER_COIN", "PC_POPULAR_COINS"):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert s.cache_duration_min == 30
    assert s.cache_duration_ms == 30 * 60 * 1000
    assert s.max_requests_per_coin == 50
    assert s.rate_limit_reset_hours == 24
    assert s.refresh_period_s == 1800.0
    assert s.popular_coins == ("bitcoin", "ethereum", "ripple", "cardano", "solana")
    assert s.coalesce_fetches is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PC_CACHE_DURATION_MIN", "5")
    monkeypatch.setenv("PC_MAX_REQUESTS_PER_COIN", "3")
    monkeypatch.setenv("PC_POPULAR_COINS", "bitcoin, dogecoin ,")
    monkeypatch.setenv("PC_FETCH_TIMEOUT_SEC", "2.5")
    monkeypatch.setenv("PC_COALESCE_FETCHES", "true")
    monkeypatch.setenv("PC_SCHEDULER_ENABLED", "0")
    monkeypatch.setenv("PC_COINGECKO_API_KEY", "k")

    s = Settings.from_env()
    assert s.cache_duration_ms == 5 * 60 * 1000
    assert s.max_requests_per_coin == 3
    assert s.popular_coins == ("bitcoin", "dogecoin")
    assert s.fetch_timeout_s == 2.5
    assert s.coalesce_fetches is True
    assert s.scheduler_enabled is False
    assert s.coingecko_api_key == "k"


@pytest.mark.parametrize(
    "name, value",
    [
        ("PC_CACHE_DURATION_MIN", "thirty"),
        ("PC_MAX_REQUESTS_PER_COIN", "-1"),
        ("PC_FETCH_TIMEOUT_SEC", "0"),
    ],
)
def test_invalid_values_fail_fast(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        Settings.from_env()
