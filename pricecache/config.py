# pricecache/config.py
# Purpose: Runtime knobs for the cache, budget and scheduler, read from env.
# Pitfalls: Read once at startup; changing env vars afterwards has no effect.

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_POPULAR_COINS = ("bitcoin", "ethereum", "ripple", "cardano", "solana")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Cache/budget/scheduler configuration. Defaults mirror the reference policy."""

    cache_duration_min: int = 30
    max_requests_per_coin: int = 50
    rate_limit_reset_hours: int = 24  # advertised in /status, never enforced
    refresh_period_min: int = 30
    popular_coins: tuple[str, ...] = DEFAULT_POPULAR_COINS
    fetch_timeout_s: float = 10.0
    coalesce_fetches: bool = False
    scheduler_enabled: bool = True

    # upstream
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: str | None = None
    vs_currency: str = "usd"
    history_days: int = 90
    history_interval: str = "daily"

    cors_origins: tuple[str, ...] = field(default=("*",))

    @property
    def cache_duration_ms(self) -> int:
        return self.cache_duration_min * 60 * 1000

    @property
    def refresh_period_s(self) -> float:
        return float(self.refresh_period_min * 60)

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            cache_duration_min=_env_int("PC_CACHE_DURATION_MIN", cls.cache_duration_min),
            max_requests_per_coin=_env_int(
                "PC_MAX_REQUESTS_PER_COIN", cls.max_requests_per_coin
            ),
            rate_limit_reset_hours=_env_int(
                "PC_RATE_LIMIT_RESET_HOURS", cls.rate_limit_reset_hours
            ),
            refresh_period_min=_env_int("PC_REFRESH_PERIOD_MIN", cls.refresh_period_min),
            popular_coins=_env_list("PC_POPULAR_COINS", DEFAULT_POPULAR_COINS),
            fetch_timeout_s=_env_float("PC_FETCH_TIMEOUT_SEC", cls.fetch_timeout_s),
            coalesce_fetches=_env_bool("PC_COALESCE_FETCHES", cls.coalesce_fetches),
            scheduler_enabled=_env_bool("PC_SCHEDULER_ENABLED", cls.scheduler_enabled),
            coingecko_base_url=os.getenv("PC_COINGECKO_BASE_URL", cls.coingecko_base_url),
            coingecko_api_key=os.getenv("PC_COINGECKO_API_KEY") or None,
            vs_currency=os.getenv("PC_VS_CURRENCY", cls.vs_currency),
            history_days=_env_int("PC_HISTORY_DAYS", cls.history_days),
            history_interval=os.getenv("PC_HISTORY_INTERVAL", cls.history_interval),
            cors_origins=_env_list("PC_CORS_ORIGINS", ("*",)),
        )
