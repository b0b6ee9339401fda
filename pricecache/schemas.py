from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # The front-end reads camelCase keys (coinId, dataPoints, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Cache diagnostics ---
class CacheStatus(_CamelModel):
    coin_id: str
    is_cached: bool
    data_points: int = Field(ge=0)
    last_updated: int  # epoch ms, 0 if never fetched
    cache_age_minutes: int
    request_count: int = Field(ge=0)
    max_requests: int
    is_rate_limited: bool
    cache_duration_minutes: int


class ServiceStatus(_CamelModel):
    total_cached_coins: int
    cache_duration_minutes: int
    max_requests_per_coin: int
    rate_limit_reset_hours: int
    refresh_period_minutes: int
    popular_coins: list[str]
    coins: dict[str, CacheStatus]


# --- Endpoint payloads ---
class RefreshResponse(_CamelModel):
    message: str
    coin_id: str
    status: Literal["success", "rate_limited"]
    attempted: bool


class FetchTestResponse(_CamelModel):
    coin_id: str
    success: bool
    data_points: int
    sample_data: list[float] | str
    message: str


class PriceHistoryHealth(BaseModel):
    status: Literal["OK"] = "OK"
    message: str
    timestamp: int


class CoinInfo(BaseModel):
    id: str
    name: str
    symbol: str


# --- Health payload ---
class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"] = "ok"
    as_of: str
    service: str = "pricecache"
    scheduler_running: bool
    cached_coins: int


# --- Version payload ---
class VersionResponse(BaseModel):
    service: str  # "pricecache-api:0.1.0"
    service_version: str


# --- Error taxonomy ---
class ErrorCode(str, Enum):
    INVALID_COIN = "INVALID_COIN"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    code: ErrorCode
    message: str
    hint: str | None = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
