# pricecache/routers/price_history.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from pricecache.coins import available_coins, find_coin_id, normalize_coin_id
from pricecache.errors import invalid_coin
from pricecache.schemas import (
    CacheStatus,
    CoinInfo,
    FetchTestResponse,
    PriceHistoryHealth,
    RefreshResponse,
    ServiceStatus,
)
from pricecache.service import PriceHistoryService, wall_clock_ms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/price-history", tags=["price-history"])


def get_service(request: Request) -> PriceHistoryService:
    return request.app.state.price_service


def coin_key(coin_id: str) -> str:
    key = normalize_coin_id(coin_id)
    if not key:
        raise invalid_coin(coin_id)
    return key


# static paths first so /{coin_id} does not shadow them


@router.get("/health", response_model=PriceHistoryHealth)
def health():
    return PriceHistoryHealth(message="Price History API is running", timestamp=wall_clock_ms())


@router.get("/status", response_model=ServiceStatus)
def service_status(service: PriceHistoryService = Depends(get_service)):
    return service.get_service_status()


@router.get("/coins", response_model=list[CoinInfo])
def coins(q: str | None = None):
    """List known coins, or resolve one search term (?q=btc) to its entry."""
    if q is None:
        return available_coins()
    found = find_coin_id(q)
    return [c for c in available_coins() if c["id"] == found]


@router.get("/debug/{coin_id}", response_model=CacheStatus)
def debug_info(key: str = Depends(coin_key), service: PriceHistoryService = Depends(get_service)):
    return service.get_cache_status(key)


@router.post("/refresh/{coin_id}", response_model=RefreshResponse)
async def refresh(
    key: str = Depends(coin_key), service: PriceHistoryService = Depends(get_service)
):
    attempted = await service.refresh(key)
    if attempted:
        return RefreshResponse(
            message=f"Price history refreshed for {key}",
            coin_id=key,
            status="success",
            attempted=True,
        )
    return RefreshResponse(
        message=f"Refresh skipped for {key}: request budget reached",
        coin_id=key,
        status="rate_limited",
        attempted=False,
    )


@router.get("/test/{coin_id}", response_model=FetchTestResponse)
async def test_fetch(
    key: str = Depends(coin_key), service: PriceHistoryService = Depends(get_service)
):
    """Force a fetch (no staleness or budget check), then read back what is cached."""
    ok = await service.force_fetch(key)
    data = await service.get_history(key)
    return FetchTestResponse(
        coin_id=key,
        success=ok,
        data_points=len(data),
        sample_data=data[0].as_pair() if data else "No data",
        message="Data fetched and cached successfully" if ok else "Failed to fetch data",
    )


@router.get("/{coin_id}", response_model=list[tuple[int, float]])
async def price_history(
    key: str = Depends(coin_key), service: PriceHistoryService = Depends(get_service)
):
    samples = await service.get_history(key)
    logger.info("returning %d data points for %s", len(samples), key)
    return [s.as_pair() for s in samples]
