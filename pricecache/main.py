# pricecache/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pricecache.config import Settings
from pricecache.data_client import CoinGeckoFetcher
from pricecache.errors import envelope_from_http_exception
from pricecache.logging_conf import setup_logging

# --- Observability ---
from pricecache.observability import metrics_endpoint, timing_middleware

# --- Routers ---
from pricecache.routers import price_history
from pricecache.scheduler import ScheduledRefresher
from pricecache.schemas import HealthResponse, VersionResponse
from pricecache.service import PriceHistoryService
from pricecache.utils import utc_now_iso
from pricecache.version import SERVICE_VERSION, version_payload

logger = logging.getLogger("pricecache.main")


def create_app(
    service: PriceHistoryService | None = None, settings: Settings | None = None
) -> FastAPI:
    """Build the app. Pass a prebuilt service (e.g. with a fake fetcher) in tests."""
    settings = settings or (service.settings if service else Settings.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        svc = service or PriceHistoryService(
            CoinGeckoFetcher.from_settings(settings), settings=settings
        )
        refresher = ScheduledRefresher(
            svc, settings.popular_coins, settings.refresh_period_s
        )
        app.state.price_service = svc
        app.state.refresher = refresher
        if settings.scheduler_enabled:
            refresher.start()
        logger.info(
            "price history service ready: %d-minute cache, %d requests per coin",
            settings.cache_duration_min,
            settings.max_requests_per_coin,
        )
        try:
            yield
        finally:
            await refresher.stop()

    app = FastAPI(title="pricecache", version=SERVICE_VERSION, lifespan=lifespan)

    # --- Include routers ---
    app.include_router(price_history.router)

    # --- Middleware ---
    app.middleware("http")(timing_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        body = envelope_from_http_exception(exc)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))

    # --- Utility endpoints ---
    @app.get("/health", response_model=HealthResponse)
    def health():
        refresher: ScheduledRefresher = app.state.refresher
        running = refresher.running
        return HealthResponse(
            status="ok" if running or not settings.scheduler_enabled else "degraded",
            as_of=utc_now_iso(),
            scheduler_running=running,
            cached_coins=len(app.state.price_service.store),
        )

    @app.get("/version", response_model=VersionResponse)
    def version():
        return VersionResponse(**version_payload())

    @app.get("/metrics")
    def metrics():
        return metrics_endpoint()

    return app


# --- App ---
setup_logging()
app = create_app()
