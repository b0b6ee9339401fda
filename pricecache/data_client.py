"""
CoinGecko market-chart client.

Returns an ordered list of Samples:
  [Sample(timestamp_ms, price), ...]   # upstream order, not re-sorted

Notes / Pitfalls:
- The free CoinGecko tier rate-limits aggressively (429). This client never
  retries; the cache in front of it is what keeps call volume down.
- Every failure mode surfaces as FetchError so callers only handle one type.
- Rows that are not [number, number] are dropped instead of failing the batch.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from pricecache.cache import Sample
from pricecache.config import Settings
from pricecache.errors import FetchError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, key: str) -> list[Sample]: ...


# --------------------------------------------------------------------------------------
# CoinGecko parsing
# --------------------------------------------------------------------------------------
def _is_number(val: Any) -> bool:
    if isinstance(val, bool) or not isinstance(val, int | float):
        return False
    return not (isinstance(val, float) and (math.isnan(val) or math.isinf(val)))


def normalize_market_chart(payload: Any, key: str) -> list[Sample]:
    """
    Convert a /coins/{id}/market_chart response into Samples.
    We expect:
      payload["prices"] -> [[epoch_ms, price], ...]
    """
    if not isinstance(payload, dict):
        raise FetchError(key, "response body is not a JSON object")
    if "prices" not in payload:
        raise FetchError(key, "no 'prices' field in response")

    raw = payload["prices"]
    if not isinstance(raw, list):
        raise FetchError(key, f"unexpected type for prices: {type(raw).__name__}")
    if not raw:
        raise FetchError(key, "empty prices array")

    samples: list[Sample] = []
    for row in raw:
        if not isinstance(row, list | tuple) or len(row) < 2:
            continue
        ts, price = row[0], row[1]
        # drop null/NaN lines
        if not (_is_number(ts) and _is_number(price)):
            continue
        samples.append(Sample(timestamp_ms=int(ts), price=float(price)))

    if not samples:
        raise FetchError(key, "no usable rows in prices array")
    return samples


# --------------------------------------------------------------------------------------
# Client
# --------------------------------------------------------------------------------------
class CoinGeckoFetcher:
    """Fetches daily price history for one coin id per call."""

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        *,
        vs_currency: str = "usd",
        days: int = 90,
        interval: str = "daily",
        timeout_s: float = 10.0,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.vs_currency = vs_currency
        self.days = days
        self.interval = interval
        self.timeout_s = timeout_s
        self.api_key = api_key
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> CoinGeckoFetcher:
        return cls(
            settings.coingecko_base_url,
            vs_currency=settings.vs_currency,
            days=settings.history_days,
            interval=settings.history_interval,
            timeout_s=settings.fetch_timeout_s,
            api_key=settings.coingecko_api_key,
        )

    def url_for(self, key: str) -> str:
        # escape the id so "?", "#" or "/" cannot address another resource
        return f"{self.base_url}/coins/{quote(key, safe='')}/market_chart"

    async def fetch(self, key: str) -> list[Sample]:
        params = {"vs_currency": self.vs_currency, "days": str(self.days)}
        if self.interval:
            params["interval"] = self.interval
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key

        url = self.url_for(key)
        logger.info("fetching %s", url, extra={"coin_id": key})
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, transport=self._transport
            ) as client:
                r = await client.get(url, params=params, headers=headers)
                r.raise_for_status()
                payload = r.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(key, f"upstream returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise FetchError(key, "upstream request timed out") from e
        except httpx.RequestError as e:
            raise FetchError(key, f"network error: {e}") from e
        except httpx.InvalidURL as e:
            raise FetchError(key, f"invalid coin id for upstream url: {e}") from e
        except ValueError as e:
            # json decode errors are ValueErrors
            raise FetchError(key, "response body is not valid JSON") from e

        samples = normalize_market_chart(payload, key)
        logger.info("fetched %d price points for %s", len(samples), key)
        return samples
