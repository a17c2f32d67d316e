"""Exchange rate HTTP client with fallback source and in-memory caching"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from billing_engine.config import settings
from billing_engine.domain.currency import RateTable
from billing_engine.domain.exceptions import ExchangeRateAPIError
from billing_engine.infrastructure.observability.metrics import (
    rate_fetch_failures_counter,
    rate_fetch_latency_histogram,
)


def parse_rate_payload(data: Dict[str, Any]) -> RateTable:
    """
    Parse the currency API shape into a RateTable.

    Payload: {"date": "2024-11-01", "usd": {"eur": 0.92, "gbp": 0.79, ...}}
    Codes are upper-cased; USD is always 1.
    """
    usd = data["usd"]
    if not isinstance(usd, dict):
        raise ValueError("'usd' must be an object of rates")

    rates: Dict[str, float] = {"USD": 1.0}
    for code, rate in usd.items():
        if isinstance(rate, (int, float)) and not isinstance(rate, bool) and rate > 0:
            rates[code.upper()] = float(rate)
    return RateTable(rates_from_usd=rates, as_of=data.get("date"))


class ExchangeRateClient:
    """Client for the public USD-based currency API"""

    def __init__(
        self,
        primary_url: str | None = None,
        fallback_url: str | None = None,
        timeout: float | None = None,
        cache_seconds: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.primary_url = primary_url or settings.exchange_api_primary_url
        self.fallback_url = fallback_url or settings.exchange_api_fallback_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.cache_seconds = settings.rates_cache_seconds if cache_seconds is None else cache_seconds
        self.transport = transport
        self.clock = clock
        self._cached: Optional[RateTable] = None
        self._cached_at: float = 0.0

    @property
    def cached_rates(self) -> Optional[RateTable]:
        """Last successfully fetched table, fresh or not"""
        return self._cached

    def _cache_is_fresh(self) -> bool:
        return self._cached is not None and (self.clock() - self._cached_at) <= self.cache_seconds

    async def _try_fetch(self, client: httpx.AsyncClient, url: str, source: str) -> Optional[RateTable]:
        """Fetch and parse one source; None on any failure"""
        try:
            with rate_fetch_latency_histogram.time():
                response = await client.get(url)
                response.raise_for_status()
                return parse_rate_payload(response.json())

        except httpx.HTTPStatusError as e:
            rate_fetch_failures_counter.labels(source=source).inc()
            logging.warning(
                f"Exchange rate API error: {e.response.status_code}",
                extra={"source": source, "url": url},
            )
        except httpx.RequestError as e:
            rate_fetch_failures_counter.labels(source=source).inc()
            logging.warning(f"Exchange rate request failed: {e}", extra={"source": source, "url": url})
        except (KeyError, ValueError, TypeError) as e:
            rate_fetch_failures_counter.labels(source=source).inc()
            logging.warning(f"Invalid exchange rate payload: {e}", extra={"source": source, "url": url})
        return None

    async def get_rates(self, force_refresh: bool = False) -> RateTable:
        """
        Return a resolved rate table, fetching when the cache is stale.

        Retry strategy:
        - Primary source first, then the fallback source
        - No silent fallback to static or 1:1 rates

        Raises:
            ExchangeRateAPIError: When every source fails
        """
        if not force_refresh and self._cache_is_fresh():
            return self._cached

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            rates = await self._try_fetch(client, self.primary_url, "primary")
            if rates is None:
                logging.info("Primary exchange rate source failed, trying fallback")
                rates = await self._try_fetch(client, self.fallback_url, "fallback")

        if rates is None:
            raise ExchangeRateAPIError("All exchange rate sources failed")

        logging.info(
            "Exchange rates fetched",
            extra={"currency_count": len(rates.rates_from_usd), "as_of": rates.as_of},
        )
        self._cached = rates
        self._cached_at = self.clock()
        return rates
