"""Lazily refreshed, single-slot cache for the RIF/USD quote."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

import requests

from ..clients.http import fetch_json
from ..domain import PriceQuote
from ..errors import Err, Ok, RifLookupError, SourceResult, UpstreamError
from ..logger import get_logger
from ..settings import RifLookupSettings

logger = get_logger(__name__)

Clock = Callable[[], datetime]
PriceFetcher = Callable[[], Awaitable[SourceResult[float]]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CoinGeckoPriceFetcher:
    """Fetches a USD price from the CoinGecko simple-price endpoint."""

    def __init__(self, settings: RifLookupSettings, session: requests.Session | None = None):
        self.url = settings.price_api_url
        self.token_id = settings.price_token_id
        self.timeout = settings.request_timeout
        self.session = session or requests.Session()
        if settings.coingecko_api_key:
            self.session.headers["x-cg-demo-api-key"] = (
                settings.coingecko_api_key.get_secret_value()
            )

    async def __call__(self) -> SourceResult[float]:
        params = {"ids": self.token_id, "vs_currencies": "usd"}
        try:
            payload = await asyncio.to_thread(
                fetch_json, self.session, self.url, params, timeout=self.timeout
            )
            return Ok(self._extract_usd(payload))
        except RifLookupError as exc:
            return Err.from_exception(exc)

    def _extract_usd(self, payload: Any) -> float:
        quote = payload.get(self.token_id) if isinstance(payload, dict) else None
        usd = quote.get("usd") if isinstance(quote, dict) else None
        if isinstance(usd, bool) or not isinstance(usd, (int, float)) or usd <= 0:
            raise UpstreamError(f"No USD price for {self.token_id} in {payload!r}")
        return float(usd)


class PriceQuoteCache:
    """Holds the last good quote and refreshes it once it outlives its TTL.

    The compiled-in default is served until the first successful fetch, and a
    failed refresh keeps serving the previous value. Concurrent callers may
    trigger duplicate refreshes; they fetch the same upstream value.
    """

    def __init__(
        self,
        fetcher: PriceFetcher,
        *,
        default_usd: float,
        ttl: timedelta,
        clock: Clock = utc_now,
    ):
        self._fetcher = fetcher
        self._clock = clock
        self.quote = PriceQuote(value_usd=default_usd, fetched_at=None, ttl=ttl)

    async def get_usd_value(self) -> float:
        now = self._clock()
        if not self.quote.is_stale(now):
            return self.quote.value_usd

        result = await self._fetcher()
        if isinstance(result, Ok):
            self.quote = PriceQuote(
                value_usd=result.value, fetched_at=self._clock(), ttl=self.quote.ttl
            )
            logger.debug("Refreshed USD quote: %s", result.value)
        else:
            logger.warning(
                "USD quote refresh failed, keeping %s — %s: %s",
                self.quote.value_usd,
                result.kind.value,
                result.message,
            )
        return self.quote.value_usd


_PRICE_CACHE: PriceQuoteCache | None = None


def get_price_cache(settings: RifLookupSettings) -> PriceQuoteCache:
    """Return the process-wide quote cache, creating it on first use."""
    global _PRICE_CACHE
    if _PRICE_CACHE is None:
        _PRICE_CACHE = PriceQuoteCache(
            CoinGeckoPriceFetcher(settings),
            default_usd=settings.default_price_usd,
            ttl=timedelta(seconds=settings.price_ttl_seconds),
        )
    return _PRICE_CACHE
