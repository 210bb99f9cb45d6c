from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from rif_lookup.errors import Err, ErrorKind, Ok, UpstreamError
from rif_lookup.pricing import CoinGeckoPriceFetcher, PriceQuoteCache
from rif_lookup.pricing import quote_cache
from rif_lookup.settings import RifLookupSettings

DEFAULT_USD = 0.078623
TTL = timedelta(hours=24)


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 6, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock():
    return FakeClock()


def _cache(fetcher, clock) -> PriceQuoteCache:
    return PriceQuoteCache(fetcher, default_usd=DEFAULT_USD, ttl=TTL, clock=clock)


@pytest.mark.asyncio
async def test_first_call_fetches_then_serves_from_cache(clock):
    fetcher = AsyncMock(return_value=Ok(0.12))
    cache = _cache(fetcher, clock)

    assert await cache.get_usd_value() == 0.12
    clock.advance(timedelta(hours=23))
    assert await cache.get_usd_value() == 0.12

    assert fetcher.await_count == 1


@pytest.mark.asyncio
async def test_refreshes_once_after_ttl(clock):
    fetcher = AsyncMock(side_effect=[Ok(0.12), Ok(0.15)])
    cache = _cache(fetcher, clock)

    await cache.get_usd_value()
    clock.advance(TTL + timedelta(seconds=1))

    assert await cache.get_usd_value() == 0.15
    assert await cache.get_usd_value() == 0.15
    assert fetcher.await_count == 2


@pytest.mark.asyncio
async def test_default_served_until_first_success(clock):
    fetcher = AsyncMock(
        side_effect=[Err(ErrorKind.NETWORK, "down"), Err(ErrorKind.NETWORK, "down"), Ok(0.2)]
    )
    cache = _cache(fetcher, clock)

    assert await cache.get_usd_value() == DEFAULT_USD
    assert await cache.get_usd_value() == DEFAULT_USD
    assert await cache.get_usd_value() == 0.2
    assert fetcher.await_count == 3


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_value(clock):
    fetcher = AsyncMock(side_effect=[Ok(0.12), Err(ErrorKind.UPSTREAM, "HTTP 429")])
    cache = _cache(fetcher, clock)

    await cache.get_usd_value()
    clock.advance(TTL * 2)

    assert await cache.get_usd_value() == 0.12


@pytest.mark.asyncio
async def test_fetcher_reads_usd_quote(monkeypatch):
    captured = {}

    def _fetch_json(session, url, params=None, *, timeout=15.0):
        captured.update(url=url, params=params)
        return {"rif-token": {"usd": 0.0912}}

    monkeypatch.setattr(quote_cache, "fetch_json", _fetch_json)
    fetcher = CoinGeckoPriceFetcher(RifLookupSettings(), session=MagicMock())

    assert await fetcher() == Ok(0.0912)
    assert captured["params"] == {"ids": "rif-token", "vs_currencies": "usd"}


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"rif-token": {"usd": 0}}, {"rif-token": {"usd": "1"}}])
async def test_fetcher_rejects_missing_or_bad_price(monkeypatch, payload):
    monkeypatch.setattr(quote_cache, "fetch_json", lambda *args, **kwargs: payload)
    fetcher = CoinGeckoPriceFetcher(RifLookupSettings(), session=MagicMock())

    result = await fetcher()

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.UPSTREAM


@pytest.mark.asyncio
async def test_fetcher_reports_transport_errors(monkeypatch):
    def _fail(*args, **kwargs):
        raise UpstreamError("HTTP 503", status_code=503)

    monkeypatch.setattr(quote_cache, "fetch_json", _fail)
    fetcher = CoinGeckoPriceFetcher(RifLookupSettings(), session=MagicMock())

    assert await fetcher() == Err(ErrorKind.UPSTREAM, "HTTP 503")


def test_price_cache_is_process_wide(monkeypatch):
    monkeypatch.setattr(quote_cache, "_PRICE_CACHE", None)
    settings = RifLookupSettings()

    first = quote_cache.get_price_cache(settings)

    assert quote_cache.get_price_cache(settings) is first
    assert first.quote.value_usd == settings.default_price_usd
    assert first.quote.fetched_at is None
