from __future__ import annotations

from .quote_cache import CoinGeckoPriceFetcher, PriceQuoteCache, get_price_cache

__all__ = ["CoinGeckoPriceFetcher", "PriceQuoteCache", "get_price_cache"]
