"""Cached spot price lookups."""

from __future__ import annotations

import logging
from typing import Optional

from ..cache import TTLCache
from ..config import settings
from ..core.tools.models import PriceQuote
from ..providers.base import PriceProvider
from ..providers.yahoo import YahooFinanceProvider

logger = logging.getLogger(__name__)


class PriceService:
    """Spot prices keyed by upper-cased symbol, cached for ``price_cache_ttl_seconds``."""

    def __init__(
        self,
        provider: Optional[PriceProvider] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self.provider = provider or YahooFinanceProvider(timeout_s=settings.request_timeout_seconds)
        self.cache = cache or TTLCache(
            default_ttl=settings.price_cache_ttl_seconds,
            max_size=settings.max_cache_size,
        )

    @staticmethod
    def _key(symbol: str) -> str:
        return symbol.strip().upper()

    async def get_quote(self, symbol: str) -> PriceQuote:
        key = self._key(symbol)

        async def _load() -> PriceQuote:
            price = await self.provider.get_price(key)
            logger.debug("Price cache miss for %s: %s", key, price)
            return PriceQuote(symbol=key, price=price)

        return await self.cache.get_or_load(key, _load)

    async def get_price(self, symbol: str) -> float:
        quote = await self.get_quote(symbol)
        return quote.price

    async def get_fresh_price(self, symbol: str) -> float:
        """Bypass the cache (used by the tracker) and refresh it with the result."""
        key = self._key(symbol)
        price = await self.provider.get_price(key)
        await self.cache.set(key, PriceQuote(symbol=key, price=price))
        return price

    async def close(self) -> None:
        close = getattr(self.provider, "close", None)
        if close is not None:
            await close()
