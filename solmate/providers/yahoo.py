"""
Yahoo Finance chart API as a spot price source.

Symbols are looked up as ``{SYMBOL}-USD`` pairs and the price is read from
``chart.result[0].meta.regularMarketPrice``.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..core.errors import RateLimitExceeded, UpstreamError
from .base import PriceProvider

logger = logging.getLogger(__name__)

_USER_AGENT = "Mozilla/5.0 (compatible; solmate/1.0)"


def to_pair_symbol(symbol: str) -> str:
    """``btc`` -> ``BTC-USD``; already-suffixed symbols are left as is."""
    upper = symbol.strip().upper()
    return upper if upper.endswith("-USD") else f"{upper}-USD"


class YahooFinanceProvider(PriceProvider):
    name = "yahoo"
    timeout_s = 10

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.yahoo_finance_base_url).rstrip("/")
        if timeout_s is not None:
            self.timeout_s = timeout_s
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s, headers={"User-Agent": _USER_AGENT})
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def health_check(self) -> Dict[str, Any]:
        try:
            price = await self.get_price("BTC")
            return self.health("healthy", sample={"BTC": price})
        except Exception as e:
            return self.health_error(e)

    async def get_price(self, symbol: str) -> float:
        pair = to_pair_symbol(symbol)
        client = await self._get_client()
        try:
            response = await client.get(
                f"{self.base_url}/{pair}",
                params={"interval": "1m", "range": "1d"},
            )
        except httpx.RequestError as e:
            raise UpstreamError(f"Price request failed for {pair}: {e}", provider=self.name) from e

        if response.status_code == 429:
            raise RateLimitExceeded(provider=self.name)
        if response.status_code >= 400:
            raise UpstreamError(
                f"HTTP error! status: {response.status_code}",
                provider=self.name,
                status=response.status_code,
            )

        data = response.json()
        results = (data.get("chart") or {}).get("result") or []
        meta = results[0].get("meta", {}) if results else {}
        price = meta.get("regularMarketPrice")
        if price is None:
            raise UpstreamError("No price data available", provider=self.name)

        logger.debug("Fetched %s price %s", pair, price)
        return float(price)
