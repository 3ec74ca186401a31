import httpx
from typing import Any, Dict, Optional

from ..config import settings
from ..core.errors import RateLimitExceeded, UpstreamError
from .base import MarketDataProvider


class CoingeckoProvider(MarketDataProvider):
    """Coingecko API provider for reference prices"""

    name = "coingecko"
    timeout_s = 15

    def __init__(self, *, client: Optional[httpx.AsyncClient] = None, base_url: Optional[str] = None):
        self.api_key = settings.coingecko_api_key
        self.base_url = (base_url or settings.coingecko_base_url).rstrip("/")
        self._client = client

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["X-CG-Demo-API-Key"] = self.api_key
        return headers

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(
                f"{self.base_url}{path}",
                headers=self._build_headers(),
                params=params,
                timeout=self.timeout_s,
            )
        async with httpx.AsyncClient() as client:
            return await client.get(
                f"{self.base_url}{path}",
                headers=self._build_headers(),
                params=params,
                timeout=self.timeout_s,
            )

    async def ready(self) -> bool:
        return True  # API key is optional for basic tier

    async def health_check(self) -> Dict[str, Any]:
        try:
            response = await self._get("/ping")
            response.raise_for_status()
            return self.health("healthy", latency_ms=int(response.elapsed.total_seconds() * 1000))
        except Exception as e:
            return self.health_error(e)

    async def get_simple_price(self, coin_id: str, vs_currency: str = "usd") -> float:
        """Get the spot price for a Coingecko coin id (e.g. ``solana``)"""
        params = {
            "ids": coin_id,
            "vs_currencies": vs_currency,
        }

        try:
            response = await self._get("/simple/price", params=params)
        except httpx.RequestError as e:
            raise UpstreamError(f"Coingecko request failed: {e}", provider=self.name) from e

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            raise RateLimitExceeded(
                provider=self.name,
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        if response.status_code >= 400:
            raise UpstreamError(
                f"Coingecko API error {response.status_code}",
                provider=self.name,
                status=response.status_code,
            )

        data = response.json()
        price = (data.get(coin_id) or {}).get(vs_currency)
        if price is None:
            raise UpstreamError(f"No price data available for {coin_id}", provider=self.name)
        return float(price)


_coingecko_provider: Optional[CoingeckoProvider] = None


def get_coingecko_provider() -> CoingeckoProvider:
    global _coingecko_provider
    if _coingecko_provider is None:
        _coingecko_provider = CoingeckoProvider()
    return _coingecko_provider
