"""Interfaces shared by the RPC, swap aggregator and market-data clients."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Literal

HealthStatus = Literal["healthy", "configured", "unavailable", "error"]

# "configured" is reported by providers that skip a live check
SERVING_STATUSES = ("healthy", "configured", "unavailable")


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is configured to serve requests"""

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""

    def health(self, status: HealthStatus, **fields: Any) -> Dict[str, Any]:
        return {"status": status, "provider": self.name, **fields}

    def health_error(self, error: BaseException) -> Dict[str, Any]:
        return self.health("error", reason=str(error))


class MarketDataProvider(Provider):
    """Reference prices keyed by the provider's own coin id (``solana``)."""

    @abstractmethod
    async def get_simple_price(self, coin_id: str, vs_currency: str = "usd") -> float:
        ...


class PriceProvider(Provider):
    """Spot USD prices keyed by ticker symbol (``BTC``)."""

    @abstractmethod
    async def get_price(self, symbol: str) -> float:
        ...
