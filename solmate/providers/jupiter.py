"""
Jupiter swap aggregator provider.

Two calls: ``GET /quote`` for a route and output estimate, and ``POST /swap``
to turn that quote into a serialized, unsigned transaction for the user's
wallet. The quote is passed through opaquely between the two.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from .base import Provider
from ..config import settings
from ..core.errors import RateLimitExceeded, SwapBuildError, SwapQuoteError

logger = logging.getLogger(__name__)


@dataclass
class JupiterQuote:
    """Quote response from Jupiter."""
    input_mint: str
    output_mint: str
    in_amount: int                              # In smallest units
    out_amount: int                             # In smallest units
    other_amount_threshold: int                 # Minimum output (with slippage)
    slippage_bps: int
    price_impact_pct: float
    raw: Dict[str, Any]                         # Untouched payload for /swap
    fetched_at: float = field(default_factory=time.time)

    @classmethod
    def from_api(cls, data: Dict[str, Any], slippage_bps: int) -> "JupiterQuote":
        missing = [key for key in ("inputMint", "outputMint", "inAmount", "outAmount") if key not in data]
        if missing:
            raise SwapQuoteError(f"Jupiter quote missing fields: {', '.join(missing)}", provider="jupiter")
        return cls(
            input_mint=data["inputMint"],
            output_mint=data["outputMint"],
            in_amount=int(data["inAmount"]),
            out_amount=int(data["outAmount"]),
            other_amount_threshold=int(data.get("otherAmountThreshold", data["outAmount"])),
            slippage_bps=int(data.get("slippageBps", slippage_bps)),
            price_impact_pct=float(data.get("priceImpactPct") or 0),
            raw=data,
        )


@dataclass
class JupiterSwapResult:
    """Result of building a swap transaction."""
    swap_transaction: str                       # Base64 encoded transaction
    last_valid_block_height: Optional[int]
    priority_fee_lamports: Optional[int] = None
    compute_unit_limit: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "swapTransaction": self.swap_transaction,
            "lastValidBlockHeight": self.last_valid_block_height,
            "prioritizationFeeLamports": self.priority_fee_lamports,
            "computeUnitLimit": self.compute_unit_limit,
        }


class JupiterSwapProvider(Provider):
    """
    Jupiter quote and swap-transaction builder.

    Usage:
        provider = JupiterSwapProvider()

        quote = await provider.get_quote(
            input_mint=NATIVE_SOL_MINT,
            output_mint=USDC_MINT,
            amount=1_000_000_000,  # 1 SOL in lamports
        )

        swap = await provider.build_swap_transaction(
            quote_response=quote.raw,
            user_public_key="...",
        )
    """

    name = "jupiter"
    timeout_s = 30

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or settings.jupiter_base_url).rstrip("/")
        if timeout_s is not None:
            self.timeout_s = timeout_s
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def health_check(self) -> Dict[str, Any]:
        # Quoting costs nothing but still hits the API; report config only.
        if not await self.ready():
            return self.health("unavailable", reason="Jupiter base URL not configured")
        return self.health("configured", url=self.base_url)

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: Optional[int] = None,
    ) -> JupiterQuote:
        """
        Get a swap quote from Jupiter.

        Args:
            input_mint: Input token mint address
            output_mint: Output token mint address
            amount: Amount in smallest units (lamports for SOL)
            slippage_bps: Slippage tolerance in basis points (50 = 0.5%)
        """
        slippage = settings.jupiter_slippage_bps if slippage_bps is None else slippage_bps
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": slippage,
            "onlyDirectRoutes": "false",
        }

        client = await self._get_client()
        try:
            response = await client.get(f"{self.base_url}/quote", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise RateLimitExceeded("Jupiter rate limit exceeded", provider=self.name) from e
            raise SwapQuoteError(
                f"Jupiter API error: {_error_detail(e.response)}",
                provider=self.name,
                status=status,
            ) from e
        except httpx.RequestError as e:
            raise SwapQuoteError(f"Jupiter quote request failed: {e}", provider=self.name) from e

        if isinstance(data, dict) and "error" in data:
            raise SwapQuoteError(f"Jupiter quote error: {data['error']}", provider=self.name)

        quote = JupiterQuote.from_api(data, slippage)
        logger.info(
            "Jupiter quote %s -> %s in=%s out=%s impact=%s",
            quote.input_mint,
            quote.output_mint,
            quote.in_amount,
            quote.out_amount,
            quote.price_impact_pct,
        )
        return quote

    async def build_swap_transaction(
        self,
        quote_response: Dict[str, Any],
        user_public_key: str,
        priority_level: str = "high",
    ) -> JupiterSwapResult:
        """Build an unsigned swap transaction for ``user_public_key``."""
        if not quote_response:
            raise SwapBuildError("Quote response required for swap transaction", provider=self.name)

        payload = {
            "quoteResponse": quote_response,
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
            "dynamicComputeUnitLimit": True,
            "dynamicSlippage": True,
            "prioritizationFeeLamports": {
                "priorityLevelWithMaxLamports": {
                    "maxLamports": settings.jupiter_max_priority_fee_lamports,
                    "priorityLevel": priority_level,
                    "global": False,
                }
            },
        }

        client = await self._get_client()
        try:
            response = await client.post(f"{self.base_url}/swap", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise RateLimitExceeded("Jupiter rate limit exceeded", provider=self.name) from e
            raise SwapBuildError(
                f"Jupiter API error: {_error_detail(e.response)}",
                provider=self.name,
                status=status,
            ) from e
        except httpx.RequestError as e:
            raise SwapBuildError(f"Jupiter swap request failed: {e}", provider=self.name) from e

        if data.get("simulationError"):
            raise SwapBuildError(
                f"Transaction simulation failed: {data['simulationError']}",
                provider=self.name,
            )
        if "error" in data:
            raise SwapBuildError(f"Jupiter swap error: {data['error']}", provider=self.name)
        if not data.get("swapTransaction"):
            raise SwapBuildError("No swap transaction received from Jupiter", provider=self.name)

        return JupiterSwapResult(
            swap_transaction=data["swapTransaction"],
            last_valid_block_height=data.get("lastValidBlockHeight"),
            priority_fee_lamports=data.get("prioritizationFeeLamports"),
            compute_unit_limit=data.get("computeUnitLimit"),
        )


def _error_detail(response: httpx.Response) -> str:
    try:
        return str(response.json())
    except ValueError:
        return response.text or str(response.status_code)


_jupiter_provider: Optional[JupiterSwapProvider] = None


def get_jupiter_provider() -> JupiterSwapProvider:
    """Get the shared Jupiter provider."""
    global _jupiter_provider
    if _jupiter_provider is None:
        _jupiter_provider = JupiterSwapProvider(timeout_s=settings.request_timeout_seconds)
    return _jupiter_provider


__all__ = [
    "JupiterQuote",
    "JupiterSwapProvider",
    "JupiterSwapResult",
    "get_jupiter_provider",
]
