"""Token registry for wallet swaps and balance reads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

NATIVE_SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

SOL_DECIMALS = 9

# SPL and System Program amounts are u64 base units
MAX_BASE_UNITS = 2**64 - 1


@dataclass(frozen=True)
class TokenInfo:
    symbol: str
    mint: str
    decimals: int
    coingecko_id: str


# Swaps are limited to this registry; symbols are the canonical upper-case form.
TOKEN_REGISTRY: Dict[str, TokenInfo] = {
    "SOL": TokenInfo(symbol="SOL", mint=NATIVE_SOL_MINT, decimals=SOL_DECIMALS, coingecko_id="solana"),
    "USDC": TokenInfo(symbol="USDC", mint=USDC_MINT, decimals=6, coingecko_id="usd-coin"),
}

SWAPPABLE_SYMBOLS = tuple(TOKEN_REGISTRY)


def get_token(symbol: str) -> Optional[TokenInfo]:
    return TOKEN_REGISTRY.get((symbol or "").upper())
