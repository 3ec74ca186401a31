"""
Wallet operation implementations.

Each operation talks to one external system. Arguments arrive already
validated; nothing here re-checks formats. Transfers and swaps only return a
pending marker, signing happens later through a ``WalletSigner``.
"""

import asyncio
import logging
from typing import Optional

from ..providers.base import MarketDataProvider
from ..providers.jupiter import JupiterSwapProvider
from ..providers.solana import LAMPORTS_PER_SOL, SolanaRpcClient
from ..services.price_service import PriceService
from ..services.price_tracker import PriceTarget, PriceTracker
from .swap.constants import TOKEN_REGISTRY, USDC_MINT, TokenInfo
from .tools.models import PendingSwap, PendingTransaction, PriceQuote, TrackingConfirmation

logger = logging.getLogger(__name__)


class WalletOperations:
    def __init__(
        self,
        *,
        rpc: SolanaRpcClient,
        market: MarketDataProvider,
        jupiter: JupiterSwapProvider,
        prices: PriceService,
        tracker: PriceTracker,
        slippage_bps: int = 50,
    ) -> None:
        self.rpc = rpc
        self.market = market
        self.jupiter = jupiter
        self.prices = prices
        self.tracker = tracker
        self.slippage_bps = slippage_bps

    async def check_balance(self, address: str) -> str:
        """Live SOL + USDC balance summary with USD values."""
        lamports, usdc_accounts, sol_price = await asyncio.gather(
            self.rpc.get_balance(address),
            self.rpc.get_token_accounts(address, mint=USDC_MINT),
            self.market.get_simple_price(TOKEN_REGISTRY["SOL"].coingecko_id),
        )

        sol_balance = lamports / LAMPORTS_PER_SOL
        sol_value = sol_balance * sol_price
        usdc_balance = sum(account["ui_amount"] for account in usdc_accounts)
        usdc_value = usdc_balance  # pegged
        total = sol_value + usdc_value

        return (
            f"Your wallet contains {sol_balance:.2f} SOL (${sol_value:.2f}) "
            f"and {usdc_balance:.2f} USDC (${usdc_value:.2f}). "
            f"Total portfolio value: ${total:.2f}"
        )

    async def transfer_sol(self, recipient: str, amount: float, network: str) -> PendingTransaction:
        return PendingTransaction(recipient=recipient, amount=amount, network=network)

    async def swap_tokens(
        self,
        input_token: TokenInfo,
        output_token: TokenInfo,
        amount: float,
        base_amount: int,
    ) -> PendingSwap:
        quote = await self.jupiter.get_quote(
            input_mint=input_token.mint,
            output_mint=output_token.mint,
            amount=base_amount,
            slippage_bps=self.slippage_bps,
        )
        estimated = quote.out_amount / (10 ** output_token.decimals)

        return PendingSwap(
            quote_response=quote.raw,
            input_token=input_token.symbol,
            output_token=output_token.symbol,
            amount=amount,
            estimated=estimated,
        )

    async def check_crypto_price(self, symbol: str) -> PriceQuote:
        return await self.prices.get_quote(symbol)

    async def track_crypto_price(
        self,
        symbol: str,
        target_price: float,
        condition: str,
        volatility_threshold: Optional[float] = None,
        email: Optional[str] = None,
    ) -> TrackingConfirmation:
        current_price = await self.prices.get_fresh_price(symbol)

        tracking_id = self.tracker.add_target(
            PriceTarget(
                symbol=symbol,
                target_price=target_price,
                condition=condition,
                volatility_threshold=volatility_threshold,
                email=email,
            )
        )

        return TrackingConfirmation(
            symbol=symbol,
            current_price=current_price,
            target_price=target_price,
            condition=condition,
            tracking_id=tracking_id,
        )
