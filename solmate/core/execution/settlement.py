"""
Settlement of pending wallet operations.

A pending transfer or swap becomes an on-chain transaction here: build the
unsigned transaction, have the wallet sign it, broadcast with a bounded
number of resends on transient failures, then poll until the cluster
confirms it, rejects it, or the blockhash runs out.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ...config import settings
from ...providers.jupiter import JupiterSwapProvider
from ...providers.solana import SolanaRpcClient, get_rpc_client
from ..errors import (
    ConfirmationTimeout,
    InvalidAmount,
    SwapBuildError,
    UpstreamError,
    ValidationError,
    is_transient,
)
from ..swap.constants import MAX_BASE_UNITS, SOL_DECIMALS
from ..tools.models import PendingSwap, PendingTransaction
from ..tools.validation import to_base_units
from .signer import WalletSigner
from .tx_builder import build_transfer_transaction, decode_transaction

logger = logging.getLogger(__name__)

CONFIRMED_STATES = ("confirmed", "finalized")


def format_amount(value: float) -> str:
    """``1.0`` -> ``1``, ``0.25`` -> ``0.25``; no float noise past 9 places."""
    return f"{value:.9f}".rstrip("0").rstrip(".")


@dataclass
class SettlementResult:
    signature: str
    message: str
    network: str


class SolanaSettlement:
    def __init__(
        self,
        *,
        jupiter: JupiterSwapProvider,
        rpc_for: Callable[[Optional[str]], SolanaRpcClient] = get_rpc_client,
        max_resends: Optional[int] = None,
        poll_interval_s: Optional[float] = None,
        max_confirmation_attempts: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.jupiter = jupiter
        self.rpc_for = rpc_for
        self.max_resends = settings.transaction_max_resends if max_resends is None else max_resends
        self.poll_interval_s = (
            settings.confirmation_poll_interval_seconds if poll_interval_s is None else poll_interval_s
        )
        self.max_confirmation_attempts = (
            settings.confirmation_max_attempts
            if max_confirmation_attempts is None
            else max_confirmation_attempts
        )
        self._sleep = sleep

    async def settle_transfer(self, pending: PendingTransaction, signer: WalletSigner) -> SettlementResult:
        lamports = to_base_units(pending.amount, SOL_DECIMALS)
        if lamports <= 0:
            raise InvalidAmount("Amount is smaller than 1 lamport")
        if lamports > MAX_BASE_UNITS:
            raise InvalidAmount(f"Amount is larger than any SOL balance: {pending.amount}")

        wallet = await signer.connect()
        rpc = self.rpc_for(pending.network)

        latest = await rpc.get_latest_blockhash()
        try:
            unsigned = build_transfer_transaction(wallet, pending.recipient, lamports, latest["blockhash"])
        except ValueError as e:
            raise ValidationError(str(e)) from e

        signed = await signer.sign_transaction(unsigned.transaction_b64)
        signature = await self.broadcast(rpc, signed)
        await self.confirm(rpc, signature, latest.get("lastValidBlockHeight"))

        logger.info("Transfer of %s lamports to %s confirmed: %s", lamports, pending.recipient, signature)
        return SettlementResult(
            signature=signature,
            message=(
                f"Successfully transferred {format_amount(pending.amount)} SOL to "
                f"{pending.recipient}. Transaction ID: {signature}"
            ),
            network=pending.network,
        )

    async def settle_swap(
        self,
        pending: PendingSwap,
        signer: WalletSigner,
        network: str = "mainnet",
    ) -> SettlementResult:
        wallet = await signer.connect()
        swap = await self.jupiter.build_swap_transaction(pending.quote_response, wallet)

        try:
            decode_transaction(swap.swap_transaction)
        except ValueError as e:
            raise SwapBuildError(f"Jupiter returned an unusable transaction: {e}", provider="jupiter") from e

        signed = await signer.sign_transaction(swap.swap_transaction)

        rpc = self.rpc_for(network)
        # Jupiter already simulated the route; preflight only adds latency
        signature = await self.broadcast(rpc, signed, skip_preflight=True, max_retries=3)
        await self.confirm(rpc, signature, swap.last_valid_block_height)

        logger.info("Swap %s -> %s confirmed: %s", pending.input_token, pending.output_token, signature)
        return SettlementResult(
            signature=signature,
            message=(
                f"Successfully swapped {format_amount(pending.amount)} {pending.input_token} for approximately "
                f"{format_amount(pending.estimated)} {pending.output_token}. Transaction ID: {signature}"
            ),
            network=network,
        )

    async def broadcast(
        self,
        rpc: SolanaRpcClient,
        signed_transaction: str,
        *,
        skip_preflight: bool = False,
        max_retries: Optional[int] = None,
    ) -> str:
        """Send, resending up to ``max_resends`` times on transient failures."""
        attempt = 0
        while True:
            try:
                return await rpc.send_transaction(
                    signed_transaction,
                    skip_preflight=skip_preflight,
                    max_retries=max_retries,
                )
            except Exception as e:
                if attempt >= self.max_resends or not is_transient(e):
                    raise
                attempt += 1
                delay = min(0.5 * (2 ** (attempt - 1)), 4.0)
                logger.warning("Broadcast failed (%s), resend %d/%d in %.1fs", e, attempt, self.max_resends, delay)
                await self._sleep(delay)

    async def confirm(
        self,
        rpc: SolanaRpcClient,
        signature: str,
        last_valid_block_height: Optional[int] = None,
    ) -> None:
        """Poll signature status with backoff until confirmed, failed, or out of time."""
        interval = self.poll_interval_s
        for _ in range(self.max_confirmation_attempts):
            status = None
            height = None
            try:
                status = await rpc.get_signature_status(signature)
                if not status and last_valid_block_height is not None:
                    height = await rpc.get_block_height()
            except UpstreamError as e:
                if not is_transient(e):
                    raise
                logger.warning("Confirmation poll for %s failed: %s", signature, e)

            if status:
                if status.get("err") is not None:
                    raise UpstreamError(
                        f"Transaction {signature} failed: {status['err']}",
                        provider=rpc.name,
                    )
                if status.get("confirmationStatus") in CONFIRMED_STATES:
                    return
            elif height is not None and height > last_valid_block_height:
                raise ConfirmationTimeout(
                    signature,
                    f"Transaction {signature} expired before it was confirmed",
                )

            await self._sleep(interval)
            interval = min(interval * 1.5, 5.0)

        raise ConfirmationTimeout(signature)
