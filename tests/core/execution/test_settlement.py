import base64
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import BLOCKHASH, RECIPIENT, WALLET
from solmate.core.errors import (
    ConfirmationTimeout,
    InvalidAmount,
    RateLimitExceeded,
    SwapBuildError,
    UpstreamError,
    UserDeclined,
)
from solmate.core.execution.settlement import SolanaSettlement, format_amount
from solmate.core.execution.tx_builder import split_transaction
from solmate.core.tools.models import PendingSwap, PendingTransaction
from solmate.providers.jupiter import JupiterSwapResult

SIGNATURE = "5" * 88
SIGNED = base64.b64encode(b"\x01" + bytes(64) + b"message").decode()


def _rpc(statuses=None, send=None):
    rpc = MagicMock()
    rpc.name = "solana-rpc"
    rpc.get_latest_blockhash = AsyncMock(return_value={"blockhash": BLOCKHASH, "lastValidBlockHeight": 500})
    rpc.send_transaction = AsyncMock(side_effect=send or [SIGNATURE])
    rpc.get_signature_status = AsyncMock(side_effect=statuses or [{"confirmationStatus": "confirmed", "err": None}])
    rpc.get_block_height = AsyncMock(return_value=100)
    return rpc


def _signer():
    signer = MagicMock()
    signer.connect = AsyncMock(return_value=WALLET)
    signer.sign_transaction = AsyncMock(return_value=SIGNED)
    return signer


def _settlement(rpc, jupiter=None, **kwargs):
    sleep = AsyncMock()
    settlement = SolanaSettlement(
        jupiter=jupiter or MagicMock(),
        rpc_for=lambda network: rpc,
        sleep=sleep,
        **kwargs,
    )
    return settlement, sleep


@pytest.mark.asyncio
async def test_transfer_happy_path():
    rpc = _rpc(statuses=[None, {"confirmationStatus": "processed", "err": None}, {"confirmationStatus": "finalized", "err": None}])
    settlement, sleep = _settlement(rpc, poll_interval_s=1.0)
    signer = _signer()

    result = await settlement.settle_transfer(PendingTransaction(recipient=RECIPIENT, amount=1.5), signer)

    assert result.signature == SIGNATURE
    assert result.message == f"Successfully transferred 1.5 SOL to {RECIPIENT}. Transaction ID: {SIGNATURE}"
    assert result.network == "devnet"

    unsigned = signer.sign_transaction.await_args.args[0]
    signatures, _ = split_transaction(base64.b64decode(unsigned))
    assert signatures == [bytes(64)]
    rpc.send_transaction.assert_awaited_once_with(SIGNED, skip_preflight=False, max_retries=None)
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 1.5]


@pytest.mark.asyncio
async def test_transfer_declined_never_broadcasts():
    rpc = _rpc()
    settlement, _ = _settlement(rpc)
    signer = _signer()
    signer.sign_transaction = AsyncMock(side_effect=UserDeclined())

    with pytest.raises(UserDeclined):
        await settlement.settle_transfer(PendingTransaction(recipient=RECIPIENT, amount=1), signer)
    rpc.send_transaction.assert_not_awaited()


@pytest.mark.asyncio
async def test_transfer_amount_beyond_u64_rejected_before_wallet_prompt():
    rpc = _rpc()
    settlement, _ = _settlement(rpc)
    signer = _signer()

    with pytest.raises(InvalidAmount):
        await settlement.settle_transfer(PendingTransaction(recipient=RECIPIENT, amount=2e10), signer)
    signer.connect.assert_not_awaited()
    rpc.get_latest_blockhash.assert_not_awaited()


@pytest.mark.asyncio
async def test_broadcast_resends_transient_failures():
    rpc = _rpc(send=[RateLimitExceeded(), UpstreamError("node unavailable", status=503), SIGNATURE])
    settlement, sleep = _settlement(rpc, max_resends=3)

    assert await settlement.broadcast(rpc, SIGNED) == SIGNATURE
    assert rpc.send_transaction.await_count == 3
    assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]


@pytest.mark.asyncio
async def test_broadcast_gives_up_after_max_resends():
    failures = [UpstreamError("node unavailable", status=503)] * 5
    rpc = _rpc(send=failures)
    settlement, _ = _settlement(rpc, max_resends=3)

    with pytest.raises(UpstreamError):
        await settlement.broadcast(rpc, SIGNED)
    assert rpc.send_transaction.await_count == 4


@pytest.mark.asyncio
async def test_broadcast_does_not_resend_rejections():
    rpc = _rpc(send=[UpstreamError("RPC error: Transaction simulation failed: insufficient funds")])
    settlement, _ = _settlement(rpc)

    with pytest.raises(UpstreamError):
        await settlement.broadcast(rpc, SIGNED)
    assert rpc.send_transaction.await_count == 1


@pytest.mark.asyncio
async def test_confirm_failed_transaction_raises():
    rpc = _rpc(statuses=[{"confirmationStatus": "confirmed", "err": {"InstructionError": [0, "Custom"]}}])
    settlement, _ = _settlement(rpc)

    with pytest.raises(UpstreamError) as exc:
        await settlement.confirm(rpc, SIGNATURE, 500)
    assert "failed" in exc.value.message


@pytest.mark.asyncio
async def test_confirm_times_out_when_attempts_run_out():
    rpc = _rpc(statuses=[None] * 3)
    settlement, sleep = _settlement(rpc, max_confirmation_attempts=3, poll_interval_s=4.0)

    with pytest.raises(ConfirmationTimeout) as exc:
        await settlement.confirm(rpc, SIGNATURE)
    assert exc.value.signature == SIGNATURE
    assert [c.args[0] for c in sleep.await_args_list] == [4.0, 5.0, 5.0]


@pytest.mark.asyncio
async def test_confirm_stops_when_blockhash_expires():
    rpc = _rpc(statuses=[None, None])
    rpc.get_block_height = AsyncMock(side_effect=[400, 501])
    settlement, _ = _settlement(rpc, max_confirmation_attempts=10)

    with pytest.raises(ConfirmationTimeout):
        await settlement.confirm(rpc, SIGNATURE, 500)
    assert rpc.get_signature_status.await_count == 2


@pytest.mark.asyncio
async def test_confirm_skips_transient_poll_errors():
    rpc = _rpc(statuses=[UpstreamError("connection reset"), {"confirmationStatus": "confirmed", "err": None}])
    settlement, _ = _settlement(rpc)

    await settlement.confirm(rpc, SIGNATURE, 500)
    assert rpc.get_signature_status.await_count == 2


@pytest.mark.asyncio
async def test_swap_settlement():
    rpc = _rpc()
    jupiter = MagicMock()
    jupiter.build_swap_transaction = AsyncMock(
        return_value=JupiterSwapResult(swap_transaction=SIGNED, last_valid_block_height=900)
    )
    settlement, _ = _settlement(rpc, jupiter=jupiter)
    pending = PendingSwap(
        quote_response={"outAmount": "150250000"},
        input_token="SOL",
        output_token="USDC",
        amount=1.0,
        estimated=150.25,
    )

    result = await settlement.settle_swap(pending, _signer())

    jupiter.build_swap_transaction.assert_awaited_once_with({"outAmount": "150250000"}, WALLET)
    rpc.send_transaction.assert_awaited_once_with(SIGNED, skip_preflight=True, max_retries=3)
    assert result.message == (
        f"Successfully swapped 1 SOL for approximately 150.25 USDC. Transaction ID: {SIGNATURE}"
    )
    assert result.network == "mainnet"


@pytest.mark.asyncio
async def test_swap_rejects_undecodable_transaction():
    jupiter = MagicMock()
    jupiter.build_swap_transaction = AsyncMock(
        return_value=JupiterSwapResult(swap_transaction="%%%not-base64%%%", last_valid_block_height=None)
    )
    settlement, _ = _settlement(_rpc(), jupiter=jupiter)
    signer = _signer()
    pending = PendingSwap(quote_response={}, input_token="SOL", output_token="USDC", amount=1, estimated=1)

    with pytest.raises(SwapBuildError):
        await settlement.settle_swap(pending, signer)
    signer.sign_transaction.assert_not_awaited()


def test_format_amount():
    assert format_amount(1.0) == "1"
    assert format_amount(0.25) == "0.25"
    assert format_amount(0.1 + 0.2) == "0.3"
