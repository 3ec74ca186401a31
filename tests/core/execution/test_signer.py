import asyncio
import base64

import pytest
from nacl.signing import SigningKey

from conftest import BLOCKHASH, RECIPIENT, WALLET
from solmate.core.errors import UserDeclined, ValidationError
from solmate.core.execution.signer import (
    SIGN_TRANSACTION,
    BrowserRelaySigner,
    SigningRelay,
    WalletSigner,
    verify_signed_transaction,
)
from solmate.core.execution.tx_builder import build_transfer_transaction, encode_compact_u16
from solmate.services.address import base58_encode
from solmate.types import WalletAnswer


def _sign(unsigned_message: bytes, key: SigningKey) -> str:
    signature = key.sign(unsigned_message).signature
    return base64.b64encode(encode_compact_u16(1) + signature + unsigned_message).decode()


async def _wait_for_request(relay: SigningRelay):
    for _ in range(100):
        pending = relay.pending()
        if pending:
            return pending[0]
        await asyncio.sleep(0)
    raise AssertionError("no signing request was parked")


def test_relay_signer_satisfies_protocol():
    assert isinstance(BrowserRelaySigner(SigningRelay(timeout_s=1), WALLET), WalletSigner)


def test_relay_signer_rejects_bad_wallet():
    with pytest.raises(ValidationError):
        BrowserRelaySigner(SigningRelay(timeout_s=1), "not-a-wallet")


def test_verify_signed_transaction(wallet_key):
    unsigned = build_transfer_transaction(WALLET, RECIPIENT, 10, BLOCKHASH)
    signed = _sign(unsigned.message, wallet_key)

    verify_signed_transaction(signed, WALLET, unsigned.message)

    with pytest.raises(ValueError):
        verify_signed_transaction(signed, RECIPIENT)
    with pytest.raises(ValueError):
        verify_signed_transaction(_sign(unsigned.message, SigningKey(bytes([9]) * 32)), WALLET)


@pytest.mark.asyncio
async def test_sign_transaction_round_trip(wallet_key):
    relay = SigningRelay(timeout_s=5)
    signer = BrowserRelaySigner(relay, WALLET)
    unsigned = build_transfer_transaction(WALLET, RECIPIENT, 10, BLOCKHASH)

    task = asyncio.create_task(signer.sign_transaction(unsigned.transaction_b64))
    request = await _wait_for_request(relay)
    assert request.kind == SIGN_TRANSACTION
    assert request.payload == unsigned.transaction_b64

    signed = _sign(unsigned.message, wallet_key)
    relay.resolve(request.id, WalletAnswer(signedTransaction=signed))

    assert await task == signed
    assert relay.pending() == []


@pytest.mark.asyncio
async def test_bad_signature_keeps_request_pending(wallet_key):
    relay = SigningRelay(timeout_s=5)
    signer = BrowserRelaySigner(relay, WALLET)
    unsigned = build_transfer_transaction(WALLET, RECIPIENT, 10, BLOCKHASH)

    task = asyncio.create_task(signer.sign_transaction(unsigned.transaction_b64))
    request = await _wait_for_request(relay)

    forged = _sign(unsigned.message, SigningKey(bytes([3]) * 32))
    with pytest.raises(ValidationError):
        relay.resolve(request.id, WalletAnswer(signedTransaction=forged))
    assert relay.pending() == [request]

    relay.resolve(request.id, WalletAnswer(declined=True))
    with pytest.raises(UserDeclined):
        await task


@pytest.mark.asyncio
async def test_connect_and_sign_message(wallet_key):
    relay = SigningRelay(timeout_s=5)
    signer = BrowserRelaySigner(relay, WALLET)

    connect = asyncio.create_task(signer.connect())
    request = await _wait_for_request(relay)
    relay.resolve(request.id, WalletAnswer(publicKey=WALLET))
    assert await connect == WALLET

    message = b"Sign in to SolMate"
    sign = asyncio.create_task(signer.sign_message(message))
    request = await _wait_for_request(relay)
    signature = wallet_key.sign(message).signature
    relay.resolve(request.id, WalletAnswer(signature=base58_encode(signature)))
    assert await sign == signature


@pytest.mark.asyncio
async def test_unanswered_request_times_out_as_decline():
    relay = SigningRelay(timeout_s=0.01)

    with pytest.raises(UserDeclined):
        await BrowserRelaySigner(relay, WALLET).connect()
    assert relay.pending() == []


def test_unknown_request_id():
    with pytest.raises(KeyError):
        SigningRelay(timeout_s=1).resolve("missing", WalletAnswer(declined=True))


def test_answer_must_carry_something():
    with pytest.raises(ValueError):
        WalletAnswer()
