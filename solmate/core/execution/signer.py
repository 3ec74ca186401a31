"""
Wallet signing capability.

The service never holds keys. ``WalletSigner`` is what settlement talks to;
``BrowserRelaySigner`` implements it by parking each request in a
``SigningRelay`` until the user's browser wallet answers over HTTP
(``GET /wallet/requests`` then ``POST /wallet/requests/{id}``).

Answers are checked before they resolve anything: signed transactions and
message signatures must verify (ed25519) against the wallet's key. A bad
answer is rejected and the request stays pending; a decline or a timeout
raises ``UserDeclined`` in the waiting settlement.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from ...config import settings
from ...services.address import base58_decode, is_valid_solana_address, public_key_bytes
from ...types.requests import WalletAnswer
from ..errors import UserDeclined, ValidationError
from .tx_builder import (
    SIGNATURE_LENGTH,
    decode_transaction,
    message_account_keys,
    split_transaction,
)

logger = logging.getLogger(__name__)

CONNECT = "connect"
SIGN_TRANSACTION = "sign_transaction"
SIGN_AND_SEND = "sign_and_send_transaction"
SIGN_MESSAGE = "sign_message"


@runtime_checkable
class WalletSigner(Protocol):
    """Browser wallet capability. Every method raises ``UserDeclined`` on refusal."""

    async def connect(self) -> str:
        """Return the wallet public key (base58)."""
        ...

    async def sign_transaction(self, transaction_b64: str) -> str:
        """Return the signed wire transaction (base64)."""
        ...

    async def sign_and_send_transaction(self, transaction_b64: str) -> str:
        """Let the wallet broadcast; return the transaction signature (base58)."""
        ...

    async def sign_message(self, message: bytes) -> bytes:
        """Return the raw 64-byte ed25519 signature."""
        ...


# =============================================================================
# Verification helpers
# =============================================================================

def decode_signature(signature: str) -> bytes:
    candidate = (signature or "").strip()
    if not candidate:
        raise ValueError("Signature is empty")
    try:
        return base58_decode(candidate)
    except ValueError:
        pass
    try:
        return base64.b64decode(candidate, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise ValueError("Unsupported signature encoding") from exc


def verify_signature(wallet: str, message: bytes, signature: bytes) -> None:
    if len(signature) != SIGNATURE_LENGTH:
        raise ValueError("Signature must be 64 bytes")
    try:
        VerifyKey(public_key_bytes(wallet)).verify(message, signature)
    except BadSignatureError as exc:
        raise ValueError("Invalid wallet signature") from exc


def verify_signed_transaction(signed_b64: str, wallet: str, expected_message: Optional[bytes] = None) -> None:
    """Check the wallet's slot in a signed transaction; raises ValueError."""
    signatures, message = split_transaction(decode_transaction(signed_b64))
    if expected_message is not None and message != expected_message:
        raise ValueError("Signed transaction does not match the requested transaction")

    keys = message_account_keys(message)
    wallet_key = public_key_bytes(wallet)
    if wallet_key not in keys:
        raise ValueError("Wallet is not a signer of this transaction")
    index = keys.index(wallet_key)
    if index >= len(signatures):
        raise ValueError("Wallet is not a required signer of this transaction")
    verify_signature(wallet, message, signatures[index])


# =============================================================================
# Relay
# =============================================================================

@dataclass
class SigningRequest:
    id: str
    wallet: str
    kind: str
    payload: Optional[str]
    future: asyncio.Future
    message: Optional[bytes] = None
    created_at: float = field(default_factory=time.time)
    expires_at: float = 0.0

    def view(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "wallet": self.wallet,
            "kind": self.kind,
            "payload": self.payload,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }


class SigningRelay:
    """Pending signing requests, answered by the browser."""

    def __init__(self, timeout_s: Optional[float] = None) -> None:
        self.timeout_s = settings.wallet_signature_timeout_seconds if timeout_s is None else timeout_s
        self._requests: Dict[str, SigningRequest] = {}

    def pending(self, wallet: Optional[str] = None) -> List[SigningRequest]:
        return [
            req for req in self._requests.values()
            if not req.future.done() and (wallet is None or req.wallet == wallet)
        ]

    def get(self, request_id: str) -> Optional[SigningRequest]:
        return self._requests.get(request_id)

    async def request(
        self,
        wallet: str,
        kind: str,
        payload: Optional[str] = None,
        message: Optional[bytes] = None,
    ) -> Any:
        loop = asyncio.get_running_loop()
        req = SigningRequest(
            id=uuid.uuid4().hex,
            wallet=wallet,
            kind=kind,
            payload=payload,
            future=loop.create_future(),
            message=message,
        )
        req.expires_at = req.created_at + self.timeout_s
        self._requests[req.id] = req
        logger.info("Signing request %s (%s) parked for %s", req.id, kind, wallet)

        try:
            return await asyncio.wait_for(req.future, timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.info("Signing request %s expired", req.id)
            raise UserDeclined(f"Wallet did not respond within {self.timeout_s:.0f} seconds")
        finally:
            self._requests.pop(req.id, None)

    def resolve(self, request_id: str, answer: WalletAnswer) -> None:
        """Apply a browser answer. Raises KeyError for unknown ids, ValidationError for bad answers."""
        req = self._requests.get(request_id)
        if req is None or req.future.done():
            raise KeyError(request_id)

        if answer.declined:
            req.future.set_exception(UserDeclined(answer.reason or "User rejected the request"))
            logger.info("Signing request %s declined", request_id)
            return

        try:
            result = self._check_answer(req, answer)
        except ValueError as exc:
            raise ValidationError(str(exc), field="answer") from exc

        req.future.set_result(result)
        logger.info("Signing request %s answered", request_id)

    def _check_answer(self, req: SigningRequest, answer: WalletAnswer) -> Any:
        if req.kind == CONNECT:
            key = answer.public_key
            if not key or not is_valid_solana_address(key):
                raise ValueError("Connect answer needs a valid publicKey")
            if req.wallet and key != req.wallet:
                raise ValueError("Connected wallet does not match the requesting wallet")
            return key

        if req.kind == SIGN_TRANSACTION:
            if not answer.signed_transaction:
                raise ValueError("signedTransaction is required")
            verify_signed_transaction(answer.signed_transaction, req.wallet, req.message)
            return answer.signed_transaction

        if req.kind == SIGN_AND_SEND:
            if not answer.signature:
                raise ValueError("signature is required")
            # The wallet may rewrite the message before sending, so only the shape is checked
            if len(decode_signature(answer.signature)) != SIGNATURE_LENGTH:
                raise ValueError("Signature must be 64 bytes")
            return answer.signature

        if req.kind == SIGN_MESSAGE:
            if not answer.signature:
                raise ValueError("signature is required")
            signature = decode_signature(answer.signature)
            verify_signature(req.wallet, req.message or b"", signature)
            return signature

        raise ValueError(f"Unknown request kind: {req.kind}")


class BrowserRelaySigner:
    """``WalletSigner`` for one connected wallet, backed by a ``SigningRelay``."""

    def __init__(self, relay: SigningRelay, wallet: str) -> None:
        if not is_valid_solana_address(wallet):
            raise ValidationError(f"Invalid wallet address: {wallet}", field="wallet")
        self.relay = relay
        self.wallet = wallet

    async def connect(self) -> str:
        return await self.relay.request(self.wallet, CONNECT)

    async def sign_transaction(self, transaction_b64: str) -> str:
        _, message = split_transaction(decode_transaction(transaction_b64))
        return await self.relay.request(self.wallet, SIGN_TRANSACTION, transaction_b64, message=message)

    async def sign_and_send_transaction(self, transaction_b64: str) -> str:
        return await self.relay.request(self.wallet, SIGN_AND_SEND, transaction_b64)

    async def sign_message(self, message: bytes) -> bytes:
        return await self.relay.request(
            self.wallet,
            SIGN_MESSAGE,
            base64.b64encode(message).decode("ascii"),
            message=message,
        )
