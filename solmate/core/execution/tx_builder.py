"""
Solana wire-format helpers.

Builds the unsigned legacy System Program transfer and pulls apart signed
transactions (legacy or v0) far enough to verify and identify them. Layout:

    transaction = compact_u16(n) || n * signature(64) || message
    legacy msg  = header(3) || compact_u16(k) || k * key(32) || blockhash(32) || instructions
    v0 msg      = 0x80 || <legacy layout> || address table lookups
"""

import base64
import struct
from dataclasses import dataclass
from typing import List, Tuple

from ...services.address import base58_decode, base58_encode, public_key_bytes
from ..swap.constants import MAX_BASE_UNITS

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
SIGNATURE_LENGTH = 64
SYSTEM_TRANSFER_INSTRUCTION = 2
VERSION_PREFIX_MASK = 0x80


def encode_compact_u16(value: int) -> bytes:
    """Solana's "shortvec" varint: 7 bits per byte, little-endian, max 3 bytes."""
    if value < 0 or value > 0xFFFF:
        raise ValueError(f"compact-u16 out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_compact_u16(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Return ``(value, bytes_consumed)``."""
    value = 0
    for index in range(3):
        if offset + index >= len(data):
            raise ValueError("Truncated compact-u16")
        byte = data[offset + index]
        value |= (byte & 0x7F) << (7 * index)
        if not byte & 0x80:
            return value, index + 1
    raise ValueError("compact-u16 longer than 3 bytes")


@dataclass
class UnsignedTransfer:
    """Unsigned wire transaction and the message bytes the wallet signs."""
    transaction_b64: str
    message: bytes
    from_address: str
    to_address: str
    lamports: int
    blockhash: str


def build_transfer_message(from_address: str, to_address: str, lamports: int, blockhash: str) -> bytes:
    if lamports <= 0:
        raise ValueError("Transfer amount must be at least 1 lamport")
    if lamports > MAX_BASE_UNITS:
        raise ValueError(f"Transfer amount does not fit in a u64: {lamports} lamports")
    if from_address == to_address:
        raise ValueError("Sender and recipient must differ")

    sender = public_key_bytes(from_address)
    recipient = public_key_bytes(to_address)
    recent_blockhash = base58_decode(blockhash)
    if len(recent_blockhash) != 32:
        raise ValueError(f"Invalid blockhash: {blockhash}")

    # 1 required signature (payer), 0 readonly signed, 1 readonly unsigned (system program)
    header = bytes([1, 0, 1])
    keys = [sender, recipient, base58_decode(SYSTEM_PROGRAM_ID)]

    data = struct.pack("<IQ", SYSTEM_TRANSFER_INSTRUCTION, lamports)
    instruction = (
        bytes([2])                      # program id index
        + encode_compact_u16(2) + bytes([0, 1])
        + encode_compact_u16(len(data)) + data
    )

    return (
        header
        + encode_compact_u16(len(keys)) + b"".join(keys)
        + recent_blockhash
        + encode_compact_u16(1) + instruction
    )


def build_transfer_transaction(from_address: str, to_address: str, lamports: int, blockhash: str) -> UnsignedTransfer:
    """Legacy transfer with one empty signature slot for the fee payer."""
    message = build_transfer_message(from_address, to_address, lamports, blockhash)
    wire = encode_compact_u16(1) + bytes(SIGNATURE_LENGTH) + message
    return UnsignedTransfer(
        transaction_b64=base64.b64encode(wire).decode("ascii"),
        message=message,
        from_address=from_address,
        to_address=to_address,
        lamports=lamports,
        blockhash=blockhash,
    )


# =============================================================================
# Parsing
# =============================================================================

def decode_transaction(transaction_b64: str) -> bytes:
    try:
        raw = base64.b64decode(transaction_b64, validate=True)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Transaction is not valid base64: {e}") from e
    if not raw:
        raise ValueError("Transaction is empty")
    return raw


def split_transaction(raw: bytes) -> Tuple[List[bytes], bytes]:
    """Return ``(signatures, message_bytes)`` for a wire transaction."""
    count, consumed = decode_compact_u16(raw)
    start = consumed
    end = start + count * SIGNATURE_LENGTH
    if end > len(raw):
        raise ValueError("Transaction shorter than its signature section")
    signatures = [raw[start + i * SIGNATURE_LENGTH: start + (i + 1) * SIGNATURE_LENGTH] for i in range(count)]
    return signatures, raw[end:]


def message_account_keys(message: bytes) -> List[bytes]:
    offset = 1 if message and message[0] & VERSION_PREFIX_MASK else 0
    offset += 3  # header
    count, consumed = decode_compact_u16(message, offset)
    offset += consumed
    if offset + count * 32 > len(message):
        raise ValueError("Message shorter than its account key list")
    return [message[offset + i * 32: offset + (i + 1) * 32] for i in range(count)]


def fee_payer(message: bytes) -> str:
    keys = message_account_keys(message)
    if not keys:
        raise ValueError("Message has no account keys")
    return base58_encode(keys[0])


def first_signature(transaction_b64: str) -> str:
    """Base58 signature of the fee payer, which is also the transaction id."""
    signatures, _ = split_transaction(decode_transaction(transaction_b64))
    if not signatures or signatures[0] == bytes(SIGNATURE_LENGTH):
        raise ValueError("Transaction is not signed")
    return base58_encode(signatures[0])
