"""Base58 helpers and Solana address validation."""

from __future__ import annotations

from functools import lru_cache

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {char: index for index, char in enumerate(_BASE58_ALPHABET)}

PUBLIC_KEY_LENGTH = 32

NETWORKS = ("mainnet", "devnet", "testnet")


def base58_decode(value: str) -> bytes:
    if not value:
        return b""
    num = 0
    for char in value:
        if char not in _BASE58_INDEX:
            raise ValueError("Invalid base58 character")
        num = num * 58 + _BASE58_INDEX[char]
    combined = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    pad = len(value) - len(value.lstrip("1"))
    return b"\x00" * pad + combined


def base58_encode(data: bytes) -> str:
    if not data:
        return ""
    num = int.from_bytes(data, "big")
    encoded = ""
    while num > 0:
        num, rem = divmod(num, 58)
        encoded = _BASE58_ALPHABET[rem] + encoded
    pad = len(data) - len(data.lstrip(b"\x00"))
    return "1" * pad + encoded


@lru_cache(maxsize=256)
def is_valid_solana_address(address: str) -> bool:
    """A Solana address is any base58 string that decodes to a 32-byte key."""
    if not isinstance(address, str) or not address:
        return False
    if len(address) < 32 or len(address) > 44:
        return False
    try:
        return len(base58_decode(address)) == PUBLIC_KEY_LENGTH
    except ValueError:
        return False


def public_key_bytes(address: str) -> bytes:
    """Decode an address into raw key bytes, raising ValueError if malformed."""
    if not is_valid_solana_address(address):
        raise ValueError(f"Invalid Solana address: {address}")
    return base58_decode(address)


def normalize_network(network: str | None, default: str = "devnet") -> str:
    if not network:
        return default
    value = network.lower().strip()
    if value in ("mainnet-beta", "main"):
        return "mainnet"
    return value
