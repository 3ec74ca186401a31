from unittest.mock import AsyncMock, MagicMock

import pytest
from nacl.signing import SigningKey

from solmate.core.operations import WalletOperations
from solmate.core.tools.executor import ToolExecutor
from solmate.core.tools.registry import ToolRegistry
from solmate.providers.jupiter import JupiterQuote
from solmate.services.address import base58_encode
from solmate.services.price_tracker import PriceTracker


def address_for(seed: int) -> str:
    key = SigningKey(bytes([seed]) * 32)
    return base58_encode(key.verify_key.encode())


WALLET = address_for(1)
RECIPIENT = address_for(2)
BLOCKHASH = base58_encode(bytes(range(32)))


@pytest.fixture
def wallet_key() -> SigningKey:
    return SigningKey(bytes([1]) * 32)


@pytest.fixture
def rpc():
    client = MagicMock()
    client.name = "solana-rpc"
    client.get_balance = AsyncMock(return_value=1_500_000_000)
    client.get_token_accounts = AsyncMock(return_value=[{"mint": "usdc", "ui_amount": 50.0}])
    return client


@pytest.fixture
def market():
    provider = MagicMock()
    provider.get_simple_price = AsyncMock(return_value=100.0)
    return provider


@pytest.fixture
def jupiter():
    provider = MagicMock()
    raw = {
        "inputMint": "So11111111111111111111111111111111111111112",
        "outputMint": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        "inAmount": "1000000000",
        "outAmount": "150250000",
        "slippageBps": 50,
    }
    provider.get_quote = AsyncMock(return_value=JupiterQuote.from_api(raw, 50))
    return provider


@pytest.fixture
def prices():
    service = MagicMock()
    service.get_quote = AsyncMock()
    service.get_fresh_price = AsyncMock(return_value=49000.0)
    return service


@pytest.fixture
def tracker(prices):
    return PriceTracker(prices.get_fresh_price, poll_interval=3600)


@pytest.fixture
def operations(rpc, market, jupiter, prices, tracker):
    return WalletOperations(rpc=rpc, market=market, jupiter=jupiter, prices=prices, tracker=tracker)


@pytest.fixture
def executor(operations):
    return ToolExecutor(ToolRegistry(operations))
