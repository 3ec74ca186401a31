import json

import httpx
import pytest

from solmate.core.errors import RateLimitExceeded, SwapBuildError, SwapQuoteError
from solmate.core.swap.constants import NATIVE_SOL_MINT, USDC_MINT
from solmate.providers.jupiter import JupiterSwapProvider

QUOTE = {
    "inputMint": NATIVE_SOL_MINT,
    "outputMint": USDC_MINT,
    "inAmount": "1000000000",
    "outAmount": "150250000",
    "otherAmountThreshold": "149498750",
    "slippageBps": 50,
    "priceImpactPct": "0.001",
    "routePlan": [],
}


def _provider(handler):
    return JupiterSwapProvider(
        "https://jup.example.com/v6",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_quote_request_and_parse():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=QUOTE)

    quote = await _provider(handler).get_quote(NATIVE_SOL_MINT, USDC_MINT, 1_000_000_000, slippage_bps=50)

    assert seen["path"] == "/v6/quote"
    assert seen["params"]["inputMint"] == NATIVE_SOL_MINT
    assert seen["params"]["amount"] == "1000000000"
    assert seen["params"]["slippageBps"] == "50"
    assert quote.out_amount == 150_250_000
    assert quote.other_amount_threshold == 149_498_750
    assert quote.raw == QUOTE


@pytest.mark.asyncio
async def test_quote_errors():
    with pytest.raises(RateLimitExceeded):
        await _provider(lambda r: httpx.Response(429)).get_quote("a", "b", 1)

    with pytest.raises(SwapQuoteError):
        await _provider(lambda r: httpx.Response(400, json={"error": "No route"})).get_quote("a", "b", 1)

    with pytest.raises(SwapQuoteError):
        await _provider(lambda r: httpx.Response(200, json={"inputMint": "a"})).get_quote("a", "b", 1)


@pytest.mark.asyncio
async def test_build_swap_transaction():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"swapTransaction": "AQID", "lastValidBlockHeight": 123})

    result = await _provider(handler).build_swap_transaction(QUOTE, "Wallet111")

    assert seen["body"]["quoteResponse"] == QUOTE
    assert seen["body"]["userPublicKey"] == "Wallet111"
    assert seen["body"]["wrapAndUnwrapSol"] is True
    assert result.swap_transaction == "AQID"
    assert result.last_valid_block_height == 123


@pytest.mark.asyncio
async def test_build_simulation_error_is_failure():
    response = {"swapTransaction": "AQID", "simulationError": {"error": "insufficient funds"}}

    with pytest.raises(SwapBuildError):
        await _provider(lambda r: httpx.Response(200, json=response)).build_swap_transaction(QUOTE, "Wallet111")


@pytest.mark.asyncio
async def test_build_requires_quote():
    with pytest.raises(SwapBuildError):
        await _provider(lambda r: httpx.Response(200)).build_swap_transaction({}, "Wallet111")
