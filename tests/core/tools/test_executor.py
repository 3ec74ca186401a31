"""
Dispatcher behaviour: validation gating, ordering, error isolation and the
single-result unwrap.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from conftest import RECIPIENT, WALLET
from solmate.core.errors import RateLimitExceeded
from solmate.core.tools import catalog
from solmate.core.tools.executor import collapse_results, encode_result, resolve_tool_calls
from solmate.core.tools.models import PriceQuote, ToolCallResult
from solmate.core.tools.registry import ToolRegistry
from solmate.providers.llm.base import ToolCall


def call(name, **arguments):
    return ToolCall(name=name, arguments=arguments)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "tool_call",
    [
        call("checkBalance", address="not-an-address"),
        call("transferSol", recipient=RECIPIENT, amount=0),
        call("swapTokens", inputToken="SOL", outputToken="SOL", amount=1),
        call("checkCryptoPrice", symbol="$$$"),
        call("trackCryptoPrice", symbol="BTC", targetPrice=-5, condition="above"),
    ],
)
async def test_validation_failure_makes_no_external_calls(executor, rpc, market, jupiter, prices, tool_call):
    result = await executor.execute_single(tool_call)

    assert not result.ok
    assert result.error_code == "validation_error"
    rpc.get_balance.assert_not_awaited()
    rpc.get_token_accounts.assert_not_awaited()
    market.get_simple_price.assert_not_awaited()
    jupiter.get_quote.assert_not_awaited()
    prices.get_quote.assert_not_awaited()
    prices.get_fresh_price.assert_not_awaited()


@pytest.mark.asyncio
async def test_same_token_swap_reports_message(executor, jupiter):
    result = await executor.execute_single(call("swapTokens", inputToken="SOL", outputToken="SOL", amount=1))

    assert result.error == "Cannot swap same tokens"
    jupiter.get_quote.assert_not_awaited()


@pytest.mark.asyncio
async def test_invalid_transfer_recipient(executor, rpc):
    result = await executor.execute_single(call("transferSol", recipient="not-an-address", amount=1))

    assert result.error == "Invalid recipient address: not-an-address"
    assert result.error_code == "validation_error"
    assert rpc.method_calls == []


@pytest.mark.asyncio
async def test_unknown_tool(executor):
    result = await executor.execute_single(call("launchRocket", target="moon"))

    assert result.tool == "launchRocket"
    assert result.error == "Unknown tool: launchRocket"
    assert result.error_code == "unknown_tool"


@pytest.mark.asyncio
async def test_batch_preserves_input_order(executor, prices):
    delays = {"BTC": 0.05, "ETH": 0.01, "SOL": 0.03}

    async def slow_quote(symbol):
        await asyncio.sleep(delays[symbol])
        return PriceQuote(symbol=symbol, price=1.0)

    prices.get_quote = AsyncMock(side_effect=slow_quote)

    results = await executor.execute_batch([call("checkCryptoPrice", symbol=s) for s in ("BTC", "ETH", "SOL")])

    assert [json.loads(r.result)["symbol"] for r in results] == ["BTC", "ETH", "SOL"]


@pytest.mark.asyncio
async def test_middle_failure_is_isolated(executor, prices):
    async def quote(symbol):
        if symbol == "ETH":
            raise RateLimitExceeded(provider="yahoo")
        return PriceQuote(symbol=symbol, price=2.0)

    prices.get_quote = AsyncMock(side_effect=quote)

    results = await executor.execute_batch([call("checkCryptoPrice", symbol=s) for s in ("BTC", "ETH", "SOL")])

    assert results[0].ok and results[2].ok
    assert results[1].error == "Rate limit exceeded"
    assert results[1].error_code == "rate_limited"


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_internal_error(executor, rpc):
    rpc.get_balance = AsyncMock(side_effect=RuntimeError("socket closed"))

    result = await executor.execute_single(call("checkBalance", address=WALLET))

    assert result.error == "socket closed"
    assert result.error_code == "internal_error"


@pytest.mark.asyncio
async def test_single_success_unwraps_to_raw_string(executor):
    resolved = await resolve_tool_calls(executor, [call("transferSol", recipient=RECIPIENT, amount=1)])

    assert isinstance(resolved, str)
    assert json.loads(resolved) == {
        "type": "PENDING_TRANSACTION",
        "recipient": RECIPIENT,
        "amount": 1.0,
        "network": "devnet",
    }


@pytest.mark.asyncio
async def test_single_failure_stays_structured(executor):
    resolved = await resolve_tool_calls(executor, [call("checkBalance", address="bad")])

    assert isinstance(resolved, list)
    assert resolved[0].as_payload() == {"tool": "checkBalance", "error": "Invalid Solana address: bad"}


@pytest.mark.asyncio
async def test_two_successes_stay_structured(executor):
    resolved = await resolve_tool_calls(
        executor,
        [call("transferSol", recipient=RECIPIENT, amount=1), call("transferSol", recipient=RECIPIENT, amount=2)],
    )

    assert isinstance(resolved, list)
    assert all(result.ok for result in resolved)


@pytest.mark.asyncio
async def test_empty_batch(executor):
    assert await resolve_tool_calls(executor, []) == []


def test_collapse_results_rules():
    ok = ToolCallResult(tool="checkCryptoPrice", result="{}")
    failed = ToolCallResult(tool="checkCryptoPrice", error="boom")

    assert collapse_results([ok]) == "{}"
    assert collapse_results([failed]) == [failed]
    assert collapse_results([ok, ok]) == [ok, ok]


def test_tool_call_result_requires_exactly_one_outcome():
    with pytest.raises(ValueError):
        ToolCallResult(tool="x")
    with pytest.raises(ValueError):
        ToolCallResult(tool="x", result="a", error="b")


def test_encode_result():
    assert encode_result("plain") == "plain"
    assert json.loads(encode_result(PriceQuote(symbol="BTC", price=1.5, timestamp="t"))) == {
        "symbol": "BTC",
        "price": 1.5,
        "timestamp": "t",
    }
    assert encode_result({"a": 1}) == '{"a": 1}'


def test_registry_covers_catalog(operations):
    registry = ToolRegistry(operations)

    assert [d.name for d in registry.get_definitions()] == list(catalog.TOOL_NAMES)
    assert registry.has_tool("swapTokens")
    assert not registry.has_tool("bridgeTokens")
