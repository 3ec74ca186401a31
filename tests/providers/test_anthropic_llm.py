from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from solmate.core.tools import catalog
from solmate.providers.llm.anthropic import AnthropicProvider, split_system_prompt
from solmate.providers.llm.base import LLMMessage


def _history():
    return [
        LLMMessage(role="system", content="persona"),
        LLMMessage(role="user", content="price of btc?"),
        LLMMessage(role="system", content="The current price of BTC is $50000.00 USD"),
        LLMMessage(role="user", content="and my balance?"),
        LLMMessage(role="system", content="Connected wallet address: abc"),
    ]


def test_split_system_prompt_keeps_tool_output_in_order():
    system, turns = split_system_prompt(_history())

    assert system == "persona\n\nConnected wallet address: abc"
    assert [(t.role, t.content) for t in turns] == [
        ("user", "price of btc?"),
        ("user", "Wallet update: The current price of BTC is $50000.00 USD"),
        ("user", "and my balance?"),
    ]


@pytest.mark.asyncio
async def test_generate_response_parses_tool_use():
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=SimpleNamespace(
        content=[
            SimpleNamespace(type="text", text="Checking."),
            SimpleNamespace(type="tool_use", id="tu_1", name="checkBalance", input={"address": "abc"}),
        ],
        stop_reason="tool_use",
        usage=SimpleNamespace(input_tokens=120, output_tokens=30),
    ))
    provider = AnthropicProvider(api_key="k", model="claude-sonnet-4-20250514", client=client)

    response = await provider.generate_response(_history(), max_tokens=200, tools=catalog.TOOL_DEFINITIONS)

    params = client.messages.create.await_args.kwargs
    assert params["system"].startswith("persona")
    # consecutive user turns are merged into one
    assert len(params["messages"]) == 1
    assert params["messages"][0]["role"] == "user"
    assert params["tools"][0]["name"] == "checkBalance"
    assert response.content == "Checking."
    assert response.tool_calls[0].name == "checkBalance"
    assert response.tokens_used == 150


def test_requires_model():
    with pytest.raises(ValueError):
        AnthropicProvider(api_key="k", model=None, client=MagicMock())
