from solmate.core.tools import catalog


def _by_name():
    return {tool.name: tool for tool in catalog.TOOL_DEFINITIONS}


def test_catalog_names_and_required_fields():
    tools = _by_name()

    assert set(tools) == {"checkBalance", "transferSol", "swapTokens", "checkCryptoPrice", "trackCryptoPrice"}
    assert tools["checkBalance"].required == ["address"]
    assert tools["transferSol"].required == ["recipient", "amount"]
    assert tools["swapTokens"].required == ["inputToken", "outputToken", "amount"]
    assert tools["checkCryptoPrice"].required == ["symbol"]
    assert tools["trackCryptoPrice"].required == ["symbol", "targetPrice", "condition"]


def test_openai_format():
    swap = catalog.get_tool_definition("swapTokens").to_openai_format()

    assert swap["type"] == "function"
    function = swap["function"]
    assert function["name"] == "swapTokens"
    assert function["parameters"]["type"] == "object"
    assert function["parameters"]["properties"]["inputToken"]["enum"] == ["SOL", "USDC"]
    assert function["parameters"]["required"] == ["inputToken", "outputToken", "amount"]


def test_anthropic_format():
    track = next(t for t in catalog.to_anthropic_format() if t["name"] == "trackCryptoPrice")

    schema = track["input_schema"]
    assert schema["properties"]["condition"]["enum"] == ["above", "below"]
    assert "volatilityThreshold" in schema["properties"]
    assert "volatilityThreshold" not in schema["required"]


def test_system_prompt_mentions_wallet_tools():
    assert "Solana" in catalog.SYSTEM_PROMPT
    assert len(catalog.to_openai_format()) == len(catalog.TOOL_NAMES)
