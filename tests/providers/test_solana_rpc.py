import json

import httpx
import pytest

from solmate.core.errors import RateLimitExceeded, UpstreamError
from solmate.providers.solana import SolanaRpcClient


def _client(handler):
    return SolanaRpcClient(
        "https://rpc.example.com",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _rpc_handler(results, calls=None):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if calls is not None:
            calls.append(body)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": results[body["method"]]})

    return handler


@pytest.mark.asyncio
async def test_get_balance():
    calls = []
    rpc = _client(_rpc_handler({"getBalance": {"context": {"slot": 1}, "value": 1_500_000_000}}, calls))

    assert await rpc.get_balance("Wallet111") == 1_500_000_000
    assert calls[0]["params"] == ["Wallet111", {"commitment": "confirmed"}]


@pytest.mark.asyncio
async def test_token_accounts_parse_ui_amount():
    account = {
        "pubkey": "Acc111",
        "account": {"data": {"parsed": {"info": {
            "mint": "MintUSDC",
            "owner": "Wallet111",
            "tokenAmount": {"amount": "50000000", "decimals": 6, "uiAmount": 50.0},
        }}}},
    }
    calls = []
    rpc = _client(_rpc_handler({"getTokenAccountsByOwner": {"value": [account]}}, calls))

    accounts = await rpc.get_token_accounts("Wallet111", mint="MintUSDC")

    assert accounts == [{
        "address": "Acc111",
        "mint": "MintUSDC",
        "owner": "Wallet111",
        "amount": 50_000_000,
        "decimals": 6,
        "ui_amount": 50.0,
    }]
    assert calls[0]["params"][1] == {"mint": "MintUSDC"}
    assert calls[0]["params"][2]["encoding"] == "jsonParsed"


@pytest.mark.asyncio
async def test_send_transaction_options():
    calls = []
    rpc = _client(_rpc_handler({"sendTransaction": "Sig111"}, calls))

    assert await rpc.send_transaction("AAAA", skip_preflight=True, max_retries=3) == "Sig111"
    options = calls[0]["params"][1]
    assert options["encoding"] == "base64"
    assert options["skipPreflight"] is True
    assert options["maxRetries"] == 3


@pytest.mark.asyncio
async def test_signature_status_and_blockhash():
    rpc = _client(_rpc_handler({
        "getSignatureStatuses": {"value": [None]},
        "getLatestBlockhash": {"value": {"blockhash": "Hash111", "lastValidBlockHeight": 77}},
    }))

    assert await rpc.get_signature_status("Sig111") is None
    assert await rpc.get_latest_blockhash() == {"blockhash": "Hash111", "lastValidBlockHeight": 77}


@pytest.mark.asyncio
async def test_rpc_error_object_raises():
    def handler(request):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid param"}})

    with pytest.raises(UpstreamError) as exc:
        await _client(handler).get_balance("bad")
    assert exc.value.message == "RPC error: Invalid param"


@pytest.mark.asyncio
async def test_http_errors_map_to_upstream_errors():
    with pytest.raises(RateLimitExceeded):
        await _client(lambda request: httpx.Response(429)).get_block_height()

    with pytest.raises(UpstreamError) as exc:
        await _client(lambda request: httpx.Response(503)).get_block_height()
    assert exc.value.status == 503
