"""
Solana JSON-RPC client.

Thin async wrapper over the handful of RPC methods the wallet tools need:
balance reads, token accounts, blockhash, broadcast and signature status.
Requests are made once; callers that want resends (settlement) loop
themselves.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.errors import RateLimitExceeded, UpstreamError
from .base import Provider

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
LAMPORTS_PER_SOL = 1_000_000_000


class SolanaRpcClient(Provider):
    """JSON-RPC client for a single Solana cluster."""

    name = "solana-rpc"
    timeout_s = 20

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        *,
        commitment: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.rpc_url = rpc_url or settings.solana_rpc_url
        self.commitment = commitment or settings.solana_commitment
        if timeout_s is not None:
            self.timeout_s = timeout_s
        self._client = client
        self._request_id = 0

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        try:
            await self._rpc_call("getHealth", [])
            return self.health("healthy", url=self.rpc_url)
        except Exception as e:
            return self.health_error(e)

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make one RPC call and return its ``result`` member."""
        client = await self._get_client()
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        try:
            response = await client.post(
                self.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise RateLimitExceeded(f"Solana RPC rate limit exceeded ({method})", provider=self.name) from e
            raise UpstreamError(f"Solana RPC HTTP error {status} ({method})", provider=self.name, status=status) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Solana RPC request failed ({method}): {e}", provider=self.name) from e

        if "error" in data:
            error = data["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise UpstreamError(f"RPC error: {message}", provider=self.name)

        return data.get("result")

    async def get_balance(self, address: str) -> int:
        """Native balance in lamports."""
        result = await self._rpc_call(
            "getBalance",
            [address, {"commitment": self.commitment}],
        )
        return int((result or {}).get("value", 0))

    async def get_token_accounts(
        self,
        owner: str,
        mint: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """SPL token accounts for an owner, optionally filtered to one mint."""
        filter_option = {"mint": mint} if mint else {"programId": TOKEN_PROGRAM_ID}

        result = await self._rpc_call(
            "getTokenAccountsByOwner",
            [
                owner,
                filter_option,
                {"encoding": "jsonParsed", "commitment": self.commitment},
            ],
        )

        accounts = []
        for item in (result or {}).get("value", []):
            parsed = item.get("account", {}).get("data", {}).get("parsed", {})
            info = parsed.get("info", {})
            token_amount = info.get("tokenAmount", {})
            ui_amount = token_amount.get("uiAmount")
            accounts.append({
                "address": item.get("pubkey"),
                "mint": info.get("mint"),
                "owner": info.get("owner"),
                "amount": int(token_amount.get("amount", 0)),
                "decimals": token_amount.get("decimals", 0),
                "ui_amount": float(ui_amount) if ui_amount is not None else 0.0,
            })

        return accounts

    async def get_latest_blockhash(self) -> Dict[str, Any]:
        result = await self._rpc_call(
            "getLatestBlockhash",
            [{"commitment": self.commitment}],
        )
        value = (result or {}).get("value", {})
        blockhash = value.get("blockhash")
        if not blockhash:
            raise UpstreamError("RPC returned no blockhash", provider=self.name)
        return {
            "blockhash": blockhash,
            "lastValidBlockHeight": value.get("lastValidBlockHeight"),
        }

    async def get_block_height(self) -> int:
        result = await self._rpc_call("getBlockHeight", [{"commitment": self.commitment}])
        return int(result or 0)

    async def send_transaction(
        self,
        signed_transaction: str,
        *,
        skip_preflight: bool = False,
        max_retries: Optional[int] = None,
    ) -> str:
        """Broadcast a base64 encoded signed transaction and return its signature."""
        options: Dict[str, Any] = {
            "encoding": "base64",
            "skipPreflight": skip_preflight,
            "preflightCommitment": self.commitment,
        }
        if max_retries is not None:
            options["maxRetries"] = max_retries

        signature = await self._rpc_call("sendTransaction", [signed_transaction, options])
        if not signature:
            raise UpstreamError("No signature returned from sendTransaction", provider=self.name)
        return str(signature)

    async def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        """Status entry for a signature, or None while the cluster has not seen it."""
        result = await self._rpc_call(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": False}],
        )
        statuses = (result or {}).get("value") or []
        return statuses[0] if statuses else None


_rpc_clients: Dict[str, SolanaRpcClient] = {}


def get_rpc_client(network: Optional[str] = None) -> SolanaRpcClient:
    """Shared RPC client for a network name (mainnet, devnet, testnet)."""
    url = settings.rpc_url_for(network)
    client = _rpc_clients.get(url)
    if client is None:
        client = SolanaRpcClient(url, timeout_s=settings.request_timeout_seconds)
        _rpc_clients[url] = client
    return client


async def close_rpc_clients() -> None:
    for client in list(_rpc_clients.values()):
        await client.close()
    _rpc_clients.clear()
