"""
Response formatting for tool results.

Presentation only: results are never mutated or re-validated here, and an
error is always carried through to the user in some form.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ..providers.llm.base import LLMMessage, LLMProvider
from ..types.requests import ChatMessage
from .tools import catalog
from .tools.models import ToolCallResult

logger = logging.getLogger(__name__)

_ERROR_HINTS = {
    "rate_limited": "An upstream service is rate limiting requests right now, please try again in a minute.",
    "user_declined": "Your wallet did not approve the request, so nothing was sent.",
    "confirmation_timeout": "The transaction was sent but not confirmed in time; check the explorer before retrying.",
}


def results_to_json(results: List[ToolCallResult]) -> str:
    return json.dumps([result.as_payload() for result in results])


def _parse(result: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(result)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _money(value: Any) -> str:
    return f"{float(value):.2f}"


class ResponseFormatter:
    """Turns tool results into chat replies and stored system messages."""

    def __init__(self, llm: Optional[LLMProvider] = None, max_tokens: int = 256):
        self.llm = llm
        self.max_tokens = max_tokens

    async def format_reply(self, results: List[ToolCallResult]) -> str:
        if len(results) == 1 and results[0].ok:
            single = results[0]
            if single.tool == catalog.CHECK_BALANCE:
                return await self.naturalize_balance(single.result)
            return single.result
        return results_to_json(results)

    async def naturalize_balance(self, raw: str) -> str:
        """Rephrase a balance summary through the LLM; fall back to the raw text."""
        if self.llm is None:
            return raw
        try:
            response = await self.llm.generate_response(
                messages=[
                    LLMMessage(role="system", content=catalog.NATURAL_BALANCE_PROMPT),
                    LLMMessage(
                        role="user",
                        content=f"Convert this wallet data into a natural, conversational response: {raw}",
                    ),
                ],
                max_tokens=self.max_tokens,
                temperature=0.2,
            )
        except Exception as e:
            logger.warning("Balance formatting call failed, using raw result: %s", e)
            return raw
        return (response.content or "").strip() or raw

    def tool_message(self, result: ToolCallResult) -> ChatMessage:
        return ChatMessage(role="system", content=self.render(result))

    def render(self, result: ToolCallResult) -> str:
        if not result.ok:
            text = f"Operation failed: {result.error}"
            hint = _ERROR_HINTS.get(result.error_code or "")
            return f"{text}. {hint}" if hint else text

        data = _parse(result.result)
        if data is None:
            return result.result

        if result.tool == catalog.CHECK_CRYPTO_PRICE and "price" in data:
            return f"The current price of {data.get('symbol')} is ${_money(data['price'])} USD"

        if result.tool == catalog.TRACK_CRYPTO_PRICE and "trackingId" in data:
            return (
                f"Now tracking {data.get('symbol')} price.\n"
                f"Current price: ${_money(data.get('currentPrice', 0))}\n"
                f"Will alert when price goes {data.get('condition')} ${_money(data.get('targetPrice', 0))}"
            )

        if data.get("type") == "PENDING_TRANSACTION":
            return (
                f"Ready to send {data.get('amount')} SOL to {data.get('recipient')} "
                f"on {data.get('network', 'devnet')}. Approve the transaction in your wallet to continue."
            )

        if data.get("type") == "PENDING_SWAP":
            return (
                f"Ready to swap {data.get('amount')} {data.get('inputToken')} for approximately "
                f"{data.get('estimated')} {data.get('outputToken')}. Approve the swap in your wallet to continue."
            )

        return result.result
