from typing import List, Dict, Any, Optional, Tuple
import time

import anthropic
from anthropic import AsyncAnthropic

from .base import (
    LLMProvider, LLMMessage, LLMResponse,
    LLMProviderError, LLMProviderAPIError, LLMProviderAuthError, LLMProviderRateLimitError,
    ToolDefinition, ToolCall,
)

WALLET_UPDATE_PREFIX = "Wallet update: "


def split_system_prompt(messages: List[LLMMessage]) -> Tuple[str, List[LLMMessage]]:
    """Separate system text from the turns Claude sees as conversation.

    System lines with no user message after them (the persona prompt and the
    connected-address line) become the system prompt. Tool output stored
    between earlier turns stays in place as user context so the order of
    balances, prices and confirmations is kept.
    """
    last_user = max((i for i, msg in enumerate(messages) if msg.role == "user"), default=-1)
    leading = True
    system_parts: List[str] = []
    turns: List[LLMMessage] = []

    for index, msg in enumerate(messages):
        if msg.role == "system" and (leading or index > last_user):
            if msg.content:
                system_parts.append(msg.content)
            continue
        leading = False
        if msg.role in ("system", "tool"):
            turns.append(LLMMessage(role="user", content=WALLET_UPDATE_PREFIX + (msg.content or "")))
        else:
            turns.append(msg)

    return "\n\n".join(system_parts), turns


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider with native tool calling"""

    name = "anthropic"
    supports_tools: bool = True

    def __init__(self, api_key: str, model: Optional[str] = None, **kwargs):
        if not model:
            raise ValueError("AnthropicProvider requires a model to be specified")

        super().__init__(api_key, model, **kwargs)

    def _setup_client(self, **kwargs) -> None:
        self.client = kwargs.get("client") or AsyncAnthropic(api_key=self.api_key)

    def _convert_turns(self, turns: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Claude needs alternating roles starting with ``user``; adjacent turns are merged."""
        converted: List[Dict[str, Any]] = []
        for msg in turns:
            if msg.role == "assistant" and msg.tool_calls:
                content: List[Dict[str, Any]] = []
                if msg.content:
                    content.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls:
                    content.append({"type": "tool_use", "id": tc.id, "name": tc.name, "input": tc.arguments})
                converted.append({"role": "assistant", "content": content})
                continue

            text = msg.content or ""
            if not text:
                continue
            if not converted and msg.role == "assistant":
                continue
            previous = converted[-1] if converted else None
            if previous and previous["role"] == msg.role and isinstance(previous["content"], str):
                previous["content"] = f"{previous['content']}\n\n{text}"
            else:
                converted.append({"role": msg.role, "content": text})
        return converted

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[ToolDefinition]] = None,
        **kwargs
    ) -> LLMResponse:
        """Generate a response from Claude with optional tool calling"""
        start_time = time.time()

        system_prompt, turns = split_system_prompt(messages)
        request_params: Dict[str, Any] = {
            "model": self.model,
            "messages": self._convert_turns(turns),
            "max_tokens": max_tokens or 1024,
        }
        if system_prompt:
            request_params["system"] = system_prompt
        if temperature is not None:
            request_params["temperature"] = temperature
        if tools:
            request_params["tools"] = [t.to_anthropic_format() for t in tools]
        request_params.update(kwargs)

        try:
            response = await self.client.messages.create(**request_params)
        except anthropic.AuthenticationError as e:
            raise LLMProviderAuthError(f"Authentication failed: {e}") from e
        except anthropic.RateLimitError as e:
            raise LLMProviderRateLimitError(f"Rate limit exceeded: {e}") from e
        except anthropic.APIError as e:
            raise LLMProviderAPIError(f"API error: {e}") from e

        text_parts: List[str] = []
        tool_calls: List[ToolCall] = []
        for block in response.content or []:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                text_parts.append(block.text)
            elif block_type == "tool_use":
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=block.input or {}))

        if not text_parts and not tool_calls and response.stop_reason == "max_tokens":
            raise LLMProviderError("Claude stopped at max_tokens before producing output")

        usage = getattr(response, "usage", None)
        return LLMResponse(
            content="".join(text_parts) or None,
            tool_calls=tool_calls or None,
            tokens_used=(usage.input_tokens + usage.output_tokens) if usage else None,
            model=self.model,
            finish_reason=response.stop_reason,
            response_time_ms=self._measure_time(start_time),
        )

    async def health_check(self) -> Dict[str, Any]:
        try:
            response = await self.generate_response(
                messages=[LLMMessage(role="user", content="ping")],
                max_tokens=8,
                temperature=0,
            )
        except LLMProviderRateLimitError:
            return {"status": "degraded", "provider": self.name, "model": self.model, "error": "rate_limited"}
        except LLMProviderError as e:
            return {"status": "error", "provider": self.name, "model": self.model, "error": str(e)}
        return {
            "status": "healthy",
            "provider": self.name,
            "model": self.model,
            "response_time_ms": response.response_time_ms,
        }

    async def close(self) -> None:
        await self.client.close()
