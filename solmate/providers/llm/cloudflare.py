"""Async LLM provider for the Cloudflare Workers AI ``/ai/run`` endpoint."""

from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Optional

import httpx

from .base import (
    LLMMessage,
    LLMProvider,
    LLMProviderAPIError,
    LLMProviderAuthError,
    LLMProviderError,
    LLMProviderRateLimitError,
    LLMResponse,
    ToolCall,
    ToolDefinition,
)


class CloudflareWorkersAIProvider(LLMProvider):
    """Workers AI chat provider with function calling."""

    name = "cloudflare"
    supports_tools = True

    def __init__(
        self,
        api_key: str,
        model: str = "@cf/meta/llama-3.3-70b-instruct-fp8-fast",
        *,
        account_id: str,
        base_url: str | None = None,
        timeout: float = 40.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs: Any,
    ) -> None:
        if not account_id:
            raise ValueError("CloudflareWorkersAIProvider requires an account id")
        self.account_id = account_id
        self.base_url = (base_url or "https://api.cloudflare.com/client/v4").rstrip("/")
        self.timeout = timeout
        self._transport = transport
        super().__init__(api_key, model, **kwargs)

    def _setup_client(self, **kwargs: Any) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

    @property
    def _run_path(self) -> str:
        return f"/accounts/{self.account_id}/ai/run/{self.model}"

    async def _post(self, path: str, json: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(path, json=json)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            message = exc.response.text
            if status in (401, 403):
                raise LLMProviderAuthError(f"Workers AI authentication failed: {message}") from exc
            if status == 429:
                raise LLMProviderRateLimitError("Workers AI rate limit exceeded") from exc
            raise LLMProviderAPIError(f"Workers AI API error ({status}): {message}") from exc
        except httpx.RequestError as exc:
            raise LLMProviderAPIError(f"Workers AI request error: {exc}") from exc

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[ToolDefinition]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        start_time = time.time()

        payload = self._build_payload(
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            tools=tools,
            extra=kwargs,
        )

        data = await self._post(self._run_path, json=payload)

        if data.get("success") is False:
            errors = data.get("errors") or []
            raise LLMProviderError(f"Workers AI request unsuccessful: {errors}")

        result = data.get("result")
        if not isinstance(result, dict):
            raise LLMProviderError("Workers AI response missing result")

        content = self._normalize_content(result.get("response"))
        tool_calls = self._parse_tool_calls(result.get("tool_calls"))

        usage = result.get("usage") or {}
        return LLMResponse(
            content=content or None,
            tool_calls=tool_calls or None,
            tokens_used=usage.get("total_tokens"),
            model=self.model,
            finish_reason="tool_use" if tool_calls else "end_turn",
            response_time_ms=self._measure_time(start_time),
        )

    async def health_check(self) -> Dict[str, Any]:
        try:
            response = await self.generate_response(
                messages=[LLMMessage(role="user", content="ping")],
                max_tokens=4,
                temperature=0.0,
            )
            return {
                "status": "healthy",
                "provider": self.name,
                "model": self.model,
                "response_preview": (response.content or "")[:32],
            }
        except LLMProviderAuthError as exc:
            return {
                "status": "error",
                "provider": self.name,
                "model": self.model,
                "error": str(exc),
            }
        except LLMProviderRateLimitError:
            return {
                "status": "degraded",
                "provider": self.name,
                "model": self.model,
                "error": "rate_limited",
            }
        except Exception as exc:
            return {
                "status": "error",
                "provider": self.name,
                "model": self.model,
                "error": str(exc),
            }

    async def close(self) -> None:
        await self._client.aclose()

    def _build_payload(
        self,
        *,
        messages: List[LLMMessage],
        max_tokens: Optional[int],
        temperature: Optional[float],
        tools: Optional[List[ToolDefinition]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "messages": [self._convert_message(msg) for msg in messages],
        }

        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature
        if tools:
            payload["tools"] = [tool.to_openai_format() for tool in tools]

        if extra:
            for key, value in extra.items():
                if value is not None:
                    payload[key] = value

        return payload

    def _convert_message(self, msg: LLMMessage) -> Dict[str, Any]:
        if msg.role == "assistant" and msg.tool_calls:
            calls = [{"name": tc.name, "arguments": tc.arguments} for tc in msg.tool_calls]
            return {"role": "assistant", "content": msg.content or json.dumps(calls)}
        return {"role": msg.role, "content": msg.content or ""}

    def _parse_tool_calls(self, raw: Any) -> List[ToolCall]:
        if not isinstance(raw, list):
            return []

        calls: List[ToolCall] = []
        for index, item in enumerate(raw):
            if not isinstance(item, dict):
                continue
            # Workers AI returns {name, arguments}; OpenAI-compatible models nest under "function"
            function = item.get("function") if isinstance(item.get("function"), dict) else item
            name = function.get("name")
            if not name:
                continue
            arguments = function.get("arguments") or {}
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments)
                except json.JSONDecodeError:
                    self.logger.warning("Unparseable tool arguments for %s: %s", name, arguments)
                    arguments = {}
            calls.append(ToolCall(
                id=item.get("id") or f"call_{index}",
                name=name,
                arguments=arguments if isinstance(arguments, dict) else {},
            ))
        return calls

    def _normalize_content(self, content: Any) -> str:
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: List[str] = []
            for item in content:
                if isinstance(item, str):
                    parts.append(item)
                elif isinstance(item, dict) and item.get("text") is not None:
                    parts.append(str(item["text"]))
            return "".join(parts)
        return json.dumps(content)
