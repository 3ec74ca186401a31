"""
Chat turn handling.

One turn: system prompt + conversation + connected wallet line go to the LLM
with the wallet tool catalog attached. Free text is returned as is; tool
calls run through the executor and the formatter decides what the user sees
and which messages are stored on the conversation.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..config import settings
from ..providers.llm import canonical_provider_name, get_llm_provider
from ..providers.llm.base import LLMMessage, LLMProvider, ToolCall
from ..types import ChatMessage, ChatRequest, ChatResponse
from .formatter import ResponseFormatter
from .tools import catalog
from .tools.executor import ToolExecutor
from .tools.models import ToolCallResult

_logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I'm here to help with your Solana wallet. Is there something specific you'd like to know?"
ERROR_REPLY = "I apologize, but I'm experiencing technical difficulties. Please try again in a moment."


@dataclass
class Conversation:
    id: str
    address: Optional[str] = None
    messages: List[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConversationStore:
    """In-memory conversations; persistence lives outside this service."""

    def __init__(self, max_messages: int = 200, max_conversations: int = 1000):
        self.max_messages = max_messages
        self.max_conversations = max_conversations
        self._conversations: Dict[str, Conversation] = {}

    def get(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def get_or_create(self, conversation_id: Optional[str], address: Optional[str] = None) -> Conversation:
        if conversation_id and conversation_id in self._conversations:
            return self._conversations[conversation_id]

        if len(self._conversations) >= self.max_conversations:
            oldest = min(self._conversations.values(), key=lambda c: c.updated_at)
            del self._conversations[oldest.id]

        conversation = Conversation(id=conversation_id or uuid.uuid4().hex, address=address)
        self._conversations[conversation.id] = conversation
        return conversation

    def append(self, conversation: Conversation, messages: List[ChatMessage]) -> None:
        conversation.messages.extend(messages)
        if len(conversation.messages) > self.max_messages:
            del conversation.messages[: len(conversation.messages) - self.max_messages]
        conversation.updated_at = datetime.now(timezone.utc)


class ChatService:
    """Runs chat turns against a cached LLM provider per provider/model pair."""

    def __init__(
        self,
        executor: ToolExecutor,
        store: Optional[ConversationStore] = None,
        llm_factory: Callable[..., LLMProvider] = get_llm_provider,
    ):
        self.executor = executor
        self.store = store or ConversationStore()
        self._llm_factory = llm_factory
        self._llm_cache: Dict[str, LLMProvider] = {}

    def _get_llm(self, provider_name: Optional[str], model: Optional[str]) -> LLMProvider:
        provider = canonical_provider_name(provider_name or settings.llm_provider)
        key = f"{provider}:{(model or '').strip()}"
        llm = self._llm_cache.get(key)
        if llm is None:
            llm = self._llm_factory(provider_name=provider, model=model)
            self._llm_cache[key] = llm
            _logger.info("LLM provider initialized for provider=%s model=%s", provider, llm.model)
        return llm

    async def close(self) -> None:
        for llm in self._llm_cache.values():
            await llm.close()
        self._llm_cache.clear()

    @staticmethod
    def build_messages(request: ChatRequest) -> List[LLMMessage]:
        messages = [LLMMessage(role="system", content=catalog.SYSTEM_PROMPT)]
        messages.extend(
            LLMMessage(role=message.role, content=message.content)
            for message in request.messages
            if message.content is not None
        )
        if request.address:
            messages.append(LLMMessage(role="system", content=f"Connected wallet address: {request.address}"))
        return messages

    @staticmethod
    def with_alert_email(call: ToolCall, email: Optional[str]) -> ToolCall:
        """Price targets set from chat alert the signed-in user unless the model named an address."""
        if not email or call.name != catalog.TRACK_CRYPTO_PRICE or call.arguments.get("email"):
            return call
        return call.model_copy(update={"arguments": {**call.arguments, "email": email}})

    async def run_chat(self, request: ChatRequest) -> ChatResponse:
        provider_hint = canonical_provider_name(request.llm_provider or settings.llm_provider)
        conversation = self.store.get_or_create(request.conversation_id, request.address)

        try:
            llm = self._get_llm(request.llm_provider, request.llm_model)
            response = await llm.generate_response(
                messages=self.build_messages(request),
                max_tokens=settings.max_tokens,
                temperature=settings.temperature,
                tools=catalog.TOOL_DEFINITIONS,
            )
        except Exception as exc:
            _logger.error(f"Chat processing error: {exc}", exc_info=True)
            return ChatResponse(
                reply=ERROR_REPLY,
                conversation_id=conversation.id,
                llm_provider=provider_hint,
                llm_model=request.llm_model or settings.resolve_default_model(provider_hint),
            )

        stored: List[ChatMessage] = []
        latest = request.messages[-1] if request.messages else None
        if latest is not None and latest.role == "user" and latest.content is not None:
            stored.append(latest)

        results: List[ToolCallResult] = []
        if response.tool_calls:
            calls = [self.with_alert_email(call, request.email) for call in response.tool_calls]
            results = await self.executor.execute_batch(calls)
            formatter = ResponseFormatter(llm)
            reply = await formatter.format_reply(results)
            if len(results) == 1 and results[0].ok and results[0].tool == catalog.CHECK_BALANCE:
                stored.append(ChatMessage(role="assistant", content=reply))
            else:
                stored.extend(formatter.tool_message(result) for result in results)
        else:
            reply = (response.content or "").strip() or FALLBACK_REPLY
            stored.append(ChatMessage(role="assistant", content=reply))

        self.store.append(conversation, stored)

        _logger.info(
            "Chat processed (provider=%s model=%s) tools=%s tokens=%s time=%.1fms",
            provider_hint,
            llm.model,
            [result.tool for result in results],
            response.tokens_used,
            response.response_time_ms or 0.0,
        )

        return ChatResponse(
            reply=reply,
            tool_results=[result.as_payload() for result in results],
            messages=stored,
            conversation_id=conversation.id,
            llm_provider=provider_hint,
            llm_model=llm.model,
        )
