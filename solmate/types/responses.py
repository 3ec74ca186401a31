from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .requests import ChatMessage


class ChatResponse(BaseModel):
    reply: str = Field(description="Chat response text")
    tool_results: List[Dict[str, Any]] = Field(default_factory=list, description="Per-call {tool, result|error}")
    messages: List[ChatMessage] = Field(default_factory=list, description="Messages stored for this turn")
    conversation_id: Optional[str] = Field(default=None, description="Conversation identifier for memory continuity")
    llm_provider: Optional[str] = Field(default=None, description="Canonical identifier of the LLM provider that generated the response")
    llm_model: Optional[str] = Field(default=None, description="Identifier of the LLM model used for the response")


class ExecuteToolsResponse(BaseModel):
    resolved: Union[str, List[Dict[str, Any]]] = Field(description="Raw result for a lone success, otherwise the result array")
    results: List[Dict[str, Any]] = Field(default_factory=list, description="Per-call results with error codes")


class SettlementResponse(BaseModel):
    signature: str = Field(description="Transaction signature")
    message: str = Field(description="Human readable outcome")
    network: str


class SigningRequestView(BaseModel):
    id: str
    wallet: str
    kind: str
    payload: Optional[str] = None
    created_at: float
    expires_at: float
