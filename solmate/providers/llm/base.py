from abc import ABC, abstractmethod
from typing import List, Dict, Any, Literal, Optional
from pydantic import BaseModel, Field
from enum import Enum
import time
import logging


# =============================================================================
# Tool Calling Models
# =============================================================================

class ToolParameterType(str, Enum):
    """JSON schema types the wallet tools use"""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"


class ToolParameter(BaseModel):
    """Definition of a single tool parameter"""
    model_config = {"frozen": True}

    name: str
    type: ToolParameterType
    description: str
    required: bool = True
    enum: Optional[List[str]] = None
    default: Optional[Any] = None

    def schema_entry(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"type": self.type.value, "description": self.description}
        if self.enum:
            entry["enum"] = list(self.enum)
        if self.default is not None:
            entry["default"] = self.default
        return entry


class ToolDefinition(BaseModel):
    """Definition of a tool that can be called by the LLM"""
    model_config = {"frozen": True}

    name: str
    description: str
    parameters: List[ToolParameter] = Field(default_factory=list)

    @property
    def required(self) -> List[str]:
        return [param.name for param in self.parameters if param.required]

    def parameter(self, name: str) -> Optional[ToolParameter]:
        return next((param for param in self.parameters if param.name == name), None)

    def parameter_schema(self) -> Dict[str, Any]:
        """JSON schema object describing the parameters"""
        return {
            "type": "object",
            "properties": {param.name: param.schema_entry() for param in self.parameters},
            "required": self.required,
        }

    def to_openai_format(self) -> Dict[str, Any]:
        """OpenAI-style function schema, also accepted by Workers AI"""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameter_schema(),
            },
        }

    def to_anthropic_format(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameter_schema(),
        }


class ToolCall(BaseModel):
    """A tool call requested by the LLM"""
    id: Optional[str] = None
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Message Models
# =============================================================================

LLMRole = Literal["system", "user", "assistant", "tool"]


class LLMMessage(BaseModel):
    """One message sent to a provider. ``tool`` carries wallet tool output."""
    role: LLMRole
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None  # assistant turns that requested tools


class LLMResponse(BaseModel):
    """Standardized response from LLM providers"""
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None
    tokens_used: Optional[int] = None
    model: Optional[str] = None
    finish_reason: Optional[str] = None  # "end_turn", "tool_use", "max_tokens"
    response_time_ms: Optional[float] = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers"""

    name: str = "llm"
    supports_tools: bool = False

    def __init__(self, api_key: str, model: str, **kwargs):
        self.api_key = api_key
        self.model = model
        self.logger = logging.getLogger(f"{self.__class__.__name__}")
        self._setup_client(**kwargs)

    @abstractmethod
    def _setup_client(self, **kwargs) -> None:
        """Initialize the provider-specific client"""

    @abstractmethod
    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[ToolDefinition]] = None,
        **kwargs
    ) -> LLMResponse:
        """Generate a response from the LLM

        Args:
            messages: System prompt, chat history and wallet context lines
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature
            tools: Wallet tool catalog for function calling
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with content and/or tool_calls
        """

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Check if the provider is healthy and responding"""

    async def close(self) -> None:
        pass

    def _measure_time(self, start_time: float) -> float:
        return (time.time() - start_time) * 1000


class LLMProviderError(Exception):
    """Base exception for LLM provider errors"""

    retryable = False


class LLMProviderRateLimitError(LLMProviderError):
    retryable = True


class LLMProviderAuthError(LLMProviderError):
    pass


class LLMProviderAPIError(LLMProviderError):
    """Raised when API request fails"""
