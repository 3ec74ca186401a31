from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

MessageRole = Literal["user", "assistant", "system", "tool"]


class ChatMessage(BaseModel):
    role: MessageRole = Field(description="Message role: user, assistant, system or tool")
    content: Optional[str] = Field(default=None, description="Message content")


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(description="Chat conversation history")
    address: Optional[str] = Field(default=None, description="Connected wallet address for context")
    email: Optional[str] = Field(
        default=None, description="Signed-in user email; price alerts set during this turn are sent here"
    )
    conversation_id: Optional[str] = Field(default=None, description="Conversation identifier for memory continuity")
    llm_provider: Optional[str] = Field(default=None, description="Override the default LLM provider for this conversation")
    llm_model: Optional[str] = Field(default=None, description="Override the default LLM model for this conversation")


class ToolCallIn(BaseModel):
    name: str = Field(description="Catalog tool name")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Raw tool arguments")


class ExecuteToolsRequest(BaseModel):
    tool_calls: List[ToolCallIn] = Field(description="Tool calls to run as one batch")


class _CamelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SwapBuildRequest(_CamelRequest):
    quote_response: Dict[str, Any] = Field(alias="quoteResponse", description="Opaque Jupiter quote")
    user_public_key: str = Field(alias="userPublicKey", description="Wallet that will sign the swap")


class TransferSettlementRequest(_CamelRequest):
    """A PENDING_TRANSACTION marker plus the wallet that should sign it."""

    wallet: str = Field(description="Connected wallet address (fee payer and sender)")
    recipient: str
    amount: float = Field(gt=0)
    network: str = "devnet"


class SwapSettlementRequest(_CamelRequest):
    """A PENDING_SWAP marker plus the wallet that should sign it."""

    wallet: str = Field(description="Connected wallet address")
    quote_response: Dict[str, Any] = Field(alias="quoteResponse")
    input_token: str = Field(alias="inputToken")
    output_token: str = Field(alias="outputToken")
    amount: float = Field(gt=0)
    estimated: float = 0.0
    network: str = "mainnet"


class WalletAnswer(_CamelRequest):
    """Browser answer to a parked signing request."""

    signed_transaction: Optional[str] = Field(default=None, alias="signedTransaction")
    signature: Optional[str] = None
    public_key: Optional[str] = Field(default=None, alias="publicKey")
    declined: bool = False
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _has_answer(self) -> "WalletAnswer":
        if not self.declined and not (self.signed_transaction or self.signature or self.public_key):
            raise ValueError("Answer must carry a signedTransaction, signature, publicKey or declined=true")
        return self
