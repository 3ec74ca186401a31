"""Result models flowing out of the wallet tool dispatcher."""

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class WireModel(BaseModel):
    """Models serialized with camelCase keys for the browser."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolCallResult(BaseModel):
    """Outcome of one tool call; exactly one of ``result`` / ``error`` is set."""

    tool: str
    result: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> "ToolCallResult":
        if (self.result is None) == (self.error is None):
            raise ValueError("ToolCallResult needs exactly one of result or error")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_payload(self) -> Dict[str, str]:
        """The ``{tool, result|error}`` shape returned to the chat client."""
        if self.error is not None:
            return {"tool": self.tool, "error": self.error}
        return {"tool": self.tool, "result": self.result}


# =============================================================================
# Operation results
# =============================================================================

class PendingTransaction(WireModel):
    """A SOL transfer that still needs the user's wallet approval."""

    type: Literal["PENDING_TRANSACTION"] = "PENDING_TRANSACTION"
    recipient: str
    amount: float
    network: str = "devnet"


class PendingSwap(WireModel):
    """A Jupiter swap quote waiting to be built, signed and broadcast."""

    type: Literal["PENDING_SWAP"] = "PENDING_SWAP"
    quote_response: Dict[str, Any]
    input_token: str
    output_token: str
    amount: float
    estimated: float


class PriceQuote(WireModel):
    symbol: str
    price: float
    timestamp: str = Field(default_factory=utc_timestamp)


class TrackingConfirmation(WireModel):
    symbol: str
    current_price: float
    target_price: float
    condition: str
    tracking_id: str
    timestamp: str = Field(default_factory=utc_timestamp)
