from .requests import (
    ChatMessage,
    ChatRequest,
    ExecuteToolsRequest,
    SwapBuildRequest,
    SwapSettlementRequest,
    ToolCallIn,
    TransferSettlementRequest,
    WalletAnswer,
)
from .responses import (
    ChatResponse,
    ExecuteToolsResponse,
    SettlementResponse,
    SigningRequestView,
)

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ExecuteToolsRequest",
    "SwapBuildRequest",
    "SwapSettlementRequest",
    "ToolCallIn",
    "TransferSettlementRequest",
    "WalletAnswer",
    "ChatResponse",
    "ExecuteToolsResponse",
    "SettlementResponse",
    "SigningRequestView",
]
