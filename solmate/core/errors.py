"""
Error taxonomy for wallet tool calls.

Every failure a tool call can hit is one of these classes. The dispatcher
turns them into ``ToolCallResult.error`` strings plus a machine-readable
``error_code``; the API layer maps them onto HTTP status codes.
"""

from typing import Any, Dict, Optional


class WalletToolError(Exception):
    """Base class for all wallet tool failures."""

    code: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnknownTool(WalletToolError):
    """The model asked for a tool that is not in the catalog."""

    code = "unknown_tool"
    status_code = 404

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}", details={"tool": name})
        self.tool = name


# =============================================================================
# Validation
# =============================================================================

class ValidationError(WalletToolError):
    """Arguments rejected before any external call was made."""

    code = "validation_error"
    status_code = 400

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class MissingField(ValidationError):
    def __init__(self, field: str, label: Optional[str] = None):
        super().__init__(f"{label or field} is required", field=field)


class InvalidAddress(ValidationError):
    def __init__(self, address: Any, field: str = "address", label: str = "Solana address"):
        super().__init__(f"Invalid {label}: {address}", field=field)
        self.address = address


class InvalidAmount(ValidationError):
    def __init__(self, message: str = "Amount must be greater than 0", field: str = "amount"):
        super().__init__(message, field=field)


class InvalidTokenSelection(ValidationError):
    pass


# =============================================================================
# External systems
# =============================================================================

class UpstreamError(WalletToolError):
    """An RPC node, price API or swap aggregator call failed."""

    code = "upstream_error"
    status_code = 502

    def __init__(self, message: str, *, provider: Optional[str] = None, status: Optional[int] = None):
        details: Dict[str, Any] = {}
        if provider:
            details["provider"] = provider
        if status is not None:
            details["status"] = status
        super().__init__(message, details=details)
        self.provider = provider
        self.status = status


class RateLimitExceeded(UpstreamError):
    """Upstream answered 429."""

    code = "rate_limited"
    status_code = 429

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        provider: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, provider=provider, status=429)
        self.retry_after = retry_after
        if retry_after is not None:
            self.details["retry_after"] = retry_after


class SwapQuoteError(UpstreamError):
    pass


class SwapBuildError(UpstreamError):
    pass


# =============================================================================
# Wallet / settlement
# =============================================================================

class UserDeclined(WalletToolError):
    """The wallet owner refused to sign, or never answered."""

    code = "user_declined"
    status_code = 409

    def __init__(self, message: str = "User rejected the request"):
        super().__init__(message)


class ConfirmationTimeout(WalletToolError):
    """Broadcast went through but the network never confirmed it in time."""

    code = "confirmation_timeout"
    status_code = 504

    def __init__(self, signature: str, message: Optional[str] = None):
        super().__init__(
            message or f"Transaction {signature} was not confirmed in time",
            details={"signature": signature},
        )
        self.signature = signature


_TRANSIENT_PATTERNS = (
    "rate limit",
    "too many requests",
    "429",
    "timeout",
    "timed out",
    "connection",
    "network",
    "unavailable",
    "blockhash not found",
    "node is behind",
)


def error_code_for(error: BaseException) -> str:
    if isinstance(error, WalletToolError):
        return error.code
    return WalletToolError.code


def is_transient(error: BaseException) -> bool:
    """Return True for broadcast failures worth resending."""
    if isinstance(error, RateLimitExceeded):
        return True
    if isinstance(error, UpstreamError):
        if error.status is not None and error.status >= 500:
            return True
    elif isinstance(error, WalletToolError):
        return False
    message = str(error).lower()
    return any(p in message for p in _TRANSIENT_PATTERNS)
