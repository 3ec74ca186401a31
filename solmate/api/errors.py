from fastapi import HTTPException

from ..core.errors import RateLimitExceeded, WalletToolError


def to_http_exception(error: WalletToolError) -> HTTPException:
    """Map a wallet tool failure onto the status code its class declares."""

    headers = None
    if isinstance(error, RateLimitExceeded) and error.retry_after is not None:
        headers = {"Retry-After": str(int(error.retry_after))}

    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.message, "code": error.code, **error.details},
        headers=headers,
    )
