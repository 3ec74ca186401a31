"""
HTTP request logging middleware.

Every request gets a short request id (taken from ``x-request-id`` when the
client sends one) and, when the browser tells us which wallet is connected,
the wallet address. Both are bound as structlog contextvars so tool dispatch
and settlement logs can be correlated with the chat turn that caused them.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

WALLET_HEADER = "x-wallet-address"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one ``http_request`` line per request with timing and status."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]

        structlog.contextvars.clear_contextvars()
        context = {"request_id": request_id}
        wallet = request.headers.get(WALLET_HEADER)
        if wallet:
            context["wallet"] = wallet
        structlog.contextvars.bind_contextvars(**context)

        start = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            else:
                log = logger.info

            log(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration_ms=duration_ms,
            )
