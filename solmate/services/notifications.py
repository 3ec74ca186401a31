"""Price alert delivery."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .price_tracker import TargetHitEvent

logger = logging.getLogger(__name__)


def build_price_alert(event: TargetHitEvent) -> Dict[str, str]:
    """Email payload (``recipientEmail``, ``subject``, ``body``) for a hit target."""
    if event.reason == "volatility":
        subject = f"Price Alert: {event.symbol} moved {event.change_pct:.2f}%"
        detail = f"Change since last check: {event.change_pct:.2f}%"
    else:
        subject = f"Price Alert: {event.symbol} has hit {event.condition} ${event.target_price:.2f}"
        detail = f"Condition: Price went {event.condition} target"

    body = (
        f"Price Alert for {event.symbol}!\n\n"
        f"Target Price: ${event.target_price:.2f}\n"
        f"Current Price: ${event.price:.2f}\n"
        f"{detail}\n\n"
        f"Time: {event.timestamp}"
    )
    return {"recipientEmail": event.email or "", "subject": subject, "body": body}


class AlertNotifier:
    """Tracker subscriber that POSTs price alerts to an email delivery endpoint."""

    def __init__(self, webhook_url: str, *, client: Optional[httpx.AsyncClient] = None, timeout_s: float = 10):
        self.webhook_url = webhook_url
        self.timeout_s = timeout_s
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __call__(self, event: TargetHitEvent) -> bool:
        if not event.email:
            return False
        return await self.send(build_price_alert(event))

    async def send(self, payload: Dict[str, Any]) -> bool:
        client = await self._get_client()
        try:
            response = await client.post(self.webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Failed to send price alert to %s: %s", payload.get("recipientEmail"), exc)
            return False
        logger.info("Price alert sent to %s", payload.get("recipientEmail"))
        return True


def log_target_hit(event: TargetHitEvent) -> None:
    logger.info(
        "price_target_hit symbol=%s price=%.2f target=%.2f reason=%s id=%s",
        event.symbol,
        event.price,
        event.target_price,
        event.reason,
        event.tracking_id,
    )
