"""
Price tracking service.

Owns a map ``symbol -> SymbolWatch``. Each watched symbol has exactly one
poller task no matter how many targets point at it; the poller is cancelled
as soon as the last target for its symbol goes away. Targets are one-shot:
a hit emits a ``TargetHitEvent`` to every subscriber and removes the target.

``add_target`` / ``remove_target`` are plain synchronous map operations and
rely on running inside the event loop thread.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..config import settings
from ..core.tools.models import utc_timestamp

logger = logging.getLogger(__name__)

PriceFetcher = Callable[[str], Awaitable[float]]
Subscriber = Callable[["TargetHitEvent"], Union[None, Awaitable[None]]]


@dataclass
class PriceTarget:
    symbol: str
    target_price: float
    condition: str                              # "above" | "below"
    volatility_threshold: Optional[float] = None  # percent
    email: Optional[str] = None
    tracking_id: str = ""
    created_at: str = field(default_factory=utc_timestamp)

    def __post_init__(self) -> None:
        self.symbol = self.symbol.upper()
        if not self.tracking_id:
            self.tracking_id = f"{self.symbol}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trackingId": self.tracking_id,
            "symbol": self.symbol,
            "targetPrice": self.target_price,
            "condition": self.condition,
            "volatilityThreshold": self.volatility_threshold,
            "createdAt": self.created_at,
        }


@dataclass
class TargetHitEvent:
    tracking_id: str
    symbol: str
    price: float
    target_price: float
    condition: str
    reason: str                                 # "above" | "below" | "volatility"
    previous_price: Optional[float] = None
    change_pct: Optional[float] = None
    email: Optional[str] = None
    timestamp: str = field(default_factory=utc_timestamp)
    type: str = "target-hit"


@dataclass
class SymbolWatch:
    targets: Dict[str, PriceTarget] = field(default_factory=dict)
    task: Optional[asyncio.Task] = None
    last_price: Optional[float] = None


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class PriceTracker:
    """In-process registry of price targets with one poller per symbol."""

    def __init__(
        self,
        fetch_price: PriceFetcher,
        poll_interval: Optional[float] = None,
    ) -> None:
        self._fetch_price = fetch_price
        self.poll_interval = (
            settings.price_tracker_poll_interval_seconds if poll_interval is None else poll_interval
        )
        self._watches: Dict[str, SymbolWatch] = {}
        self._index: Dict[str, str] = {}        # tracking_id -> symbol
        self._subscribers: List[Subscriber] = []
        self._running = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for symbol in self._watches:
            self._ensure_poller(symbol)
        logger.info("Price tracker started (interval=%ss, symbols=%d)", self.poll_interval, len(self._watches))

    async def stop(self) -> None:
        self._running = False
        tasks = [watch.task for watch in self._watches.values() if watch.task is not None]
        for watch in self._watches.values():
            watch.task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Price tracker stopped")

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add_target(self, target: PriceTarget) -> str:
        watch = self._watches.get(target.symbol)
        if watch is None:
            watch = SymbolWatch()
            self._watches[target.symbol] = watch

        watch.targets[target.tracking_id] = target
        self._index[target.tracking_id] = target.symbol
        logger.info(
            "Tracking %s %s %.2f (id=%s)",
            target.symbol,
            target.condition,
            target.target_price,
            target.tracking_id,
        )

        if self._running:
            self._ensure_poller(target.symbol)
        return target.tracking_id

    def remove_target(self, tracking_id: str) -> bool:
        symbol = self._index.pop(tracking_id, None)
        if symbol is None:
            return False

        watch = self._watches.get(symbol)
        if watch is None:
            return False
        watch.targets.pop(tracking_id, None)

        if not watch.targets:
            del self._watches[symbol]
            # A poller removing its own last target exits on its next loop check
            if watch.task is not None and watch.task is not _current_task():
                watch.task.cancel()
            watch.task = None
            logger.info("Stopped tracking %s", symbol)
        return True

    def get_target(self, tracking_id: str) -> Optional[PriceTarget]:
        symbol = self._index.get(tracking_id)
        if symbol is None:
            return None
        return self._watches[symbol].targets.get(tracking_id)

    def list_targets(self, symbol: Optional[str] = None) -> List[PriceTarget]:
        if symbol is not None:
            watch = self._watches.get(symbol.upper())
            return list(watch.targets.values()) if watch else []
        return [target for watch in self._watches.values() for target in watch.targets.values()]

    def symbols(self) -> List[str]:
        return list(self._watches)

    def poller_for(self, symbol: str) -> Optional[asyncio.Task]:
        watch = self._watches.get(symbol.upper())
        return watch.task if watch else None

    @property
    def poller_count(self) -> int:
        return sum(1 for watch in self._watches.values() if watch.task is not None and not watch.task.done())

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _ensure_poller(self, symbol: str) -> None:
        watch = self._watches[symbol]
        if watch.task is not None and not watch.task.done():
            return
        watch.task = asyncio.get_running_loop().create_task(
            self._poll(symbol), name=f"price-tracker:{symbol}"
        )

    async def _poll(self, symbol: str) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            watch = self._watches.get(symbol)
            if watch is None or watch.task is not _current_task():
                return
            try:
                await self.check_symbol(symbol)
            except Exception as exc:
                logger.warning("Price check for %s failed: %s", symbol, exc)

    async def check_symbol(self, symbol: str) -> List[TargetHitEvent]:
        """Fetch a fresh price for ``symbol`` and evaluate its targets."""
        if symbol not in self._watches:
            return []
        price = await self._fetch_price(symbol)
        return await self.evaluate(symbol, price)

    async def evaluate(self, symbol: str, price: float) -> List[TargetHitEvent]:
        symbol = symbol.upper()
        watch = self._watches.get(symbol)
        if watch is None:
            return []

        previous = watch.last_price
        watch.last_price = price

        events: List[TargetHitEvent] = []
        for target in list(watch.targets.values()):
            event = self._check_target(target, price, previous)
            if event is not None:
                self.remove_target(target.tracking_id)
                events.append(event)

        for event in events:
            logger.info(
                "Target hit for %s at %.2f (%s, id=%s)",
                event.symbol,
                event.price,
                event.reason,
                event.tracking_id,
            )
            await self._emit(event)
        return events

    def _check_target(
        self,
        target: PriceTarget,
        price: float,
        previous: Optional[float],
    ) -> Optional[TargetHitEvent]:
        reason = None
        change_pct = None

        if target.condition == "above" and price >= target.target_price:
            reason = "above"
        elif target.condition == "below" and price <= target.target_price:
            reason = "below"
        elif target.volatility_threshold is not None and previous:
            change_pct = abs(price - previous) / previous * 100
            if change_pct >= target.volatility_threshold:
                reason = "volatility"

        if reason is None:
            return None
        return TargetHitEvent(
            tracking_id=target.tracking_id,
            symbol=target.symbol,
            price=price,
            target_price=target.target_price,
            condition=target.condition,
            reason=reason,
            previous_price=previous,
            change_pct=change_pct,
            email=target.email,
        )

    async def _emit(self, event: TargetHitEvent) -> None:
        pending = []
        for callback in list(self._subscribers):
            try:
                outcome = callback(event)
            except Exception as exc:
                logger.error(f"Subscriber error: {exc}")
                continue
            if inspect.isawaitable(outcome):
                pending.append(outcome)

        if not pending:
            return
        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Subscriber error: {result}")
