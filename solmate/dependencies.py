"""
Process-wide service graph.

Everything the routes need is built once and shared: providers hold pooled
HTTP clients, the tracker owns background pollers and the relay owns parked
signing requests. Routes pull pieces out through the ``get_*`` helpers so
tests can swap the whole graph with ``set_services``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import settings
from .core.chat import ChatService
from .core.execution import SigningRelay, SolanaSettlement
from .core.operations import WalletOperations
from .core.tools.executor import ToolExecutor
from .core.tools.registry import ToolRegistry
from .providers.coingecko import CoingeckoProvider, get_coingecko_provider
from .providers.jupiter import JupiterSwapProvider, get_jupiter_provider
from .providers.solana import SolanaRpcClient, close_rpc_clients, get_rpc_client
from .services.notifications import AlertNotifier, log_target_hit
from .services.price_service import PriceService
from .services.price_tracker import PriceTracker

logger = logging.getLogger(__name__)


@dataclass
class Services:
    rpc: SolanaRpcClient
    coingecko: CoingeckoProvider
    jupiter: JupiterSwapProvider
    prices: PriceService
    tracker: PriceTracker
    operations: WalletOperations
    registry: ToolRegistry
    executor: ToolExecutor
    chat: ChatService
    relay: SigningRelay
    settlement: SolanaSettlement
    notifier: Optional[AlertNotifier] = None

    async def start(self) -> None:
        self.tracker.subscribe(log_target_hit)
        if self.notifier is not None:
            self.tracker.subscribe(self.notifier)
        if settings.price_tracker_enabled:
            await self.tracker.start()

    async def close(self) -> None:
        await self.tracker.stop()
        await self.chat.close()
        await self.prices.close()
        await self.jupiter.close()
        if self.notifier is not None:
            await self.notifier.close()
        await close_rpc_clients()


def build_services() -> Services:
    rpc = get_rpc_client("mainnet")
    coingecko = get_coingecko_provider()
    jupiter = get_jupiter_provider()
    prices = PriceService()
    tracker = PriceTracker(prices.get_fresh_price)
    operations = WalletOperations(
        rpc=rpc,
        market=coingecko,
        jupiter=jupiter,
        prices=prices,
        tracker=tracker,
        slippage_bps=settings.jupiter_slippage_bps,
    )
    registry = ToolRegistry(operations)
    executor = ToolExecutor(registry)

    notifier = None
    if settings.alert_webhook_url:
        notifier = AlertNotifier(settings.alert_webhook_url, timeout_s=settings.request_timeout_seconds)

    logger.info("Services built (tools=%d, alerts=%s)", len(registry.get_definitions()), bool(notifier))
    return Services(
        rpc=rpc,
        coingecko=coingecko,
        jupiter=jupiter,
        prices=prices,
        tracker=tracker,
        operations=operations,
        registry=registry,
        executor=executor,
        chat=ChatService(executor),
        relay=SigningRelay(),
        settlement=SolanaSettlement(jupiter=jupiter),
        notifier=notifier,
    )


_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services


def set_services(services: Optional[Services]) -> None:
    global _services
    _services = services


def get_chat_service() -> ChatService:
    return get_services().chat


def get_tool_registry() -> ToolRegistry:
    return get_services().registry


def get_tool_executor() -> ToolExecutor:
    return get_services().executor


def get_jupiter() -> JupiterSwapProvider:
    return get_services().jupiter


def get_price_service() -> PriceService:
    return get_services().prices


def get_price_tracker() -> PriceTracker:
    return get_services().tracker


def get_signing_relay() -> SigningRelay:
    return get_services().relay


def get_settlement() -> SolanaSettlement:
    return get_services().settlement
