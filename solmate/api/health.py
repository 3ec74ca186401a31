from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..config import settings
from ..dependencies import Services, get_services
from ..providers.base import SERVING_STATUSES

router = APIRouter()


@router.get("/healthz")
async def health_check(services: Services = Depends(get_services)) -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    providers = {
        "solana": services.rpc,
        "coingecko": services.coingecko,
        "jupiter": services.jupiter,
        "yahoo": services.prices.provider,
    }

    provider_status = {}
    for name, provider in providers.items():
        provider_status[name] = await provider.health_check()

    all_serving = all(status["status"] in SERVING_STATUSES for status in provider_status.values())
    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] in ("healthy", "configured")
    )

    return {
        "status": "healthy" if all_serving and available_providers > 0 else "degraded",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status),
        "llm": {"provider": settings.llm_provider, "configured": settings.has_llm_key},
        "tracker": {
            "running": services.tracker.running,
            "symbols": len(services.tracker.symbols()),
            "pollers": services.tracker.poller_count,
        },
        "pending_signatures": len(services.relay.pending()),
    }
