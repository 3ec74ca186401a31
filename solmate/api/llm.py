from typing import Any, Dict, List

from fastapi import APIRouter

from ..config import settings
from ..core.tools.models import utc_timestamp
from ..providers.llm import canonical_provider_name, get_available_providers

router = APIRouter(prefix="/llm")


@router.get("/providers")
async def list_llm_providers() -> Dict[str, Any]:
    """Providers the chat endpoint can be pointed at via ``llm_provider``."""

    providers: List[Dict[str, Any]] = [
        {"id": provider_id, **info}
        for provider_id, info in get_available_providers().items()
    ]
    default_provider = canonical_provider_name(settings.llm_provider)

    return {
        "providers": providers,
        "default_provider": default_provider,
        "default_model": settings.resolve_default_model(default_provider),
        "fetched_at": utc_timestamp(),
    }
