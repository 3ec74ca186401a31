from typing import Any, Dict, Type, Optional

from .base import (
    LLMProvider,
    LLMMessage,
    LLMResponse,
    LLMProviderError,
    ToolCall,
    ToolDefinition,
    ToolParameter,
    ToolParameterType,
)
from .anthropic import AnthropicProvider
from .cloudflare import CloudflareWorkersAIProvider

PROVIDER_ALIAS_MAP: Dict[str, str] = {
    "claude": "anthropic",
    "cf": "cloudflare",
    "workers-ai": "cloudflare",
}

PROVIDER_DISPLAY_NAMES: Dict[str, str] = {
    "anthropic": "Anthropic Claude",
    "cloudflare": "Cloudflare Workers AI",
}


def canonical_provider_name(name: str) -> str:
    """Normalize provider aliases to their canonical identifier."""

    return PROVIDER_ALIAS_MAP.get(name.lower(), name.lower())


PROVIDER_REGISTRY: Dict[str, Type[LLMProvider]] = {
    "anthropic": AnthropicProvider,
    "cloudflare": CloudflareWorkersAIProvider,
}


class LLMProviderFactory:
    """Factory for creating LLM provider instances."""

    @staticmethod
    def create_provider(
        provider_name: str,
        api_key: str,
        model: Optional[str] = None,
        **kwargs,
    ) -> LLMProvider:
        provider_key = canonical_provider_name(provider_name)
        if provider_key not in PROVIDER_REGISTRY:
            available_providers = ", ".join(PROVIDER_REGISTRY.keys())
            raise ValueError(
                f"Unsupported provider '{provider_name}'. "
                f"Available providers: {available_providers}"
            )

        if not model:
            raise ValueError(f"No model provided for provider '{provider_key}'.")

        return PROVIDER_REGISTRY[provider_key](api_key=api_key, model=model, **kwargs)


def get_available_providers() -> Dict[str, Dict[str, Any]]:
    """Return metadata about supported LLM providers."""

    from ...config import settings  # Local import to avoid circular dependency

    providers_info: Dict[str, Dict[str, Any]] = {}
    for provider_name in PROVIDER_REGISTRY:
        display_name = PROVIDER_DISPLAY_NAMES.get(provider_name, provider_name.title())
        if provider_name == "anthropic":
            configured = settings.has_anthropic_key
        else:
            configured = settings.has_cloudflare_key

        providers_info[provider_name] = {
            "status": "available" if configured else "unconfigured",
            "default_model": settings.resolve_default_model(provider_name),
            "display_name": display_name,
            "models": settings.provider_models_catalog.get(provider_name, []),
        }

    return providers_info


def get_llm_provider(
    provider_name: Optional[str] = None,
    model: Optional[str] = None,
    **kwargs,
) -> LLMProvider:
    """Instantiate an LLM provider according to configuration overrides."""

    from ...config import settings

    requested = (provider_name or "").strip() or settings.llm_provider
    resolved_provider = canonical_provider_name(requested)

    if resolved_provider == "anthropic":
        api_key = settings.anthropic_api_key
    elif resolved_provider == "cloudflare":
        api_key = settings.cf_api_token
        kwargs.setdefault("account_id", settings.cf_account_id)
    else:
        api_key = None

    if not api_key:
        raise ValueError(f"No API key configured for provider: {resolved_provider}")

    resolved_model = (model or "").strip() or None
    if resolved_model is None:
        if resolved_provider == canonical_provider_name(settings.llm_provider):
            resolved_model = settings.llm_model
        else:
            resolved_model = settings.resolve_default_model(resolved_provider)

    allowed_ids = {
        entry.get("id")
        for entry in settings.provider_models_catalog.get(resolved_provider, [])
        if entry.get("id")
    }
    if allowed_ids and resolved_model not in allowed_ids and resolved_model != settings.llm_model:
        resolved_model = settings.resolve_default_model(resolved_provider)

    return LLMProviderFactory.create_provider(
        provider_name=resolved_provider,
        api_key=api_key,
        model=resolved_model,
        **kwargs,
    )


__all__ = [
    "LLMProvider",
    "LLMMessage",
    "LLMResponse",
    "LLMProviderError",
    "ToolCall",
    "ToolDefinition",
    "ToolParameter",
    "ToolParameterType",
    "AnthropicProvider",
    "CloudflareWorkersAIProvider",
    "LLMProviderFactory",
    "get_available_providers",
    "get_llm_provider",
    "PROVIDER_REGISTRY",
    "canonical_provider_name",
]
