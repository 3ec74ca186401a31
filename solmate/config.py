import os

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the Workers AI variable names used by older deployments."""

        super().model_post_init(__context)

        if not self.cf_api_token:
            fallback = os.getenv("CLOUDFLARE_API_TOKEN")
            if fallback:
                object.__setattr__(self, "cf_api_token", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="auto", description="Log renderer: json, console or auto (console at DEBUG)")
    request_timeout_seconds: int = Field(default=30, description="Outbound HTTP timeout")

    # Solana RPC
    solana_rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com",
        description="Mainnet RPC endpoint",
        validation_alias=AliasChoices("solana_rpc_url", "NEXT_PUBLIC_SOLANA_RPC_URL"),
    )
    solana_devnet_rpc_url: str = Field(default="https://api.devnet.solana.com", description="Devnet RPC endpoint")
    solana_testnet_rpc_url: str = Field(default="https://api.testnet.solana.com", description="Testnet RPC endpoint")
    solana_commitment: str = Field(default="confirmed", description="Commitment level for reads and confirmations")
    default_network: str = Field(default="devnet", description="Network used for transfers when none is given")

    # Jupiter swap aggregator
    jupiter_base_url: str = Field(default="https://quote-api.jup.ag/v6", description="Jupiter quote/swap API base URL")
    jupiter_slippage_bps: int = Field(default=50, ge=0, le=5000, description="Slippage tolerance for quotes")
    jupiter_max_priority_fee_lamports: int = Field(default=100_000, description="Priority fee cap for built swaps")

    # Market data
    coingecko_api_key: str = Field(default="", description="Coingecko API key")
    coingecko_base_url: str = Field(default="https://api.coingecko.com/api/v3", description="Coingecko API base URL")
    yahoo_finance_base_url: str = Field(
        default="https://query1.finance.yahoo.com/v8/finance/chart",
        description="Yahoo Finance chart API base URL",
    )
    price_cache_ttl_seconds: int = Field(default=60, description="TTL for symbol price lookups")
    max_cache_size: int = Field(default=1000, description="Maximum cache size")

    # Price tracking
    price_tracker_enabled: bool = Field(default=True, description="Start the price tracker with the app")
    price_tracker_poll_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Seconds between price checks for each tracked symbol",
    )
    alert_webhook_url: str = Field(default="", description="Endpoint that delivers price alert emails")

    # Settlement
    transaction_max_resends: int = Field(default=3, ge=0, description="Resends after a transient broadcast failure")
    confirmation_poll_interval_seconds: float = Field(default=1.0, gt=0, description="Initial confirmation poll interval")
    confirmation_max_attempts: int = Field(default=30, ge=1, description="Confirmation polls before timing out")
    wallet_signature_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="How long a signing request waits for the browser wallet",
    )

    # LLM Provider Settings
    llm_provider: str = Field(default="cloudflare", description="Default LLM provider")
    llm_model: str = Field(default="@cf/meta/llama-3.3-70b-instruct-fp8-fast", description="Default LLM model")
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    cf_api_token: str = Field(default="", description="Cloudflare Workers AI API token")
    cf_account_id: str = Field(default="", description="Cloudflare account id")
    max_tokens: int = Field(default=1024, description="Maximum tokens for LLM response")
    temperature: float = Field(default=0.3, description="LLM temperature setting")
    provider_models_catalog: Dict[str, List[Dict[str, Any]]] = Field(
        default_factory=lambda: {
            "cloudflare": [
                {
                    "id": "@cf/meta/llama-3.3-70b-instruct-fp8-fast",
                    "label": "Llama 3.3 70B",
                    "description": "Workers AI model with function calling.",
                    "default": True,
                },
            ],
            "anthropic": [
                {
                    "id": "claude-sonnet-4-20250514",
                    "label": "Claude Sonnet 4",
                    "description": "Balanced depth and latency for daily use.",
                    "default": True,
                },
            ],
        },
        description="Provider models metadata surfaced to clients",
    )

    @property
    def has_anthropic_key(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def has_cloudflare_key(self) -> bool:
        return bool(self.cf_api_token and self.cf_account_id)

    @property
    def has_llm_key(self) -> bool:
        """Check if we have credentials for the configured LLM provider"""
        if self.llm_provider.lower() in ["anthropic", "claude"]:
            return self.has_anthropic_key
        elif self.llm_provider.lower() in ["cloudflare", "cf", "workers-ai"]:
            return self.has_cloudflare_key
        return False

    def rpc_url_for(self, network: Optional[str]) -> str:
        network = (network or self.default_network).lower()
        if network == "mainnet":
            return self.solana_rpc_url
        if network == "testnet":
            return self.solana_testnet_rpc_url
        return self.solana_devnet_rpc_url

    def resolve_default_model(self, provider: str) -> str:
        options = self.provider_models_catalog.get(provider.lower(), [])
        for option in options:
            if option.get("default"):
                return option.get("id", self.llm_model)
        if options:
            return options[0].get("id", self.llm_model)
        return self.llm_model


# Global settings instance
settings = Settings()
