from pathlib import Path
from typing import Any, List, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]

SUPPORTED_CHAINS: List[str] = [
    "ethereum",
    "base",
    "optimism",
    "polygon",
    "arbitrum",
    "bnb",
    "blast",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Normalize base URLs so endpoint paths can be appended safely."""

        super().model_post_init(__context)

        for name in ("masterdex_base_url", "binance_base_url", "lcx_base_url"):
            value = getattr(self, name)
            if value.endswith("/"):
                object.__setattr__(self, name, value.rstrip("/"))

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["auto", "json", "console"] = Field(
        default="auto",
        description="Log renderer; auto picks console at DEBUG and JSON otherwise",
    )

    # Upstream APIs
    masterdex_base_url: str = Field(
        default="https://api.masterdex.xyz",
        description="MasterDex API base URL",
    )
    binance_base_url: str = Field(
        default="https://api.binance.com",
        description="Binance REST API base URL",
    )
    binance_api_key: str = Field(
        default="",
        description="Optional Binance API key sent as X-MBX-APIKEY",
        validation_alias=AliasChoices("binance_api_key", "BINANCE_API_KEY", "BINANCE_KEY"),
    )
    lcx_base_url: str = Field(
        default="https://exchange-api.lcx.com",
        description="LCX exchange API base URL",
    )
    lcx_kline_url: str = Field(
        default="https://api-kline.lcx.com/v1/market/kline",
        description="LCX kline endpoint",
    )
    user_agent: str = Field(default="LCX-AI-Lab/1.0", description="User-Agent sent upstream")

    # Provider Toggles
    enable_masterdex: bool = Field(default=True, description="Enable MasterDex provider")
    enable_binance: bool = Field(default=True, description="Enable Binance provider")
    enable_lcx: bool = Field(default=True, description="Enable LCX provider")

    # Fetch / Retry
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline for a single upstream attempt",
    )
    fetch_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per source before it is marked as failed",
    )
    retry_initial_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Backoff before the second attempt",
    )
    retry_backoff_factor: float = Field(
        default=2.0,
        ge=1,
        description="Multiplier applied to the backoff after each failed attempt",
    )

    # Big swaps aggregation
    big_swaps_default_limit: int = Field(
        default=20,
        description="Records returned when the caller does not pass a limit",
    )
    available_symbols_preview: int = Field(
        default=20,
        ge=0,
        description="Number of observed symbols echoed back as hints",
    )
    token_filter_requires_source: bool = Field(
        default=False,
        description=(
            "Only apply the token substring filter when a chain was named or the "
            "cross-chain search was used (legacy behaviour)"
        ),
    )

    @property
    def has_binance_key(self) -> bool:
        return bool(self.binance_api_key)


# Global settings instance
settings = Settings()
