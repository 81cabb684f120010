import os

from pathlib import Path
from typing import Any, Optional

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
        """Ensure we pick up legacy environment variable aliases."""

        super().model_post_init(__context)

        if not self.rpc_url:
            fallback = os.getenv("ETH_RPC_URL") or os.getenv("WEB3_PROVIDER_URI")
            if fallback:
                object.__setattr__(self, "rpc_url", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="auto", description="Log rendering: json, console or auto")

    # Ledger connection
    rpc_url: str = Field(
        default="",
        description="Ethereum JSON-RPC endpoint used for read-only calls",
        validation_alias=AliasChoices("rpc_url", "RPC_URL", "LEDGER_RPC_URL"),
    )
    app_address: str = Field(
        default="",
        description="Address of the token request app contract",
    )
    network_type: Optional[str] = Field(
        default=None,
        description="Override the network type reported by the ledger (main, rinkeby, ...)",
    )
    call_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to each external read-only call",
    )

    # Diagnostics
    diagnostics_history_size: int = Field(
        default=200,
        ge=1,
        description="Number of recent diagnostics kept for the /diagnostics endpoint",
    )

    @property
    def has_rpc_url(self) -> bool:
        return bool(self.rpc_url)

    @property
    def has_app_address(self) -> bool:
        return bool(self.app_address)


# Global settings instance
settings = Settings()
