"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - Amount bounds are inclusive and min <= max

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: works out-of-the-box for local development
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Server
    host: str = "0.0.0.0"
    port: int = 3001

    # API
    cors_origins: list[str] = ["*"]

    # Ledger limits (currency units, inclusive)
    topup_min_amount: int = 100
    topup_max_amount: int = 5000
    transfer_min_amount: int = 100
    transfer_max_amount: int = 5000
    transactions_default_limit: int = 20
    transactions_max_limit: int = 500

    # Realtime
    liveness_interval_seconds: float = 30.0
    outbound_queue_size: int = 256

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @model_validator(mode="after")
    def check_amount_bounds(self) -> "Settings":
        if self.topup_min_amount > self.topup_max_amount:
            raise ValueError("topup_min_amount must not exceed topup_max_amount")
        if self.transfer_min_amount > self.transfer_max_amount:
            raise ValueError("transfer_min_amount must not exceed transfer_max_amount")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
