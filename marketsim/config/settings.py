"""
Application settings using Pydantic Settings.
Loads configuration from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Simulation
    # =========================================================================
    tick_interval_seconds: float = Field(default=3.0, description="Seconds between simulation ticks")
    price_volatility: float = Field(default=0.002, ge=0.0, le=0.1, description="Max relative move per tick")
    price_history_size: int = Field(default=50, ge=2, description="Price points kept per instrument")
    random_seed: Optional[int] = Field(default=None, description="Seed for reproducible price paths")

    # =========================================================================
    # Accounts & Trading
    # =========================================================================
    initial_balance: float = Field(default=100000.0, gt=0)
    commission_rate: float = Field(default=0.0005, ge=0.0, lt=1.0)
    default_bot_amount: int = Field(default=1, ge=1)
    wealth_history_size: int = Field(default=30, ge=1)
    max_trade_history: int = Field(default=1000, ge=1)
    timezone: str = Field(default="Europe/Istanbul", description="Timezone used for day/week/month snapshots")

    # =========================================================================
    # Persistence
    # =========================================================================
    store_backend: Literal["memory", "json"] = Field(default="json")
    data_dir: str = Field(default="data")

    # =========================================================================
    # Application
    # =========================================================================
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=5000)
    environment: Literal["development", "staging", "production"] = Field(default="development")

    @field_validator("store_backend", mode="before")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        """Ensure store backend is always lowercase."""
        return v.lower() if isinstance(v, str) else v

    @field_validator("tick_interval_seconds")
    @classmethod
    def validate_tick_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("tick_interval_seconds must be > 0")
        return v

    @property
    def is_persistent(self) -> bool:
        """Check if user documents are written to disk."""
        return self.store_backend == "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
