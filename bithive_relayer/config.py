"""
Configuration management for the BitHive relayer examples.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .helpers import get_bitcoin_network


class Settings(BaseSettings):
    """
    Environment-based settings.

    BITCOIN_WIF_PRIVATE_KEY and BITHIVE_RELAYER_RPC_URL are required.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Bitcoin
    bitcoin_network: str = Field(
        default="signet",
        description="mainnet, testnet, testnet4, signet or regtest",
    )
    bitcoin_wif_private_key: str = Field(..., min_length=1, description="Private key in WIF format")

    # Relayer
    bithive_relayer_rpc_url: str = Field(..., min_length=1, description="BitHive relayer RPC URL")
    rpc_timeout_seconds: float = 30.0

    # Waiting
    wait_interval_seconds: float = Field(default=120.0, gt=0)
    wait_timeout_seconds: float = Field(default=3600.0, gt=0)

    @field_validator("bitcoin_network")
    @classmethod
    def _check_network(cls, value: str) -> str:
        return get_bitcoin_network(value)

    @classmethod
    def load(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings, optionally from a specific .env file."""
        return cls(_env_file=env_path) if env_path else cls()


def missing_variables(error: ValidationError) -> list[str]:
    """Environment variable names of the required settings that are missing or empty."""
    return [
        str(err["loc"][0]).upper()
        for err in error.errors()
        if err.get("type") in ("missing", "string_too_short") and err.get("loc")
    ]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
