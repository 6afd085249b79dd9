"""Configuration using Pydantic Settings."""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

Agent = Literal["yalidine", "goupex"]

AGENT_BASE_URLS: dict[str, str] = {
    "yalidine": "https://api.yalidine.app/v1",
    "goupex": "https://api.guepex.app/v1",
}

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRIES = 3

# Reference data cached by init()
REFERENCE_DATA_TTL_SECONDS = 24 * 60 * 60


class Settings(BaseSettings):
    """Client settings loaded from YALIDINE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="YALIDINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials
    agent: str = "yalidine"
    api_id: str | None = None
    api_token: SecretStr | None = None

    # HTTP
    base_url: str | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRIES
    debug: bool = False

    # Cache
    cache_backend: str = "memory"  # "memory", "file" or "redis"
    cache_dir: Path = Path(".yalidine-cache")
    redis_url: str | None = None
    redis_prefix: str = "yalidine:"

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass(frozen=True)
class ResolvedConfig:
    """Session configuration after validation and default resolution."""

    agent: str
    api_id: str
    api_token: str
    base_url: str
    timeout: float
    retries: int
    debug: bool
