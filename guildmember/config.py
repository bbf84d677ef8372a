"""Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - The API token comes from the environment (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Platform REST API
    api_base_url: str = "https://discord.com/api/v10"
    api_token: str = ""
    api_timeout_seconds: float = 15.0
    api_max_retries: int = 3
    api_base_delay_ms: int = 500
    api_max_delay_ms: int = 30_000

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
