"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    auth_provider: Literal["mock", "jwt"] = "jwt"
    token_secret: str = Field(min_length=1)
    token_issuer: str = "postboard-api"
    token_ttl_seconds: int = Field(default=30 * 24 * 3600, ge=1)
    password_hash_rounds: int = Field(default=12, ge=4, le=31)
    default_user_role: Literal["admin", "author"] = "author"
    # 0 disables rate limiting.
    rate_limit_max_requests: int = Field(default=100, ge=0)
    rate_limit_window_seconds: int = Field(default=15 * 60, ge=1)

    model_config = SettingsConfigDict(env_prefix="POSTBOARD_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
