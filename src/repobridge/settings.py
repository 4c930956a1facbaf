"""
repobridge.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for both storage backends.
- Hide connection secrets from repr/logging.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="REPOBRIDGE_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "repobridge"
    log_level: str = "INFO"
    log_json: bool = True

    # SQL backend
    database_url: str = "sqlite+aiosqlite:///./repobridge.db"
    database_echo: bool = False

    # Document backend; credentials may be embedded in the URL.
    mongo_url: str = Field(default="mongodb://localhost:27017", repr=False)
    mongo_database: str = "repobridge"

    # Pagination
    default_page_limit: int = Field(default=20, gt=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Tests construct `Settings(...)` directly instead of going through the cache.
