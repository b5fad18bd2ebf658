"""Configuration management for the link shortener application.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching.

Flow Diagram - get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 - Import**::
    from shortlinks.config import get_settings

**Step 2 - Get settings**::
    settings = get_settings()
    db_url = settings.DATABASE_URL

Key Behaviours
===============
- Settings are cached after first access.
- Environment variables (and ``.env``) override defaults automatically.
- ``DATABASE_URL`` must use an async driver (``postgresql+asyncpg`` or
  ``sqlite+aiosqlite``).

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "shortlinks"
    APP_VERSION: str = "1.0.0"

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://shortlinks:shortlinks@db:5432/shortlinks"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_ECHO: bool = False

    # Code allocation
    SHORT_CODE_LENGTH: int = Field(7, ge=6, le=8)
    CODE_GENERATION_MAX_ATTEMPTS: int = Field(5, ge=1)

    # Logging
    LOG_LEVEL: str = "INFO"

    # HTTP
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
