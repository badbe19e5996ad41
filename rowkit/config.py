"""
Configuration settings for rowkit.

Uses Pydantic Settings to load environment variables for the embedded store
(file path and pragmas applied at open time), search defaults, and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Store
    db_path: str = Field(":memory:", alias="ROWKIT_DB_PATH")
    journal_mode: Literal["WAL", "DELETE", "TRUNCATE", "MEMORY", "OFF"] = Field(
        "WAL", alias="ROWKIT_JOURNAL_MODE"
    )
    busy_timeout_ms: int = Field(5000, ge=0, alias="ROWKIT_BUSY_TIMEOUT_MS")
    foreign_keys: bool = Field(True, alias="ROWKIT_FOREIGN_KEYS")

    # Search
    search_limit: int = Field(20, ge=1, alias="ROWKIT_SEARCH_LIMIT")

    # Logging
    log_level: str = Field("INFO", alias="ROWKIT_LOG_LEVEL")
    json_logs: bool = Field(False, alias="ROWKIT_JSON_LOGS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
