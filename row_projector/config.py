"""
Configuration settings for the segment row projector.

Uses Pydantic Settings to load environment variables for logging, schema
document lookup, codec discovery and run artifacts.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Schema document lookup
    schema_search_paths: List[str] = Field(default_factory=list, alias="SCHEMA_SEARCH_PATHS")
    default_filesystem_uri: str = Field("file:///", alias="DEFAULT_FILESYSTEM_URI")
    spec_fetch_attempts: int = Field(3, alias="SPEC_FETCH_ATTEMPTS", ge=1)

    # Complex metric codecs
    codec_entry_point_group: str = Field("row_projector.codecs", alias="CODEC_ENTRY_POINT_GROUP")

    # Run artifacts
    results_dir: str = Field("results", alias="RESULTS_DIR")

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
