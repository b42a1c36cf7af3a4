"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="M3U Multi-Source", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    playlist_cache_ttl_seconds: int = Field(
        default=600, alias="PLAYLIST_CACHE_TTL", ge=0
    )
    catalog_limit: int = Field(default=100, alias="CATALOG_LIMIT", ge=1, le=1_000)
    source_timeout_seconds: float = Field(
        default=30.0, alias="SOURCE_TIMEOUT", gt=0
    )
    source_concurrency: int = Field(
        default=8, alias="SOURCE_CONCURRENCY", ge=1, le=64
    )

    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    enrichment_cache_size: int = Field(
        default=0, alias="ENRICHMENT_CACHE_SIZE", ge=0
    )

    keep_alive_interval_seconds: int = Field(
        default=0, alias="KEEP_ALIVE_INTERVAL", ge=0
    )
    keep_alive_url: str | None = Field(default=None, alias="KEEP_ALIVE_URL")

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_api_key", "keep_alive_url", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @property
    def resolved_keep_alive_url(self) -> str:
        """Return the URL pinged by the keep-alive loop."""

        if self.keep_alive_url:
            return self.keep_alive_url
        return f"http://127.0.0.1:{self.server_port}/ping"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
