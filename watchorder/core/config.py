"""Configuration management for Watch Order."""

from pydantic import PositiveInt, field_validator
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from urllib.parse import urlparse


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # TMDB
    tmdb_api_key: str | None = None
    catalog_cache_ttl: PositiveInt = 1800  # Seconds to keep TMDB lookups

    # Database
    database_url: str = "sqlite:///./watchorder.db"

    # Header set by the upstream session layer with the acting user's id
    user_header: str = "X-Watchorder-User"

    # Client settings
    api_base_url: str = "http://localhost:8000/api"
    request_timeout: PositiveInt = 30
    list_cache_size: PositiveInt = 64

    # List view defaults
    hide_watched_default: bool = True
    # When set and watched entries are hidden, only watched collapsed parents
    # hide their children
    watched_parents_only: bool = False

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https"):
            raise ValueError("API base URL must be an http or https URL")
        if not parsed.netloc:
            raise ValueError("API base URL must have a host")
        return v.rstrip("/")

    # App settings
    debug: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
