"""
Application configuration management
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_cache_dir() -> Path:
    """Cache directory under XDG_CACHE_HOME (or ~/.cache)"""
    base = os.environ.get("XDG_CACHE_HOME") or os.path.join(os.path.expanduser("~"), ".cache")
    return Path(base) / "pr-recent-comments"


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # GitHub API Configuration
    github_token: Optional[str] = Field(None, validation_alias=AliasChoices("GITHUB_TOKEN", "GH_TOKEN"))
    github_api_base_url: str = Field("https://api.github.com", validation_alias="GITHUB_API_BASE_URL")
    request_delay: float = Field(0.1, validation_alias="GITHUB_REQUEST_DELAY")
    request_timeout: float = Field(30.0, validation_alias="GITHUB_REQUEST_TIMEOUT")
    wait_on_rate_limit: bool = Field(False, validation_alias="WAIT_ON_RATE_LIMIT")

    # Application Configuration
    app_name: str = Field("GitHub Review Digest", validation_alias="APP_NAME")
    app_version: str = Field("1.0.0", validation_alias="APP_VERSION")
    debug: bool = Field(False, validation_alias="DEBUG")
    host: str = Field("127.0.0.1", validation_alias="HOST")
    port: int = Field(8000, validation_alias="PORT")

    # API Configuration
    api_prefix: str = "/api/v1"

    # Logging Configuration
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # Cache Configuration
    cache_dir: Path = Field(default_factory=default_cache_dir, validation_alias="DIGEST_CACHE_DIR")
    database_url: Optional[str] = Field(None, validation_alias="DATABASE_URL")
    cache_ttl_seconds: int = Field(120, validation_alias="CACHE_TTL_SECONDS")

    # Comment Filtering Configuration
    max_body_lines: int = Field(30, validation_alias="MAX_BODY_LINES")
    max_body_chars: int = Field(2500, validation_alias="MAX_BODY_CHARS")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_url() -> str:
    """Get cache database URL from settings"""
    settings = get_settings()
    if settings.database_url:
        return settings.database_url
    return f"sqlite:///{settings.cache_dir / 'digests.db'}"
