"""FeedSync configuration.

Application settings loaded from environment variables with FEEDSYNC_ prefix.
List values such as ``FEEDSYNC_SOURCES`` are given as JSON.

Example:
    >>> from feedsync.core.config import get_settings
    >>> settings = get_settings(log_level="DEBUG", sources=["https://example.com/rss"])
    >>> settings.log_level
    'DEBUG'
    >>> settings.page_size
    50
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from feedsync.core.exceptions import ConfigurationError

PAGE_SIZE = 50

DEFAULT_SOURCES: tuple[str, ...] = (
    "https://feeds.bbci.co.uk/news/world/rss.xml",
    "https://feeds.bbci.co.uk/news/technology/rss.xml",
    "https://feeds.bbci.co.uk/news/science_and_environment/rss.xml",
    "https://www.aljazeera.com/xml/rss/all.xml",
    "https://www.theguardian.com/world/rss",
    "https://www.theguardian.com/uk/technology/rss",
    "https://feeds.npr.org/1001/rss.xml",
    "https://hnrss.org/best",
    "https://feeds.arstechnica.com/arstechnica/index",
    "https://www.theverge.com/rss/index.xml",
    "https://www.wired.com/feed/rss",
    "https://lwn.net/headlines/rss",
    "https://www.phoronix.com/rss.php",
    "https://blog.system76.com/rss.xml",
    "https://www.nasa.gov/news-release/feed/",
    "https://www.sciencedaily.com/rss/top/science.xml",
    "https://this-week-in-rust.org/rss.xml",
    "https://planet.gnome.org/rss20.xml",
)


class Settings(BaseSettings):
    """Application settings.

    Example:
        >>> from feedsync.core.config import Settings
        >>> s = Settings(database_path=":memory:")
        >>> str(s.database_path)
        ':memory:'
        >>> s.sync_interval
        600.0
    """

    model_config = SettingsConfigDict(
        env_prefix="FEEDSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    database_path: Path = Field(default=Path("rss.db"), description="SQLite database file")

    # Sources
    sources: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SOURCES),
        description="Feed URLs to sync",
    )

    # Scheduling
    sync_interval: float = Field(default=600.0, gt=0, description="Seconds between syncs")
    warmup_delay: float = Field(default=2.0, ge=0, description="Delay before the first sync")

    # Fetching
    fetch_timeout: float = Field(default=30.0, gt=0, description="Per-source deadline in seconds")
    request_timeout: float = Field(default=8.0, gt=0, description="Per-attempt HTTP timeout in seconds")
    max_retries: int = Field(default=2, ge=0, le=10)
    user_agent: str = Field(default="feedsync/0.1.0")

    # Pagination
    page_size: int = Field(default=PAGE_SIZE, ge=1, le=10000)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format: console or json")

    @field_validator("sources")
    @classmethod
    def dedupe_sources(cls, v: list[str]) -> list[str]:
        """Strip, drop blanks and duplicates, keep configured order."""
        seen: dict[str, None] = {}
        for url in v:
            url = url.strip()
            if url:
                seen.setdefault(url, None)
        if not seen:
            raise ValueError("at least one source URL is required")
        return list(seen)

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return v

    @model_validator(mode="after")
    def check_timeouts(self) -> Settings:
        # Retries only happen while the per-source deadline is still open.
        if self.request_timeout > self.fetch_timeout:
            raise ValueError("request_timeout must not exceed fetch_timeout")
        return self


def get_settings(**overrides: Any) -> Settings:
    """Get settings with optional overrides.

    Raises:
        ConfigurationError: If any value fails validation.

    Example:
        >>> from feedsync.core.config import get_settings
        >>> get_settings(page_size=2).page_size
        2
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
