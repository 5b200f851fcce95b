"""Tests for feedsync.core.config - Settings."""

from __future__ import annotations

import pytest

from feedsync.core.config import DEFAULT_SOURCES, PAGE_SIZE, Settings, get_settings
from feedsync.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Isolate from the developer's environment and .env file."""
    monkeypatch.chdir(tmp_path)
    for name in ("SOURCES", "DATABASE_PATH", "SYNC_INTERVAL", "PAGE_SIZE", "LOG_FORMAT"):
        monkeypatch.delenv(f"FEEDSYNC_{name}", raising=False)


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self) -> None:
        s = Settings()
        assert s.sources == list(DEFAULT_SOURCES)
        assert s.sync_interval == 600.0
        assert s.warmup_delay == 2.0
        assert s.page_size == PAGE_SIZE == 50
        assert s.log_format == "console"

    def test_default_source_count(self) -> None:
        assert len(DEFAULT_SOURCES) == 18


class TestEnvironment:
    """Tests for FEEDSYNC_ environment variables."""

    def test_sources_from_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEEDSYNC_SOURCES", '["https://a.example/rss", "https://b.example/rss"]')
        assert Settings().sources == ["https://a.example/rss", "https://b.example/rss"]

    def test_scalar_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEEDSYNC_SYNC_INTERVAL", "60")
        monkeypatch.setenv("FEEDSYNC_PAGE_SIZE", "20")
        s = Settings()
        assert s.sync_interval == 60.0
        assert s.page_size == 20

    def test_env_file(self, tmp_path) -> None:
        (tmp_path / ".env").write_text("FEEDSYNC_DATABASE_PATH=feeds.db\n")
        assert str(Settings().database_path) == "feeds.db"


class TestValidation:
    """Tests for get_settings validation."""

    def test_sources_deduplicated(self) -> None:
        s = get_settings(sources=["https://a/rss", " https://a/rss ", "", "https://b/rss"])
        assert s.sources == ["https://a/rss", "https://b/rss"]

    def test_empty_sources_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            get_settings(sources=[])

    def test_non_positive_interval_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            get_settings(sync_interval=0)

    def test_page_size_must_be_positive(self) -> None:
        with pytest.raises(ConfigurationError):
            get_settings(page_size=0)

    def test_log_format_checked(self) -> None:
        with pytest.raises(ConfigurationError):
            get_settings(log_format="xml")

    def test_log_level_uppercased(self) -> None:
        assert get_settings(log_level="debug").log_level == "DEBUG"

    def test_request_timeout_defaults_below_source_deadline(self) -> None:
        s = get_settings()
        assert s.request_timeout == 8.0
        assert s.request_timeout * (s.max_retries + 1) + 3 < s.fetch_timeout

    def test_request_timeout_above_source_deadline_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="request_timeout"):
            get_settings(fetch_timeout=5, request_timeout=10)
