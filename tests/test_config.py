"""
Tests for configuration module.

Tests settings loading, validation, and environment variable overrides.
"""

from pathlib import Path

import pytest
import yaml

from webwarden.config import (
    Settings,
    CrawlerSettings,
    ExportSettings,
    load_config,
    save_config,
    get_settings,
    reset_settings,
    get_default_config_path,
)
from webwarden.core.exceptions import ConfigurationError
from webwarden.core.models import CrawlConfig


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch) -> Path:
    """Run the test from an empty directory with an empty home."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings_valid(self):
        """Default settings should be valid."""
        settings = Settings()

        assert settings.crawler.max_concurrency == 3
        assert settings.crawler.request_delay_ms == 1000
        assert settings.crawler.max_pages == 100
        assert settings.crawler.respect_robots is True
        assert settings.export.default_format == "json"
        assert settings.logging.level == "INFO"

    def test_crawler_settings_validation(self):
        """Crawler settings should validate constraints."""
        crawler = CrawlerSettings(max_pages=500, max_depth=5)
        assert crawler.max_pages == 500
        assert crawler.max_depth == 5

        with pytest.raises(ValueError):
            CrawlerSettings(max_concurrency=0)
        with pytest.raises(ValueError):
            CrawlerSettings(max_concurrency=11)
        with pytest.raises(ValueError):
            CrawlerSettings(request_delay_ms=50)
        with pytest.raises(ValueError):
            CrawlerSettings(max_pages=1001)
        with pytest.raises(ValueError):
            CrawlerSettings(max_retries=6)
        with pytest.raises(ValueError):
            CrawlerSettings(timeout_ms=500)

    def test_user_agent_validation(self):
        """User agent is stripped and must not be blank."""
        assert CrawlerSettings(user_agent="  MyBot/1.0 ").user_agent == "MyBot/1.0"

        with pytest.raises(ValueError):
            CrawlerSettings(user_agent="   ")

    def test_content_types_normalized(self):
        """Content types are lower-cased and blanks dropped."""
        crawler = CrawlerSettings(accepted_content_types=["Text/HTML", " "])

        assert crawler.accepted_content_types == ["text/html"]

        with pytest.raises(ValueError):
            CrawlerSettings(accepted_content_types=[" "])

    def test_to_crawl_config(self):
        """Settings freeze into a CrawlConfig snapshot."""
        config = CrawlerSettings(max_pages=42, request_delay_ms=250).to_crawl_config()

        assert isinstance(config, CrawlConfig)
        assert config.max_pages == 42
        assert config.request_delay_ms == 250
        assert config.accepted_content_types == ("text/html", "application/xhtml+xml")

    def test_export_settings(self):
        """Export settings convert paths and restrict formats."""
        export = ExportSettings(output_dir="exports", default_format="csv")

        assert export.output_dir == Path("exports")
        with pytest.raises(ValueError):
            ExportSettings(default_format="pdf")

    def test_unknown_section_rejected(self):
        """Unknown top-level sections are rejected."""
        with pytest.raises(ValueError):
            Settings(browser={"headless": True})


class TestConfigLoader:
    """Tests for configuration loading."""

    def test_load_defaults(self):
        """Loading without a file gives defaults."""
        settings = load_config()

        assert settings.crawler.max_pages == 100

    def test_load_yaml_file(self, tmp_path: Path):
        """Values from YAML override defaults."""
        config_file = tmp_path / "webwarden.yaml"
        config_file.write_text(yaml.safe_dump({
            "crawler": {"max_pages": 25, "respect_robots": False},
            "export": {"default_format": "xml"},
        }))

        settings = load_config(config_file)

        assert settings.crawler.max_pages == 25
        assert settings.crawler.respect_robots is False
        assert settings.crawler.max_depth == 3
        assert settings.export.default_format == "xml"

    def test_empty_file(self, tmp_path: Path):
        """An empty file means defaults."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert load_config(config_file).crawler.max_pages == 100

    def test_env_override(self, tmp_path: Path, monkeypatch):
        """Environment variables take precedence over the file."""
        config_file = tmp_path / "webwarden.yaml"
        config_file.write_text(yaml.safe_dump({"crawler": {"max_pages": 25}}))
        monkeypatch.setenv("WEBWARDEN__CRAWLER__MAX_PAGES", "50")
        monkeypatch.setenv("WEBWARDEN__CRAWLER__RESPECT_ROBOTS", "false")
        monkeypatch.setenv(
            "WEBWARDEN__CRAWLER__ACCEPTED_CONTENT_TYPES", "text/html,application/xml")

        settings = load_config(config_file)

        assert settings.crawler.max_pages == 50
        assert settings.crawler.respect_robots is False
        assert settings.crawler.accepted_content_types == ["text/html", "application/xml"]

    def test_missing_file(self, tmp_path: Path):
        """A missing file is a configuration error."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        """Malformed YAML is a configuration error."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("crawler: [unclosed")

        with pytest.raises(ConfigurationError):
            load_config(config_file)

    def test_non_mapping(self, tmp_path: Path):
        """A YAML list is not a valid configuration."""
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(config_file)

    def test_invalid_values(self, tmp_path: Path):
        """Out-of-range values are reported with their location."""
        config_file = tmp_path / "webwarden.yaml"
        config_file.write_text(yaml.safe_dump({"crawler": {"max_pages": 0}}))

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert any(
            error.startswith("crawler.max_pages")
            for error in exc_info.value.details["errors"]
        )

    def test_save_and_reload(self, tmp_path: Path):
        """Saved settings load back unchanged."""
        settings = Settings(crawler=CrawlerSettings(max_pages=7, user_agent="SaveBot"))

        path = save_config(settings, tmp_path / "nested" / "webwarden.yaml")

        assert path.exists()
        assert load_config(path) == settings


class TestSettingsCache:
    """Tests for the global settings instance."""

    def test_default_path_found(self, isolated_cwd: Path):
        """webwarden.yaml in the working directory is picked up."""
        assert get_default_config_path() is None

        config_file = isolated_cwd / "webwarden.yaml"
        config_file.write_text(yaml.safe_dump({"crawler": {"max_pages": 9}}))

        assert get_default_config_path().resolve() == config_file.resolve()
        assert get_settings().crawler.max_pages == 9

    def test_config_subdirectory(self, isolated_cwd: Path):
        """config/webwarden.yaml is the second candidate."""
        config_file = isolated_cwd / "config" / "webwarden.yaml"
        config_file.parent.mkdir()
        config_file.write_text(yaml.safe_dump({"crawler": {"max_pages": 11}}))

        assert get_default_config_path().resolve() == config_file.resolve()

    def test_get_settings_cached(self, isolated_cwd: Path):
        """get_settings returns the same instance until reset or reload."""
        first = get_settings()

        assert get_settings() is first
        assert get_settings(reload=True) is not first

        reset_settings()
        assert get_settings() is not first
