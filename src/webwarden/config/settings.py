"""
Pydantic settings models for the WebWarden crawler.

All configuration is defined here with polite defaults; range limits keep
user-supplied values within what the crawl engine is designed for.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from webwarden.core.models import CrawlConfig

ExportFormat = Literal["csv", "json", "xml", "txt"]


class CrawlerSettings(BaseModel):
    """Crawl engine configuration."""

    max_concurrency: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Number of pages fetched in parallel",
    )
    request_delay_ms: int = Field(
        default=1000,
        ge=100,
        le=60000,
        description="Minimum delay between the start of any two requests in milliseconds",
    )
    timeout_ms: int = Field(
        default=10000,
        ge=1000,
        le=60000,
        description="Timeout for a single request in milliseconds",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=5,
        description="Retry attempts after a network error or timeout",
    )
    retry_base_delay_ms: int = Field(
        default=1000,
        ge=0,
        le=60000,
        description="Backoff unit; the n-th retry waits n times this delay",
    )
    respect_robots: bool = Field(
        default=True,
        description="Whether to respect robots.txt directives",
    )
    user_agent: str = Field(
        default="WebWarden Crawler 2.0",
        description="User agent sent with requests and matched against robots.txt",
    )
    max_pages: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum number of pages to record per crawl",
    )
    max_depth: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum link distance from the seed URL",
    )
    worker_pause_ms: int = Field(
        default=100,
        ge=0,
        le=10000,
        description="Pause each worker takes between items in milliseconds",
    )
    max_links_per_page: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Maximum new links queued from a single page",
    )
    follow_redirects: bool = Field(
        default=True,
        description="Whether to follow HTTP redirects",
    )
    max_redirects: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Maximum redirects followed per request",
    )
    accepted_content_types: list[str] = Field(
        default_factory=lambda: ["text/html", "application/xhtml+xml"],
        min_length=1,
        description="Content types treated as crawlable HTML",
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        """Reject blank user agents."""
        v = v.strip()
        if not v:
            raise ValueError("user_agent must not be empty")
        return v

    @field_validator("accepted_content_types")
    @classmethod
    def normalize_content_types(cls, v: list[str]) -> list[str]:
        """Lower-case and drop blank entries."""
        types = [t.strip().lower() for t in v if t.strip()]
        if not types:
            raise ValueError("accepted_content_types must not be empty")
        return types

    def to_crawl_config(self) -> CrawlConfig:
        """Freeze these settings into the snapshot used by one crawl."""
        return CrawlConfig(
            max_concurrency=self.max_concurrency,
            request_delay_ms=self.request_delay_ms,
            timeout_ms=self.timeout_ms,
            max_retries=self.max_retries,
            respect_robots=self.respect_robots,
            user_agent=self.user_agent,
            max_pages=self.max_pages,
            max_depth=self.max_depth,
            retry_base_delay_ms=self.retry_base_delay_ms,
            worker_pause_ms=self.worker_pause_ms,
            max_links_per_page=self.max_links_per_page,
            follow_redirects=self.follow_redirects,
            max_redirects=self.max_redirects,
            accepted_content_types=tuple(self.accepted_content_types),
        )


class ExportSettings(BaseModel):
    """Result export configuration."""

    default_format: ExportFormat = Field(
        default="json",
        description="Format used when none is given",
    )
    output_dir: Path = Field(
        default=Path("."),
        description="Directory for exports written without an explicit path",
    )
    json_indent: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Indentation for JSON exports",
    )

    @field_validator("output_dir", mode="before")
    @classmethod
    def convert_output_dir(cls, v: str | Path) -> Path:
        """Convert string paths to Path objects."""
        return Path(v) if isinstance(v, str) else v


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum logging level",
    )
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format string",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Date format for log timestamps",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path to log file. None means console only.",
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum log file size before rotation",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Number of backup log files to keep",
    )
    log_to_console: bool = Field(
        default=True,
        description="Whether to output logs to console",
    )

    @field_validator("file_path", mode="before")
    @classmethod
    def convert_file_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None:
            return None
        return Path(v) if isinstance(v, str) else v


class Settings(BaseModel):
    """
    Root configuration model containing all subsystem settings.

    Settings are loaded from YAML with environment variable overrides.
    """

    crawler: CrawlerSettings = Field(
        default_factory=CrawlerSettings,
        description="Crawl engine settings",
    )
    export: ExportSettings = Field(
        default_factory=ExportSettings,
        description="Result export settings",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    model_config = {
        "extra": "forbid",
        "validate_default": True,
    }
