"""
Core module for the WebWarden crawler.

Contains the exception hierarchy and the crawl data model shared by
every subsystem.
"""

from webwarden.core.exceptions import (
    WebWardenError,
    ConfigurationError,
    CrawlerError,
    InvalidInputError,
    CrawlCancelledError,
    FetchError,
    FetchTransientError,
    FetchTerminalError,
    ExtractionError,
    ContentExtractionError,
    ExportError,
    RetryableError,
    is_retryable,
    get_retry_delay,
)

__all__ = [
    # Base
    "WebWardenError",
    "ConfigurationError",
    # Crawler
    "CrawlerError",
    "InvalidInputError",
    "CrawlCancelledError",
    "FetchError",
    "FetchTransientError",
    "FetchTerminalError",
    # Extraction
    "ExtractionError",
    "ContentExtractionError",
    # Export
    "ExportError",
    # Retry
    "RetryableError",
    "is_retryable",
    "get_retry_delay",
]
