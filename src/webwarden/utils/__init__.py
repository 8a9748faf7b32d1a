"""
Utilities module for the WebWarden crawler.

Provides logging setup and in-memory metrics.
"""

from webwarden.utils.logging import (
    setup_logging,
    get_logger,
    get_logger_with_context,
    reset_logging,
)
from webwarden.utils.metrics import (
    Metrics,
    TimingStats,
    increment_pages_crawled,
    increment_pages_failed,
    increment_pages_skipped,
    increment_fetch_retries,
    observe_fetch_latency,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "get_logger_with_context",
    "reset_logging",
    # Metrics
    "Metrics",
    "TimingStats",
    "increment_pages_crawled",
    "increment_pages_failed",
    "increment_pages_skipped",
    "increment_fetch_retries",
    "observe_fetch_latency",
]
