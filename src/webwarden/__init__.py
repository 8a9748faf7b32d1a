"""
WebWarden - A polite website crawler.

This package provides a bounded-concurrency crawl engine with rate limiting,
retry and robots.txt compliance, plus export and search of the results.
"""

__version__ = "0.1.0"
__author__ = "WebWarden Team"

from webwarden.config import Settings, load_config
from webwarden.utils.logging import setup_logging, get_logger
from webwarden.core.exceptions import WebWardenError
from webwarden.crawler import CrawlScheduler, CrawlConfig, CrawlResult
from webwarden.extraction import PageExtractor

__all__ = [
    "Settings",
    "load_config",
    "setup_logging",
    "get_logger",
    "WebWardenError",
    "CrawlScheduler",
    "CrawlConfig",
    "CrawlResult",
    "PageExtractor",
]
