"""
Crawler module for the WebWarden crawler.

Provides the crawl engine and its building blocks:
- Frontier queue with visited-set bookkeeping
- Global rate limiting and linear-backoff retry
- robots.txt compliance
- Page fetching and link discovery
- Crawl scheduling with a bounded worker pool
"""

from webwarden.core.models import (
    CrawlConfig,
    WorkItem,
    PageRecord,
    CrawlErrorRecord,
    CrawlStats,
    CrawlStatus,
    CrawlResult,
)
from webwarden.crawler.cancellation import CancellationToken
from webwarden.crawler.frontier import Frontier, normalize_url
from webwarden.crawler.rate_limiter import RateLimiter
from webwarden.crawler.retry import RetryPolicy
from webwarden.crawler.robots import RobotsChecker, RobotsRules, RobotsRule
from webwarden.crawler.fetcher import PageFetcher, FetchedPage, create_client
from webwarden.crawler.filters import (
    LinkFilter,
    discover_links,
    is_valid_url,
    is_same_domain,
    get_hostname,
)
from webwarden.crawler.scheduler import (
    CrawlScheduler,
    CrawlContext,
    ResultAccumulator,
)

__all__ = [
    # Models
    "CrawlConfig",
    "WorkItem",
    "PageRecord",
    "CrawlErrorRecord",
    "CrawlStats",
    "CrawlStatus",
    "CrawlResult",
    # Coordination
    "CancellationToken",
    "Frontier",
    "normalize_url",
    "RateLimiter",
    "RetryPolicy",
    # Robots
    "RobotsChecker",
    "RobotsRules",
    "RobotsRule",
    # Fetching
    "PageFetcher",
    "FetchedPage",
    "create_client",
    # Filters
    "LinkFilter",
    "discover_links",
    "is_valid_url",
    "is_same_domain",
    "get_hostname",
    # Scheduler
    "CrawlScheduler",
    "CrawlContext",
    "ResultAccumulator",
]
