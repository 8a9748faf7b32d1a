"""
Data model shared by the crawl engine and its collaborators.

Records are immutable once created. Their ``to_dict`` forms use the
field names consumed by the export and search components.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: str | datetime | None) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return utc_now()
    # fromisoformat() on older interpreters rejects a trailing "Z"
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class CrawlConfig:
    """
    Immutable settings snapshot for one crawl.

    Values are trusted as-is; range checks belong to the settings layer
    (see ``CrawlerSettings``).
    """

    max_concurrency: int = 3
    request_delay_ms: int = 1000
    timeout_ms: int = 10000
    max_retries: int = 2
    respect_robots: bool = True
    user_agent: str = "WebWarden Crawler 2.0"
    max_pages: int = 100
    max_depth: int = 3
    retry_base_delay_ms: int = 1000
    worker_pause_ms: int = 100
    max_links_per_page: int = 20
    follow_redirects: bool = True
    max_redirects: int = 5
    accepted_content_types: tuple[str, ...] = ("text/html", "application/xhtml+xml")


@dataclass(frozen=True)
class WorkItem:
    """A pending unit of crawl work, consumed exactly once."""

    url: str
    depth: int = 0
    referrer: str | None = None


@dataclass(frozen=True)
class PageRecord:
    """
    Structured record of one successfully fetched and parsed page.

    Attributes:
        url: Canonical page URL
        title: Page title (falls back to first h1, then URL)
        description: Meta description or leading text
        keywords: Raw meta keywords string
        headings: Mapping of h1/h2/h3 to their texts
        link_count: Number of anchors with an href
        image_count: Number of img elements
        word_count: Words in the body text
        depth: Link distance from the seed
        referrer: Page on which this URL was discovered
        crawled_at: When the record was produced
        content_length: Length of the raw HTML
        load_time_ms: Duration of the successful fetch
    """

    url: str
    title: str
    description: str = ""
    keywords: str = ""
    headings: dict[str, list[str]] = field(default_factory=dict)
    link_count: int = 0
    image_count: int = 0
    word_count: int = 0
    depth: int = 0
    referrer: str | None = None
    crawled_at: datetime = field(default_factory=utc_now)
    content_length: int = 0
    load_time_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to the external (camelCase) representation."""
        return {
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "keywords": self.keywords,
            "headings": {tag: list(texts) for tag, texts in self.headings.items()},
            "linkCount": self.link_count,
            "imageCount": self.image_count,
            "wordCount": self.word_count,
            "depth": self.depth,
            "referrer": self.referrer,
            "crawledAt": _isoformat(self.crawled_at),
            "contentLength": self.content_length,
            "loadTimeMs": self.load_time_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PageRecord":
        """Rebuild a record from its external representation."""
        return cls(
            url=data["url"],
            title=data.get("title") or data["url"],
            description=data.get("description") or "",
            keywords=data.get("keywords") or "",
            headings={
                tag: list(texts)
                for tag, texts in (data.get("headings") or {}).items()
            },
            link_count=int(data.get("linkCount") or 0),
            image_count=int(data.get("imageCount") or 0),
            word_count=int(data.get("wordCount") or 0),
            depth=int(data.get("depth") or 0),
            referrer=data.get("referrer"),
            crawled_at=_parse_datetime(data.get("crawledAt")),
            content_length=int(data.get("contentLength") or 0),
            load_time_ms=int(data.get("loadTimeMs") or 0),
        )


@dataclass(frozen=True)
class CrawlErrorRecord:
    """Terminal failure of one work item."""

    url: str
    message: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "message": self.message,
            "timestamp": _isoformat(self.timestamp),
        }


@dataclass(frozen=True)
class CrawlStats:
    """
    Consistent point-in-time view of crawl counters.

    ``processed``/``failed``/``skipped`` are the raw counters; the
    remaining fields are derived when the snapshot is taken.
    """

    processed: int = 0
    failed: int = 0
    skipped: int = 0
    duplicates: int = 0
    start_time: datetime | None = None
    crawled: int = 0
    queued: int = 0
    errors: int = 0
    elapsed: float = 0.0
    active_requests: int = 0
    visited_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "failed": self.failed,
            "skipped": self.skipped,
            "duplicates": self.duplicates,
            "startTime": _isoformat(self.start_time),
            "crawled": self.crawled,
            "queued": self.queued,
            "errors": self.errors,
            "elapsed": round(self.elapsed, 3),
            "activeRequests": self.active_requests,
            "visitedSize": self.visited_size,
        }


class CrawlStatus(str, Enum):
    """How a crawl ended."""

    COMPLETED = "completed"
    STOPPED = "stopped"


@dataclass(frozen=True)
class CrawlResult:
    """
    Final handoff of a crawl: pages, errors and closing stats.

    Consumers treat it as a read-only snapshot.
    """

    pages: tuple[PageRecord, ...]
    errors: tuple[CrawlErrorRecord, ...]
    stats: CrawlStats
    status: CrawlStatus = CrawlStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "pages": [page.to_dict() for page in self.pages],
            "errors": [error.to_dict() for error in self.errors],
            "stats": self.stats.to_dict(),
        }
