"""
Shared pytest fixtures for WebWarden tests.

Provides reusable fixtures for:
- Global state reset (metrics, logging, settings)
- Fast crawl configuration
- A fake website served through httpx.MockTransport
- Sample HTML and page records
"""

import os
import time
from datetime import datetime, timezone
from typing import Callable, Sequence

import httpx
import pytest

from webwarden.config import reset_settings
from webwarden.core.models import (
    CrawlConfig,
    CrawlErrorRecord,
    CrawlResult,
    CrawlStats,
    PageRecord,
)
from webwarden.utils.logging import reset_logging
from webwarden.utils.metrics import Metrics

# A page body, a prepared response, or a handler returning either
Route = str | httpx.Response | Callable[[httpx.Request], object]


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch):
    """
    Reset global state before and after each test.

    This ensures tests are isolated and don't share metrics, logging
    handlers, cached settings or environment overrides.
    """
    for key in list(os.environ):
        if key.startswith("WEBWARDEN__"):
            monkeypatch.delenv(key)

    Metrics.reset()
    reset_logging()
    reset_settings()
    yield
    Metrics.reset()
    reset_logging()
    reset_settings()


class FakeSite:
    """
    In-memory website for crawl tests.

    Routes map absolute URLs to HTML bodies, prepared responses or
    handlers. Unknown URLs answer 404. Every request is logged with its
    monotonic arrival time.
    """

    def __init__(self, routes: dict[str, Route] | None = None, robots: str | None = None) -> None:
        self.routes: dict[str, Route] = dict(routes or {})
        self.robots = robots
        self.requests: list[tuple[float, str]] = []

    def handler(self, request: httpx.Request):
        url = str(request.url)
        self.requests.append((time.monotonic(), url))

        if request.url.path == "/robots.txt" and url not in self.routes:
            if self.robots is None:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, text=self.robots, headers={"content-type": "text/plain"})

        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="Not Found")
        if isinstance(route, str):
            return httpx.Response(200, text=route, headers={"content-type": "text/html; charset=utf-8"})
        if isinstance(route, httpx.Response):
            return route
        return route(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def page_requests(self) -> list[str]:
        """URLs requested, excluding robots.txt."""
        return [url for _, url in self.requests if not url.endswith("/robots.txt")]

    def page_request_times(self) -> list[float]:
        return [t for t, url in self.requests if not url.endswith("/robots.txt")]

    def count(self, url: str) -> int:
        return sum(1 for _, requested in self.requests if requested == url)


def html_page(title: str, links: Sequence[str] = (), body: str = "") -> str:
    """Build a small HTML document linking to ``links``."""
    anchors = "\n".join(f'<a href="{href}">link</a>' for href in links)
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><h1>{title}</h1><p>{body or title + ' content'}</p>{anchors}</body></html>"
    )


@pytest.fixture
def fake_site() -> Callable[..., FakeSite]:
    """Factory fixture building FakeSite instances."""
    return FakeSite


@pytest.fixture
def page_html() -> Callable[..., str]:
    """Provide the HTML page builder."""
    return html_page


@pytest.fixture
def fast_config() -> CrawlConfig:
    """Crawl configuration without delays, for fast tests."""
    return CrawlConfig(
        max_concurrency=3,
        request_delay_ms=0,
        timeout_ms=2000,
        max_retries=2,
        respect_robots=True,
        max_pages=100,
        max_depth=3,
        retry_base_delay_ms=0,
        worker_pause_ms=0,
    )


@pytest.fixture
def sample_html() -> str:
    """Provide sample HTML for extraction tests."""
    return """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="description" content="Test page description">
        <meta name="keywords" content="testing, products, services">
        <title>Test Page Title</title>
    </head>
    <body>
        <header>
            <nav>
                <a href="/home">Home</a>
                <a href="/products">Products</a>
                <a href="about">About Us</a>
                <a href="mailto:contact@example.com">Mail</a>
                <a href="javascript:void(0)">Menu</a>
                <a href="#main">Skip</a>
            </nav>
        </header>
        <main>
            <article>
                <h1>Welcome to Our Website</h1>
                <p>This is the main content of our test page. It contains
                important information about our products and services.</p>
                <img src="/logo.png" alt="Logo">
                <h2>Our Products</h2>
                <ul>
                    <li>Product A - Enterprise Solution</li>
                    <li>Product B - Small Business Tool</li>
                </ul>
                <h2>Contact Information</h2>
                <h3>Office</h3>
                <p>Phone: 555-0123</p>
                <img src="/office.jpg" alt="Office">
                <a href="https://other.com/partner">Partner</a>
                <a href="/products#top">Products again</a>
            </article>
        </main>
    </body>
    </html>
    """


@pytest.fixture
def sample_pages() -> list[PageRecord]:
    """Provide page records for export and search tests."""
    return [
        PageRecord(
            url="https://example.com/page1",
            title="JavaScript Tutorial",
            description="Learn JavaScript programming basics",
            keywords="javascript, programming, tutorial",
            headings={"h1": ["JavaScript Tutorial"], "h2": [], "h3": []},
            link_count=10,
            image_count=2,
            word_count=500,
            depth=0,
            crawled_at=datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc),
            content_length=2048,
            load_time_ms=120,
        ),
        PageRecord(
            url="https://example.com/page2",
            title="Python Guide",
            description="Complete guide to Python programming",
            keywords="python, programming, guide",
            headings={"h1": ["Python Guide"], "h2": ["Getting started"], "h3": []},
            link_count=15,
            image_count=0,
            word_count=800,
            depth=1,
            referrer="https://example.com/page1",
            crawled_at=datetime(2025, 1, 1, 1, 0, tzinfo=timezone.utc),
            content_length=4096,
            load_time_ms=80,
        ),
    ]


@pytest.fixture
def sample_result(sample_pages: list[PageRecord]) -> CrawlResult:
    """Provide a crawl result with pages and one error."""
    errors = (
        CrawlErrorRecord(
            url="https://example.com/missing",
            message="HTTP 404: Not Found",
            timestamp=datetime(2025, 1, 1, 2, 0, tzinfo=timezone.utc),
        ),
    )
    stats = CrawlStats(
        processed=2,
        failed=1,
        skipped=0,
        start_time=datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc),
        crawled=2,
        errors=1,
        elapsed=3.5,
        visited_size=3,
    )
    return CrawlResult(pages=tuple(sample_pages), errors=errors, stats=stats)
