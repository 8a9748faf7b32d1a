"""
Crawl scheduling for the WebWarden crawler.

Runs a fixed pool of worker tasks over a shared frontier. Each worker
claims an item, consults robots.txt, fetches through the global rate
limiter with bounded retry, extracts the page and queues same-domain
links until the frontier runs dry, the page cap is reached or the crawl
is stopped.
"""

import asyncio
import inspect
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from webwarden.core.exceptions import (
    CrawlCancelledError,
    CrawlerError,
    ExtractionError,
    FetchError,
    InvalidInputError,
    get_retry_delay,
)
from webwarden.core.models import (
    CrawlConfig,
    CrawlErrorRecord,
    CrawlResult,
    CrawlStats,
    CrawlStatus,
    PageRecord,
    WorkItem,
    utc_now,
)
from webwarden.crawler.cancellation import CancellationToken
from webwarden.crawler.fetcher import FetchedPage, PageFetcher, create_client
from webwarden.crawler.filters import LinkFilter, is_valid_url
from webwarden.crawler.frontier import Frontier, normalize_url
from webwarden.crawler.rate_limiter import RateLimiter
from webwarden.crawler.retry import RetryPolicy
from webwarden.crawler.robots import RobotsChecker
from webwarden.extraction.page_extractor import PageExtractor
from webwarden.utils.logging import LoggerAdapter, get_logger, get_logger_with_context
from webwarden.utils.metrics import (
    increment_fetch_retries,
    increment_pages_crawled,
    increment_pages_failed,
    increment_pages_skipped,
    observe_fetch_latency,
)

logger = get_logger(__name__)

# Callbacks may be plain functions or coroutine functions
ProgressCallback = Callable[[CrawlStats], Any]
CompleteCallback = Callable[[CrawlResult], Any]


class ResultAccumulator:
    """
    Thread-safe store for crawl results and counters.

    The lock is never held across an ``await``; every method is a short
    in-memory critical section, so snapshots are always consistent.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pages: list[PageRecord] = []
        self._errors: list[CrawlErrorRecord] = []
        self._skipped = 0
        self._active_requests = 0
        self._start_time = utc_now()
        self._started = time.monotonic()

    def add_page(self, record: PageRecord) -> int:
        """Record a crawled page and return the page count."""
        with self._lock:
            self._pages.append(record)
            return len(self._pages)

    def add_error(self, error: CrawlErrorRecord) -> None:
        with self._lock:
            self._errors.append(error)

    def mark_skipped(self) -> None:
        with self._lock:
            self._skipped += 1

    def request_started(self) -> None:
        with self._lock:
            self._active_requests += 1

    def request_finished(self) -> None:
        with self._lock:
            self._active_requests = max(0, self._active_requests - 1)

    @property
    def page_count(self) -> int:
        with self._lock:
            return len(self._pages)

    @property
    def pages(self) -> tuple[PageRecord, ...]:
        with self._lock:
            return tuple(self._pages)

    @property
    def errors(self) -> tuple[CrawlErrorRecord, ...]:
        with self._lock:
            return tuple(self._errors)

    def snapshot(
        self,
        queued: int = 0,
        visited_size: int = 0,
        duplicates: int = 0,
    ) -> CrawlStats:
        """
        Take a consistent stats snapshot.

        Args:
            queued: Items waiting in the frontier
            visited_size: URLs claimed so far
            duplicates: Duplicate items discarded by the frontier
        """
        with self._lock:
            return CrawlStats(
                processed=len(self._pages),
                failed=len(self._errors),
                skipped=self._skipped,
                duplicates=duplicates,
                start_time=self._start_time,
                crawled=len(self._pages),
                queued=queued,
                errors=len(self._errors),
                elapsed=time.monotonic() - self._started,
                active_requests=self._active_requests,
                visited_size=visited_size,
            )


@dataclass
class CrawlContext:
    """Shared state handed to every worker of one crawl."""

    config: CrawlConfig
    token: CancellationToken
    frontier: Frontier
    results: ResultAccumulator
    limiter: RateLimiter
    policy: RetryPolicy
    fetcher: PageFetcher
    robots: RobotsChecker | None
    link_filter: LinkFilter

    def has_page_budget(self, in_flight: int) -> bool:
        """Whether another item may be claimed without overshooting max_pages."""
        return self.results.page_count + in_flight < self.config.max_pages

    def stats(self) -> CrawlStats:
        return self.results.snapshot(
            queued=self.frontier.pending_count,
            visited_size=self.frontier.visited_count,
            duplicates=self.frontier.duplicate_count,
        )


class CrawlScheduler:
    """
    Bounded-concurrency crawl engine.

    One scheduler runs one crawl at a time. ``stop()`` ends a running
    crawl early; the partial result is returned normally with status
    ``stopped``.

    Example:
        >>> scheduler = CrawlScheduler(CrawlConfig(max_pages=10))
        >>> result = await scheduler.run(
        ...     "https://example.com",
        ...     on_progress=lambda stats: print(stats.crawled),
        ... )
        >>> print(len(result.pages), len(result.errors))
    """

    def __init__(
        self,
        config: CrawlConfig | None = None,
        extractor: PageExtractor | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            config: Validated crawl settings
            extractor: Page extractor (defaults to PageExtractor)
            transport: Optional HTTP transport override for the crawl client
        """
        self.config = config or CrawlConfig()
        self.extractor = extractor or PageExtractor()
        self._transport = transport
        self._token: CancellationToken | None = None
        self._context: CrawlContext | None = None

    @property
    def is_running(self) -> bool:
        return self._token is not None

    def stop(self) -> None:
        """
        Request the running crawl to stop.

        In-flight requests are aborted and no new work is started. Must be
        called from the event loop running the crawl. No-op when idle.
        """
        if self._token is None:
            logger.debug("stop() called with no crawl running")
            return
        if not self._token.cancelled:
            logger.info("Stop requested")
        self._token.cancel()

    def get_stats(self) -> CrawlStats | None:
        """Live stats of the running crawl, or None when idle."""
        if self._context is None:
            return None
        return self._context.stats()

    async def run(
        self,
        seed_url: str,
        on_progress: ProgressCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ) -> CrawlResult:
        """
        Crawl from a seed URL.

        Args:
            seed_url: Absolute http/https URL to start from
            on_progress: Called with a stats snapshot after every finished item
            on_complete: Called once with the final result

        Returns:
            CrawlResult with pages, errors and closing stats

        Raises:
            InvalidInputError: If seed_url is not a valid http/https URL
            CrawlerError: If this scheduler is already running a crawl
        """
        if not is_valid_url(seed_url):
            raise InvalidInputError(f"Invalid seed URL: {seed_url!r}", url=seed_url)
        if self._token is not None:
            raise CrawlerError("A crawl is already running on this scheduler")

        self._token = CancellationToken()
        try:
            return await self._run(normalize_url(seed_url), on_progress, on_complete)
        finally:
            self._token = None
            self._context = None

    async def _run(
        self,
        seed_url: str,
        on_progress: ProgressCallback | None,
        on_complete: CompleteCallback | None,
    ) -> CrawlResult:
        config = self.config
        token = self._token

        logger.info(
            f"Starting crawl from {seed_url} (concurrency={config.max_concurrency}, "
            f"max_pages={config.max_pages}, max_depth={config.max_depth})")

        async with create_client(config, self._transport) as client:
            robots = None
            if config.respect_robots:
                robots = RobotsChecker(
                    client,
                    user_agent=config.user_agent,
                    timeout_seconds=config.timeout_ms / 1000,
                    token=token,
                )

            ctx = CrawlContext(
                config=config,
                token=token,
                frontier=Frontier(max_depth=config.max_depth, token=token),
                results=ResultAccumulator(),
                limiter=RateLimiter(delay_seconds=config.request_delay_ms / 1000),
                policy=RetryPolicy(
                    max_retries=config.max_retries,
                    base_delay=config.retry_base_delay_ms / 1000,
                ),
                fetcher=PageFetcher(client, config, token),
                robots=robots,
                link_filter=LinkFilter(seed_url, max_links=config.max_links_per_page),
            )
            self._context = ctx

            await ctx.frontier.put(WorkItem(url=seed_url, depth=0))

            await asyncio.gather(*(
                self._worker(ctx, worker_id, on_progress)
                for worker_id in range(config.max_concurrency)
            ))

        status = CrawlStatus.STOPPED if token.cancelled else CrawlStatus.COMPLETED
        result = CrawlResult(
            pages=ctx.results.pages,
            errors=ctx.results.errors,
            stats=ctx.stats(),
            status=status,
        )

        logger.info(
            f"Crawl {status.value}: {result.stats.crawled} pages, "
            f"{result.stats.errors} errors, {result.stats.skipped} skipped "
            f"in {result.stats.elapsed:.1f}s")

        await self._notify(on_complete, result, "on_complete")
        return result

    async def _worker(
        self,
        ctx: CrawlContext,
        worker_id: int,
        on_progress: ProgressCallback | None,
    ) -> None:
        log = get_logger_with_context(__name__, worker=worker_id)
        log.debug("Worker started")

        while True:
            item = await ctx.frontier.get(ctx.has_page_budget)
            if item is None:
                break

            try:
                await self._process(ctx, item, log)
            except CrawlCancelledError:
                log.debug(f"Stopped while processing {item.url}")
                break
            finally:
                await ctx.frontier.task_done()

            await self._notify(on_progress, ctx.stats(), "on_progress")

            try:
                await ctx.token.sleep(ctx.config.worker_pause_ms / 1000)
            except CrawlCancelledError:
                break

        log.debug("Worker finished")

    async def _process(
        self,
        ctx: CrawlContext,
        item: WorkItem,
        log: LoggerAdapter,
    ) -> None:
        """Handle one claimed work item from robots check to link discovery."""
        if ctx.robots is not None and not await ctx.robots.is_allowed(item.url):
            ctx.results.mark_skipped()
            increment_pages_skipped()
            log.debug(f"Skipped (robots.txt): {item.url}")
            return

        try:
            page = await self._fetch_with_retry(ctx, item.url, log)
            extracted = self.extractor.extract(
                page.html,
                url=item.url,
                depth=item.depth,
                referrer=item.referrer,
                load_time_ms=page.elapsed_ms,
                base_url=page.url,
            )
        except CrawlCancelledError:
            raise
        except (FetchError, ExtractionError) as e:
            self._record_failure(ctx, item, e.message, log)
            return
        except Exception as e:
            log.exception(f"Unexpected error processing {item.url}")
            self._record_failure(ctx, item, f"{e.__class__.__name__}: {e}", log)
            return

        page_count = ctx.results.add_page(extracted.record)
        increment_pages_crawled()
        log.info(f"Crawled {item.url} (depth {item.depth}, {page.elapsed_ms}ms)")

        if item.depth < ctx.config.max_depth and page_count < ctx.config.max_pages:
            candidates = ctx.link_filter.filter(extracted.links, ctx.frontier.is_visited)
            added = await ctx.frontier.put_many([
                WorkItem(url=url, depth=item.depth + 1, referrer=item.url)
                for url in candidates
            ])
            if added:
                log.debug(f"Queued {added} links from {item.url}")

    def _record_failure(
        self,
        ctx: CrawlContext,
        item: WorkItem,
        message: str,
        log: LoggerAdapter,
    ) -> None:
        ctx.results.add_error(CrawlErrorRecord(url=item.url, message=message))
        increment_pages_failed()
        log.warning(f"Failed {item.url}: {message}")

    async def _fetch_with_retry(
        self,
        ctx: CrawlContext,
        url: str,
        log: LoggerAdapter,
    ) -> FetchedPage:
        """
        Fetch a URL, retrying transient failures with linear backoff.

        Every attempt passes through the rate limiter.

        Raises:
            FetchError: Terminal failure or retries exhausted
            CrawlCancelledError: The crawl was stopped
        """
        attempt = 0
        while True:
            attempt += 1
            await ctx.limiter.acquire(ctx.token)

            ctx.results.request_started()
            try:
                page = await ctx.fetcher.fetch(url)
            except FetchError as e:
                if not ctx.policy.should_retry(e, attempt):
                    raise
                delay = get_retry_delay(e, default=ctx.policy.backoff(attempt))
                last_error = e
            else:
                observe_fetch_latency(page.elapsed_ms)
                return page
            finally:
                ctx.results.request_finished()

            increment_fetch_retries()
            log.warning(
                f"Retrying {url} in {delay:.1f}s "
                f"(attempt {attempt}/{ctx.policy.max_attempts}): {last_error.message}")
            await ctx.token.sleep(delay)

    async def _notify(self, callback: Callable[[Any], Any] | None, payload: Any, name: str) -> None:
        """Invoke a sync or async callback, logging its failures."""
        if callback is None:
            return
        try:
            outcome = callback(payload)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception(f"{name} callback raised")
