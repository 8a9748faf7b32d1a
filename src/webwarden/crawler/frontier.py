"""
Crawl frontier: FIFO work queue plus visited-set bookkeeping.

Workers claim items through ``Frontier.get``, which marks the URL as
visited at claim time so each URL is dispatched at most once, and
report back with ``task_done`` when the item is finished.
"""

import asyncio
from collections import deque
from typing import Callable
from urllib.parse import urlparse, urlunparse

from webwarden.core.exceptions import CrawlCancelledError
from webwarden.crawler.cancellation import CancellationToken
from webwarden.core.models import WorkItem
from webwarden.utils.logging import get_logger

logger = get_logger(__name__)

# Receives the number of items in flight, answers whether another may start
ClaimBudget = Callable[[int], bool]


def normalize_url(url: str) -> str:
    """
    Normalize URL for consistent comparison.

    Only changes that leave the requested resource the same are made:

    - Lowercases scheme and host
    - Removes default ports
    - Gives an empty path the root path
    - Removes fragments

    The path and query are kept exactly as written, so the URL that is
    deduplicated is the URL that is fetched and checked against robots.txt.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL string
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return url

    scheme = parsed.scheme.lower()
    netloc = parsed.netloc.lower()

    if netloc.endswith(":80") and scheme == "http":
        netloc = netloc[:-3]
    elif netloc.endswith(":443") and scheme == "https":
        netloc = netloc[:-4]

    path = parsed.path or "/"

    return urlunparse((scheme, netloc, path, parsed.params, parsed.query, ""))


class Frontier:
    """
    FIFO queue of pending work with at-most-once dispatch per URL.

    Features:
    - Depth limit enforced on enqueue
    - Visited set populated when an item is claimed
    - In-flight tracking so idle workers wait for work that running
      items may still discover
    - Cancellation-aware waiting

    Example:
        >>> frontier = Frontier(max_depth=2)
        >>> await frontier.put(WorkItem("https://example.com/"))
        >>> item = await frontier.get()
        >>> ...
        >>> await frontier.task_done()
    """

    def __init__(
        self,
        max_depth: int,
        token: CancellationToken | None = None,
    ) -> None:
        """
        Initialize frontier.

        Args:
            max_depth: Deepest depth that may be enqueued
            token: Stop signal; a stopped frontier hands out no more work
        """
        self.max_depth = max_depth
        self._token = token or CancellationToken()
        self._queue: deque[WorkItem] = deque()
        self._visited: set[str] = set()
        self._pending: set[str] = set()
        self._in_flight = 0
        self._duplicates = 0
        self._lock = asyncio.Lock()
        self._changed = asyncio.Event()

    async def put(self, item: WorkItem) -> bool:
        """
        Append an item to the queue.

        Args:
            item: Work item to enqueue

        Returns:
            True if queued, False if too deep, already queued or visited
        """
        async with self._lock:
            return self._put_locked(item)

    async def put_many(self, items: list[WorkItem]) -> int:
        """
        Append several items atomically.

        Returns:
            Number of items actually queued
        """
        async with self._lock:
            added = sum(1 for item in items if self._put_locked(item))
        return added

    def _put_locked(self, item: WorkItem) -> bool:
        if item.depth > self.max_depth:
            logger.debug(
                f"Skipping URL (depth {item.depth} > {self.max_depth}): {item.url}")
            return False

        if item.url in self._visited or item.url in self._pending:
            self._duplicates += 1
            return False

        self._pending.add(item.url)
        self._queue.append(item)
        self._changed.set()
        return True

    async def get(self, budget: ClaimBudget | None = None) -> WorkItem | None:
        """
        Claim the next item to process.

        While the queue is empty (or the budget refuses a claim) but other
        items are in flight, waits for them to finish.

        Args:
            budget: Optional admission check given the in-flight count

        Returns:
            Claimed WorkItem, or None when the crawl has run dry or stopped
        """
        while True:
            async with self._lock:
                if self._token.cancelled:
                    return None

                if self._queue and (budget is None or budget(self._in_flight)):
                    item = self._queue.popleft()
                    self._pending.discard(item.url)
                    self._visited.add(item.url)
                    self._in_flight += 1
                    return item

                if self._in_flight == 0:
                    return None

                self._changed.clear()

            try:
                await self._token.run(self._changed.wait())
            except CrawlCancelledError:
                return None

    async def task_done(self) -> None:
        """Mark a previously claimed item as finished."""
        async with self._lock:
            if self._in_flight > 0:
                self._in_flight -= 1
            self._changed.set()

    def is_visited(self, url: str) -> bool:
        """Check whether a URL has been claimed."""
        return url in self._visited

    @property
    def pending_count(self) -> int:
        """Number of items waiting in queue."""
        return len(self._queue)

    @property
    def in_flight_count(self) -> int:
        """Number of claimed items not yet finished."""
        return self._in_flight

    @property
    def visited_count(self) -> int:
        """Number of URLs claimed so far."""
        return len(self._visited)

    @property
    def duplicate_count(self) -> int:
        """Number of already queued or visited URLs rejected on enqueue."""
        return self._duplicates

    def get_stats(self) -> dict:
        """Get frontier statistics."""
        return {
            "pending": self.pending_count,
            "in_flight": self.in_flight_count,
            "visited": self.visited_count,
            "duplicates": self.duplicate_count,
        }
