"""
Crawl-wide stop signal.

One token is shared by every worker and every suspension point of a
crawl: waits, sleeps and network calls are raced against it so a stop
request interrupts them promptly.
"""

import asyncio
from typing import Awaitable, TypeVar

from webwarden.core.exceptions import CrawlCancelledError

T = TypeVar("T")


class CancellationToken:
    """
    Broadcast stop signal backed by an ``asyncio.Event``.

    Example:
        >>> token = CancellationToken()
        >>> response = await token.run(client.get(url))  # aborted on cancel()
        >>> await token.sleep(0.5)
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether a stop has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request a stop. Idempotent."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise CrawlCancelledError if a stop has been requested."""
        if self._event.is_set():
            raise CrawlCancelledError("Crawl stopped")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the token fires first.

        The inner operation is cancelled when the stop wins the race.

        Raises:
            CrawlCancelledError: If a stop was requested before completion
        """
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                # Reap the inner task; its CancelledError is the expected outcome
                await asyncio.gather(task, return_exceptions=True)

        if task.cancelled():
            raise CrawlCancelledError("Crawl stopped")
        return task.result()

    async def sleep(self, seconds: float) -> None:
        """
        Sleep for ``seconds`` or until the token fires.

        Raises:
            CrawlCancelledError: If a stop was requested before the delay elapsed
        """
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise CrawlCancelledError("Crawl stopped")
