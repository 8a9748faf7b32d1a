"""
Rate limiting for web crawling.

A single global gate spaces out the start of outbound fetches so that
consecutive dispatches are at least ``delay_seconds`` apart, no matter
which worker issues them.
"""

import asyncio
import time
from dataclasses import dataclass

from webwarden.crawler.cancellation import CancellationToken
from webwarden.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitState:
    """
    Dispatch bookkeeping for the gate.

    Attributes:
        last_request_time: Monotonic timestamp of the last dispatch (None before the first)
        request_count: Total dispatches granted
        total_wait: Seconds spent waiting for the gate
    """

    last_request_time: float | None = None
    request_count: int = 0
    total_wait: float = 0.0


class RateLimiter:
    """
    Global rate limiter enforcing a minimum delay between dispatches.

    The gate is held only while waiting for the slot and stamping the
    dispatch time; the request itself runs after ``acquire`` returns, so
    spaced-out requests may overlap.

    Example:
        >>> limiter = RateLimiter(delay_seconds=1.0)
        >>> await limiter.acquire()
        >>> # Makes request...
        >>> await limiter.acquire()
        >>> # Waits ~1 second before returning
    """

    def __init__(self, delay_seconds: float = 1.0) -> None:
        """
        Initialize rate limiter.

        Args:
            delay_seconds: Minimum seconds between request starts
        """
        self.delay_seconds = delay_seconds
        self._state = RateLimitState()
        self._lock = asyncio.Lock()

    async def acquire(self, token: CancellationToken | None = None) -> float:
        """
        Acquire permission to dispatch a request.

        Blocks until ``delay_seconds`` have passed since the previous
        dispatch, then records this dispatch and releases the gate.

        Args:
            token: Stop signal interrupting the wait

        Returns:
            Time waited for the slot in seconds

        Raises:
            CrawlCancelledError: If the token fires while waiting
        """
        token = token or CancellationToken()
        started = time.monotonic()

        await token.run(self._lock.acquire())
        try:
            state = self._state
            if state.last_request_time is not None:
                time_since_last = time.monotonic() - state.last_request_time
                if time_since_last < self.delay_seconds:
                    wait_time = self.delay_seconds - time_since_last
                    logger.debug(f"Rate limit: waiting {wait_time:.3f}s")
                    await token.sleep(wait_time)

            state.last_request_time = time.monotonic()
            state.request_count += 1
            waited = state.last_request_time - started
            state.total_wait += waited
            return waited
        finally:
            self._lock.release()

    @property
    def request_count(self) -> int:
        """Number of dispatches granted so far."""
        return self._state.request_count

    def get_stats(self) -> dict:
        """
        Get rate limiter statistics.

        Returns:
            Dictionary with dispatch count and accumulated wait
        """
        return {
            "delay_seconds": self.delay_seconds,
            "request_count": self._state.request_count,
            "total_wait_seconds": round(self._state.total_wait, 3),
        }

    def reset(self) -> None:
        """Forget previous dispatches."""
        self._state = RateLimitState()
