"""
Retry policy for page fetches.

Backoff is linear in the attempt number: the n-th retry waits
``n * base_delay`` seconds. No jitter.
"""

from dataclasses import dataclass

from webwarden.core.exceptions import is_retryable


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with linear backoff.

    Attributes:
        max_retries: Additional attempts after the first one
        base_delay: Seconds multiplied by the retry number

    Example:
        >>> policy = RetryPolicy(max_retries=2, base_delay=1.0)
        >>> policy.max_attempts
        3
        >>> [policy.backoff(n) for n in (1, 2)]
        [1.0, 2.0]
    """

    max_retries: int = 2
    base_delay: float = 1.0

    @property
    def max_attempts(self) -> int:
        """Total attempts including the first."""
        return self.max_retries + 1

    def backoff(self, retry_number: int) -> float:
        """Delay in seconds before retry ``retry_number`` (1-based)."""
        return max(retry_number, 0) * self.base_delay

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """
        Decide whether a failed attempt gets another try.

        Args:
            error: Failure raised by the attempt
            attempt: 1-based number of the attempt that failed
        """
        return is_retryable(error) and attempt < self.max_attempts
