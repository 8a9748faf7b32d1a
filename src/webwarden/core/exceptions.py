"""
Custom exceptions for the WebWarden crawler.

Provides a hierarchy of exceptions for precise error handling across
all subsystems. All exceptions inherit from WebWardenError.

Exception Hierarchy:
    WebWardenError (base)
    ├── ConfigurationError
    ├── CrawlerError
    │   ├── InvalidInputError
    │   ├── CrawlCancelledError
    │   └── FetchError
    │       ├── FetchTransientError
    │       └── FetchTerminalError
    ├── ExtractionError
    │   └── ContentExtractionError
    └── ExportError
"""

from typing import Any


class WebWardenError(Exception):
    """
    Base exception for all WebWarden errors.

    All custom exceptions inherit from this class, allowing for
    catch-all handling when needed.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(
                f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details!r})"


class RetryableError(WebWardenError):
    """
    Mixin/marker class for errors that can be retried.

    Errors inheriting from this class indicate that the operation
    may succeed if attempted again after a delay.

    Attributes:
        retry_after: Suggested delay in seconds before retry (optional)
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, details)
        self.retry_after = retry_after


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(WebWardenError):
    """
    Error in configuration loading or validation.

    Raised when:
    - Configuration file is missing or malformed
    - Setting values fail validation
    """

    pass


# =============================================================================
# Crawler Errors
# =============================================================================


class CrawlerError(WebWardenError):
    """
    Base error for crawling operations.

    Raised for general crawl-related failures not covered by
    more specific subclasses.
    """

    pass


class InvalidInputError(CrawlerError):
    """
    Seed URL is not a well-formed http/https URL.

    The only failure that aborts a whole crawl; raised before
    any work is scheduled.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url is not None:
            details["url"] = url
        super().__init__(message, details)
        self.url = url


class CrawlCancelledError(CrawlerError):
    """
    The crawl was stopped while an operation was suspended.

    Not a failure: workers treat it as a normal exit and it is
    never written to the error log.
    """

    pass


class FetchError(CrawlerError):
    """
    Base error for a single page fetch.

    Attributes:
        url: URL being fetched
        status_code: HTTP status, when a response was received
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code


class FetchTransientError(FetchError, RetryableError):
    """
    Network error or timeout while fetching a page.

    Retried up to the configured limit, then recorded as a crawl error.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, url=url, details=details)
        self.retry_after = retry_after


class FetchTerminalError(FetchError):
    """
    Response the crawler cannot process.

    Raised when:
    - Server answers with a non-2xx status
    - Content type is not HTML
    - Redirect limit is exceeded

    This is NOT retryable.
    """

    pass


# =============================================================================
# Extraction Errors
# =============================================================================


class ExtractionError(WebWardenError):
    """
    Base error for content extraction operations.
    """

    pass


class ContentExtractionError(ExtractionError):
    """
    Error turning fetched HTML into a page record.

    Raised when the document cannot be parsed.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.url = url


# =============================================================================
# Export Errors
# =============================================================================


class ExportError(WebWardenError):
    """
    Error rendering or writing crawl results.

    Raised when:
    - Export format is not supported
    - Output file cannot be written
    """

    def __init__(
        self,
        message: str,
        export_format: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if export_format:
            details["format"] = export_format
        super().__init__(message, details)
        self.export_format = export_format


# =============================================================================
# Utility Functions
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """
    Check if an error is retryable.

    Args:
        error: The exception to check

    Returns:
        True if the error indicates a retryable condition
    """
    return isinstance(error, RetryableError)


def get_retry_delay(error: Exception, default: float = 1.0) -> float:
    """
    Get the recommended retry delay for an error.

    Args:
        error: The exception to check
        default: Default delay if not specified by error

    Returns:
        Recommended delay in seconds before retry
    """
    if isinstance(error, RetryableError) and error.retry_after is not None:
        return error.retry_after
    return default
