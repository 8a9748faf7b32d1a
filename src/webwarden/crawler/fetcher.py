"""
HTTP page fetching.

Performs one GET per call over a shared ``httpx.AsyncClient`` and sorts
failures into retryable (network, timeout) and terminal (status, content
type) errors.
"""

import time
from dataclasses import dataclass

import httpx

from webwarden.core.exceptions import FetchTerminalError, FetchTransientError
from webwarden.crawler.cancellation import CancellationToken
from webwarden.core.models import CrawlConfig
from webwarden.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


@dataclass(frozen=True)
class FetchedPage:
    """
    Raw result of a successful fetch.

    ``url`` is the address the document was finally served from, after
    any redirects; relative links in ``html`` resolve against it.
    """

    url: str
    html: str
    status_code: int
    content_type: str
    elapsed_ms: int


def create_client(
    config: CrawlConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build the HTTP client shared by one crawl.

    Args:
        config: Crawl settings (user agent, timeout, redirects)
        transport: Optional transport override (e.g. ``httpx.MockTransport``)
    """
    return httpx.AsyncClient(
        headers={"User-Agent": config.user_agent, **DEFAULT_HEADERS},
        timeout=config.timeout_ms / 1000,
        follow_redirects=config.follow_redirects,
        max_redirects=config.max_redirects,
        transport=transport,
    )


class PageFetcher:
    """
    Fetches HTML documents with timeout and cancellation.

    Example:
        >>> fetcher = PageFetcher(client, config, token)
        >>> page = await fetcher.fetch("https://example.com/")
        >>> print(page.status_code, len(page.html))
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: CrawlConfig,
        token: CancellationToken | None = None,
    ) -> None:
        """
        Initialize fetcher.

        Args:
            client: Shared HTTP client
            config: Crawl settings
            token: Stop signal aborting the in-flight request
        """
        self.client = client
        self.config = config
        self._token = token or CancellationToken()

    def _is_accepted(self, content_type: str) -> bool:
        content_type = content_type.lower()
        return any(accepted in content_type for accepted in self.config.accepted_content_types)

    async def fetch(self, url: str) -> FetchedPage:
        """
        Fetch a single page.

        Args:
            url: Absolute URL to GET

        Returns:
            FetchedPage with decoded HTML

        Raises:
            FetchTransientError: Network failure or timeout
            FetchTerminalError: Non-2xx status, unsupported content type,
                or another request error such as too many redirects
            CrawlCancelledError: The crawl was stopped mid-request
        """
        started = time.perf_counter()

        try:
            response = await self._token.run(
                self.client.get(url, timeout=self.config.timeout_ms / 1000)
            )
        except httpx.TimeoutException as e:
            raise FetchTransientError(
                f"Timed out after {self.config.timeout_ms}ms", url=url) from e
        except httpx.TransportError as e:
            raise FetchTransientError(
                f"Network error: {e.__class__.__name__}: {e}", url=url) from e
        except httpx.RequestError as e:
            raise FetchTerminalError(
                f"Request failed: {e.__class__.__name__}: {e}", url=url) from e

        elapsed_ms = int((time.perf_counter() - started) * 1000)

        if not response.is_success:
            raise FetchTerminalError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                url=url,
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "")
        if not self._is_accepted(content_type):
            raise FetchTerminalError(
                f"Unsupported content type: {content_type or 'unknown'}",
                url=url,
                status_code=response.status_code,
            )

        logger.debug(f"Fetched {url} ({response.status_code}, {elapsed_ms}ms)")

        return FetchedPage(
            url=str(response.url),
            html=response.text,
            status_code=response.status_code,
            content_type=content_type,
            elapsed_ms=elapsed_ms,
        )
