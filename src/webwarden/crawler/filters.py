"""
URL filtering for link discovery.

Keeps the crawl on the seed's hostname and drops anything that is not
a plain http/https URL.
"""

from typing import Callable, Iterable
from urllib.parse import urlparse

from webwarden.crawler.frontier import normalize_url
from webwarden.utils.logging import get_logger

logger = get_logger(__name__)

ALLOWED_SCHEMES = ("http", "https")


def is_valid_url(url: str) -> bool:
    """
    Check that a URL is absolute http/https with a host.

    Example:
        >>> is_valid_url("https://example.com")
        True
        >>> is_valid_url("ftp://example.com")
        False
    """
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
        return parsed.scheme in ALLOWED_SCHEMES and bool(parsed.hostname)
    except ValueError:
        return False


def get_hostname(url: str) -> str | None:
    """Lower-cased hostname of a URL (no port), or None."""
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def is_same_domain(url: str, other: str) -> bool:
    """Check whether two URLs share exactly the same hostname."""
    host = get_hostname(url)
    return host is not None and host == get_hostname(other)


def discover_links(
    links: Iterable[str],
    seed_host: str | None,
    is_visited: Callable[[str], bool],
    limit: int = 20,
) -> list[str]:
    """
    Turn a page's raw links into new same-domain crawl candidates.

    Links are normalized, deduplicated and capped at ``limit`` in
    document order.

    Args:
        links: Absolute link targets in document order
        seed_host: Hostname the crawl is confined to
        is_visited: Visited-set membership check
        limit: Cap on candidates returned

    Returns:
        Normalized candidate URLs
    """
    result: list[str] = []
    seen: set[str] = set()

    for link in links:
        if len(result) >= limit:
            break
        if not is_valid_url(link) or get_hostname(link) != seed_host:
            continue

        url = normalize_url(link)
        if url in seen or is_visited(url):
            continue

        seen.add(url)
        result.append(url)

    return result


class LinkFilter:
    """
    Turns a page's raw links into crawl candidates.

    Example:
        >>> link_filter = LinkFilter("https://example.com/")
        >>> link_filter.filter(
        ...     ["https://example.com/a", "https://other.com/b"],
        ...     is_visited=lambda url: False,
        ... )
        ['https://example.com/a']
    """

    def __init__(self, seed_url: str, max_links: int = 20) -> None:
        """
        Initialize link filter.

        Args:
            seed_url: Crawl seed whose hostname bounds the crawl
            max_links: Cap on candidates returned per page
        """
        self.seed_host = get_hostname(seed_url)
        self.max_links = max_links

    def filter(
        self,
        links: Iterable[str],
        is_visited: Callable[[str], bool],
    ) -> list[str]:
        """Filter a page's links down to new same-domain candidates."""
        return discover_links(links, self.seed_host, is_visited, self.max_links)
