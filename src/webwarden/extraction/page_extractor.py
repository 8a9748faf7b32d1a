"""
HTML page extraction.

Turns a fetched HTML document into a PageRecord plus the list of
outbound link targets. Pure parsing: no network I/O.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from webwarden.core.exceptions import ContentExtractionError
from webwarden.core.models import PageRecord, utc_now
from webwarden.utils.logging import get_logger

logger = get_logger(__name__)

DESCRIPTION_MAX_CHARS = 300
HEADING_TAGS = ("h1", "h2", "h3")
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "#")


@dataclass(frozen=True)
class ExtractedPage:
    """Record for a page together with its discovered links."""

    record: PageRecord
    links: list[str] = field(default_factory=list)


class PageExtractor:
    """
    Extracts page records and links from HTML.

    Example:
        >>> extractor = PageExtractor()
        >>> extracted = extractor.extract(html, url="https://example.com/", depth=0)
        >>> print(extracted.record.title, len(extracted.links))
    """

    def __init__(self, parser: str = "html.parser") -> None:
        """
        Initialize extractor.

        Args:
            parser: BeautifulSoup tree builder
        """
        self.parser = parser

    def extract(
        self,
        html: str,
        url: str,
        depth: int = 0,
        referrer: str | None = None,
        load_time_ms: int = 0,
        crawled_at: datetime | None = None,
        base_url: str | None = None,
    ) -> ExtractedPage:
        """
        Parse HTML into a page record and its link targets.

        Args:
            html: Raw HTML document
            url: URL the document was fetched from
            depth: Crawl depth of the page
            referrer: Page that linked here
            load_time_ms: Fetch duration
            crawled_at: Record timestamp (defaults to now)
            base_url: Address the document was served from when it differs
                from ``url`` (e.g. after a redirect); links resolve against it

        Returns:
            ExtractedPage with record and absolute links

        Raises:
            ContentExtractionError: If the document cannot be parsed
        """
        try:
            soup = BeautifulSoup(html, self.parser)
        except Exception as e:
            raise ContentExtractionError(f"Failed to parse HTML: {e}", url=url) from e

        body_text = self._get_text(soup.body if soup.body else soup)

        record = PageRecord(
            url=url,
            title=self._extract_title(soup, url),
            description=self._extract_description(soup, body_text),
            keywords=self._extract_meta(soup, "keywords"),
            headings=self._extract_headings(soup),
            link_count=len(soup.find_all("a", href=True)),
            image_count=len(soup.find_all("img")),
            word_count=len(body_text.split()),
            depth=depth,
            referrer=referrer,
            crawled_at=crawled_at or utc_now(),
            content_length=len(html),
            load_time_ms=load_time_ms,
        )

        return ExtractedPage(record=record, links=self._extract_links(soup, base_url or url))

    def _get_text(self, element: Tag) -> str:
        """Get whitespace-collapsed text from element."""
        text = element.get_text(separator=" ", strip=True)
        return re.sub(r"\s+", " ", text).strip()

    def _extract_title(self, soup: BeautifulSoup, url: str) -> str:
        """Title tag, else first h1, else the URL."""
        title_tag = soup.find("title")
        if title_tag:
            title = self._get_text(title_tag)
            if title:
                return title

        h1 = soup.find("h1")
        if h1:
            text = self._get_text(h1)
            if text:
                return text

        return url

    def _extract_meta(self, soup: BeautifulSoup, name: str) -> str:
        tag = soup.find("meta", attrs={"name": re.compile(f"^{name}$", re.I)})
        if tag and tag.get("content"):
            return tag["content"].strip()
        return ""

    def _extract_description(self, soup: BeautifulSoup, body_text: str) -> str:
        """Meta description, else first paragraph, else leading body text."""
        description = self._extract_meta(soup, "description")
        if description:
            return description

        paragraph = soup.find("p")
        if paragraph:
            text = self._get_text(paragraph)
            if text:
                return text[:DESCRIPTION_MAX_CHARS]

        return body_text[:DESCRIPTION_MAX_CHARS]

    def _extract_headings(self, soup: BeautifulSoup) -> dict[str, list[str]]:
        headings: dict[str, list[str]] = {}
        for tag_name in HEADING_TAGS:
            texts = (self._get_text(tag) for tag in soup.find_all(tag_name))
            headings[tag_name] = [text for text in texts if text]
        return headings

    def _extract_links(self, soup: BeautifulSoup, base_url: str) -> list[str]:
        """Absolute link targets in document order, fragments removed."""
        links = []
        seen = set()

        for a in soup.find_all("a", href=True):
            href = a["href"].strip()

            if not href or href.startswith(SKIP_HREF_PREFIXES):
                continue

            try:
                href = urljoin(base_url, href)
            except ValueError:
                logger.debug(f"Skipping malformed link on {base_url}: {href!r}")
                continue

            href = href.split("#", 1)[0]
            if not href or href in seen:
                continue

            seen.add(href)
            links.append(href)

        return links
