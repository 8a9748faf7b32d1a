"""
In-memory search over crawled pages.

Builds an inverted index on title, description and keywords and ranks
matches with field-weighted relevance scoring.
"""

import re
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from webwarden.core.models import PageRecord
from webwarden.utils.logging import get_logger

logger = get_logger(__name__)

WORD_PATTERN = re.compile(r"\w+")
MIN_TOKEN_LENGTH = 3

# Relevance weights
WORD_MATCH_SCORE = 10
TITLE_CONTAINS_SCORE = 50
TITLE_EXACT_SCORE = 100
DESCRIPTION_SCORE = 20
URL_SCORE = 15
KEYWORDS_SCORE = 25
HEADING_SCORE = 30
MAX_CONTENT_BOOST = 10


def tokenize(text: str) -> list[str]:
    """Lower-cased word tokens of ``text``."""
    return WORD_PATTERN.findall(text.lower())


@dataclass(frozen=True)
class SearchFilters:
    """
    Optional constraints applied to search results.

    Attributes:
        min_word_count: Drop pages with fewer words
        max_depth: Drop pages deeper than this
        has_images: Keep only pages with at least one image
        crawled_after: Keep pages crawled at or after this time
        crawled_before: Keep pages crawled at or before this time
    """

    min_word_count: int | None = None
    max_depth: int | None = None
    has_images: bool = False
    crawled_after: datetime | None = None
    crawled_before: datetime | None = None


@dataclass(frozen=True)
class SearchHit:
    """A ranked search result."""

    page: PageRecord
    score: float


def filter_results(
    pages: Iterable[PageRecord],
    filters: SearchFilters | None = None,
) -> list[PageRecord]:
    """
    Apply search filters to a list of pages.

    Args:
        pages: Pages to filter
        filters: Constraints; None keeps everything

    Returns:
        Matching pages in their original order
    """
    pages = list(pages)
    if filters is None:
        return pages

    if filters.min_word_count:
        pages = [p for p in pages if p.word_count >= filters.min_word_count]
    if filters.max_depth is not None:
        pages = [p for p in pages if p.depth <= filters.max_depth]
    if filters.has_images:
        pages = [p for p in pages if p.image_count > 0]
    if filters.crawled_after is not None:
        pages = [p for p in pages if p.crawled_at >= filters.crawled_after]
    if filters.crawled_before is not None:
        pages = [p for p in pages if p.crawled_at <= filters.crawled_before]

    return pages


class SearchIndex:
    """
    Ranked keyword search over page records.

    Example:
        >>> index = SearchIndex(result.pages)
        >>> for hit in index.search("python guide"):
        ...     print(hit.score, hit.page.title)
        >>> index.suggestions("pyt")
        ['python']
    """

    def __init__(self, pages: Iterable[PageRecord] = ()) -> None:
        self._pages: list[PageRecord] = []
        self._inverted: dict[str, set[int]] = {}
        self._cache: dict[tuple[str, SearchFilters | None], list[SearchHit]] = {}
        self.update(pages)

    def __len__(self) -> int:
        return len(self._pages)

    @property
    def pages(self) -> list[PageRecord]:
        return list(self._pages)

    def update(self, pages: Iterable[PageRecord]) -> None:
        """Replace the indexed pages and clear cached results."""
        self._pages = list(pages)
        self._cache.clear()

        inverted: dict[str, set[int]] = defaultdict(set)
        for position, page in enumerate(self._pages):
            text = f"{page.title} {page.description} {page.keywords}"
            for word in tokenize(text):
                if len(word) >= MIN_TOKEN_LENGTH:
                    inverted[word].add(position)

        self._inverted = dict(inverted)
        logger.debug(
            f"Indexed {len(self._pages)} pages ({len(self._inverted)} terms)")

    def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
    ) -> list[SearchHit]:
        """
        Find pages matching a query, best first.

        An empty query matches every page with score 0.

        Args:
            query: Free-text query
            filters: Optional result constraints

        Returns:
            Hits sorted by descending score
        """
        key = (query.strip().lower(), filters)
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        if not key[0]:
            hits = [SearchHit(page, 0.0) for page in self._pages]
        else:
            matches: dict[int, int] = defaultdict(int)
            for word in tokenize(query):
                for position in self._inverted.get(word, ()):
                    matches[position] += 1

            hits = []
            for position, count in sorted(matches.items()):
                page = self._pages[position]
                hits.append(SearchHit(page, self.score(page, query, count)))
            hits.sort(key=lambda hit: hit.score, reverse=True)

        if filters is not None:
            allowed = {id(page) for page in filter_results(
                (hit.page for hit in hits), filters)}
            hits = [hit for hit in hits if id(hit.page) in allowed]

        self._cache[key] = hits
        return list(hits)

    def score(self, page: PageRecord, query: str, word_matches: int) -> float:
        """Relevance of a page for a query that matched ``word_matches`` words."""
        needle = query.strip().lower()
        title = page.title.lower()

        score = float(word_matches * WORD_MATCH_SCORE)

        if needle in title:
            score += TITLE_CONTAINS_SCORE
        if title == needle:
            score += TITLE_EXACT_SCORE
        if needle in page.description.lower():
            score += DESCRIPTION_SCORE
        if needle in page.url.lower():
            score += URL_SCORE
        if needle in page.keywords.lower():
            score += KEYWORDS_SCORE

        for texts in page.headings.values():
            score += HEADING_SCORE * sum(1 for text in texts if needle in text.lower())

        score += min(page.word_count / 100, MAX_CONTENT_BOOST)
        return score

    def suggestions(self, prefix: str, limit: int = 5) -> list[str]:
        """
        Completions for a partial word, from titles and keywords.

        Args:
            prefix: At least two characters typed so far
            limit: Maximum suggestions

        Returns:
            Distinct words starting with ``prefix`` in first-seen order
        """
        prefix = prefix.strip().lower()
        if len(prefix) < 2:
            return []

        found: dict[str, None] = {}
        for page in self._pages:
            for word in tokenize(f"{page.title} {page.keywords}"):
                if word.startswith(prefix) and word != prefix:
                    found.setdefault(word)
                    if len(found) >= limit:
                        return list(found)

        return list(found)
