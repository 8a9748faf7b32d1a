"""
Search module for the WebWarden crawler.

Keyword search with relevance ranking over crawled pages.
"""

from webwarden.search.index import (
    SearchIndex,
    SearchHit,
    SearchFilters,
    filter_results,
    tokenize,
)

__all__ = [
    "SearchIndex",
    "SearchHit",
    "SearchFilters",
    "filter_results",
    "tokenize",
]
