"""
Extraction module for the WebWarden crawler.

Turns fetched HTML into page records (title, description, keywords,
headings, counts) and outbound links.
"""

from webwarden.extraction.page_extractor import (
    PageExtractor,
    ExtractedPage,
)

__all__ = [
    "PageExtractor",
    "ExtractedPage",
]
