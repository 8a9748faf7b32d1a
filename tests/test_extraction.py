"""
Tests for page extraction module.

Tests title/description fallbacks, metadata, headings, counts and link
resolution.
"""

from datetime import datetime, timezone

import pytest

from webwarden.extraction import ExtractedPage, PageExtractor

URL = "https://example.com/"


class TestPageExtractor:
    """Tests for PageExtractor."""

    @pytest.fixture
    def extractor(self) -> PageExtractor:
        """Provide an extractor instance."""
        return PageExtractor()

    def test_extract_basic_html(self, extractor: PageExtractor, sample_html: str):
        """Extraction returns a record and links."""
        result = extractor.extract(sample_html, url=URL)

        assert isinstance(result, ExtractedPage)
        assert result.record.url == URL
        assert result.record.content_length == len(sample_html)

    def test_extract_metadata(self, extractor: PageExtractor, sample_html: str):
        """Title, description and keywords come from the head."""
        record = extractor.extract(sample_html, url=URL).record

        assert record.title == "Test Page Title"
        assert record.description == "Test page description"
        assert record.keywords == "testing, products, services"

    def test_extract_headings(self, extractor: PageExtractor, sample_html: str):
        """h1-h3 texts are grouped by level."""
        record = extractor.extract(sample_html, url=URL).record

        assert record.headings == {
            "h1": ["Welcome to Our Website"],
            "h2": ["Our Products", "Contact Information"],
            "h3": ["Office"],
        }

    def test_counts(self, extractor: PageExtractor, sample_html: str):
        """Anchors with href and images are counted."""
        record = extractor.extract(sample_html, url=URL).record

        assert record.link_count == 8
        assert record.image_count == 2
        assert record.word_count > 20

    def test_links_resolved(self, extractor: PageExtractor, sample_html: str):
        """Links are absolute, deduplicated and free of skipped schemes."""
        links = extractor.extract(sample_html, url=URL).links

        assert links == [
            "https://example.com/home",
            "https://example.com/products",
            "https://example.com/about",
            "https://other.com/partner",
        ]

    def test_crawl_context_passed_through(self, extractor: PageExtractor, sample_html: str):
        """Depth, referrer, timing and timestamp land on the record."""
        crawled_at = datetime(2025, 1, 1, tzinfo=timezone.utc)

        record = extractor.extract(
            sample_html,
            url="https://example.com/products",
            depth=2,
            referrer=URL,
            load_time_ms=150,
            crawled_at=crawled_at,
        ).record

        assert record.depth == 2
        assert record.referrer == URL
        assert record.load_time_ms == 150
        assert record.crawled_at == crawled_at

    def test_title_falls_back_to_h1(self, extractor: PageExtractor):
        """Without a title tag the first h1 is used."""
        html = "<html><body><h1>Main Heading</h1><p>Text</p></body></html>"

        assert extractor.extract(html, url=URL).record.title == "Main Heading"

    def test_title_falls_back_to_url(self, extractor: PageExtractor):
        """Without title or h1 the URL is used."""
        html = "<html><body><p>Just text</p></body></html>"

        assert extractor.extract(html, url=URL).record.title == URL

    def test_description_from_first_paragraph(self, extractor: PageExtractor):
        """Without meta description the first paragraph is used, truncated."""
        long_text = "word " * 100
        html = f"<html><body><h1>T</h1><p>{long_text}</p><p>Second</p></body></html>"

        description = extractor.extract(html, url=URL).record.description

        assert len(description) == 300
        assert description.startswith("word word")

    def test_description_from_body_text(self, extractor: PageExtractor):
        """Without paragraphs the leading body text is used."""
        html = "<html><body><div>Only a div here</div></body></html>"

        assert extractor.extract(html, url=URL).record.description == "Only a div here"

    def test_empty_document(self, extractor: PageExtractor):
        """An empty document yields an empty but valid record."""
        result = extractor.extract("", url=URL)

        assert result.record.title == URL
        assert result.record.word_count == 0
        assert result.record.headings == {"h1": [], "h2": [], "h3": []}
        assert result.links == []

    def test_relative_links_use_page_url(self, extractor: PageExtractor):
        """Relative links resolve against the page URL."""
        html = '<html><body><a href="next">n</a><a href="../up">u</a><a href="tel:123">t</a></body></html>'

        links = extractor.extract(html, url="https://example.com/docs/page").links

        assert links == [
            "https://example.com/docs/next",
            "https://example.com/up",
        ]

    def test_relative_links_use_base_url(self, extractor: PageExtractor):
        """A redirect target overrides the record URL as link base."""
        html = '<html><body><a href="intro">i</a></body></html>'

        extracted = extractor.extract(
            html,
            url="https://example.com/docs",
            base_url="https://example.com/docs/",
        )

        assert extracted.record.url == "https://example.com/docs"
        assert extracted.links == ["https://example.com/docs/intro"]
