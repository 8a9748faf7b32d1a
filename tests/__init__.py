"""
Test suite for the WebWarden crawler.

Provides tests for all modules:
- Unit tests for individual components
- Crawl scenarios against an in-memory website
- Fixtures for common test data
"""
