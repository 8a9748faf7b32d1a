"""
CLI module for the WebWarden crawler.

Provides command-line interface using Typer:
- crawl: Crawl a website and export the results
- search: Search a JSON export
- config: Configuration management
"""

from webwarden.cli.main import app

__all__ = ["app"]
