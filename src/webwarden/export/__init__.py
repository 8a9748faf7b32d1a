"""
Export module for the WebWarden crawler.

Writes crawl results as CSV, JSON, XML or plain-text reports.
"""

from webwarden.export.exporter import (
    ResultExporter,
    SUPPORTED_FORMATS,
    default_filename,
    load_json_export,
)

__all__ = [
    "ResultExporter",
    "SUPPORTED_FORMATS",
    "default_filename",
    "load_json_export",
]
