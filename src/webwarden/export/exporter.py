"""
Crawl result export.

Renders a CrawlResult as CSV, JSON, XML or a plain-text report and writes
it to disk. Field names come from the records' ``to_dict`` forms.
"""

import csv
import io
import json
import xml.etree.ElementTree as ET
from datetime import datetime
from pathlib import Path
from typing import Callable

from webwarden.config.settings import ExportSettings
from webwarden.core.exceptions import ExportError
from webwarden.core.models import CrawlResult, PageRecord, utc_now
from webwarden.utils.logging import get_logger

logger = get_logger(__name__)

EXPORT_VERSION = "2.0"
SUPPORTED_FORMATS = ("csv", "json", "xml", "txt")

CSV_HEADERS = [
    "URL", "Title", "Description", "Keywords", "Word Count",
    "Link Count", "Image Count", "Depth", "Referrer", "Crawled At",
]

# Page fields written to XML, in order
XML_PAGE_FIELDS = (
    "url", "title", "description", "keywords", "wordCount",
    "linkCount", "imageCount", "depth", "crawledAt",
)

REPORT_DESCRIPTION_CHARS = 100
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def default_filename(fmt: str, on: datetime | None = None) -> str:
    """
    Default export file name for a format.

    Example:
        >>> default_filename("csv")
        'webwarden-export-2024-05-01.csv'
    """
    on = on or utc_now()
    return f"webwarden-export-{on.date().isoformat()}.{fmt}"


def _xml_text(value: object) -> str:
    return "" if value is None else str(value)


class ResultExporter:
    """
    Exports crawl results in several formats.

    Example:
        >>> exporter = ResultExporter()
        >>> text = exporter.render(result, "csv")
        >>> path = exporter.export(result, "json", "out/crawl.json")
    """

    def __init__(self, settings: ExportSettings | None = None) -> None:
        """
        Initialize exporter.

        Args:
            settings: Export configuration (format default, output dir)
        """
        self.settings = settings or ExportSettings()
        self._renderers: dict[str, Callable[[CrawlResult, datetime], str]] = {
            "csv": self._render_csv,
            "json": self._render_json,
            "xml": self._render_xml,
            "txt": self._render_txt,
        }

    def _resolve_format(self, fmt: str | None) -> str:
        fmt = (fmt or self.settings.default_format).lower()
        if fmt not in self._renderers:
            raise ExportError(
                f"Unsupported export format: {fmt}",
                export_format=fmt,
                details={"supported": list(SUPPORTED_FORMATS)},
            )
        return fmt

    def render(
        self,
        result: CrawlResult,
        fmt: str | None = None,
        exported_at: datetime | None = None,
    ) -> str:
        """
        Render a result as text in the given format.

        Args:
            result: Crawl result to export
            fmt: One of csv, json, xml, txt (defaults to settings)
            exported_at: Export timestamp (defaults to now)

        Raises:
            ExportError: If the format is not supported
        """
        fmt = self._resolve_format(fmt)
        return self._renderers[fmt](result, exported_at or utc_now())

    def export(
        self,
        result: CrawlResult,
        fmt: str | None = None,
        path: Path | str | None = None,
    ) -> Path:
        """
        Render a result and write it to a file.

        Args:
            result: Crawl result to export
            fmt: Export format (defaults to settings)
            path: Destination file (defaults to a dated name in output_dir)

        Returns:
            Path of the written file

        Raises:
            ExportError: If the format is unsupported or the write fails
        """
        fmt = self._resolve_format(fmt)
        exported_at = utc_now()
        content = self.render(result, fmt, exported_at)

        target = Path(path) if path is not None else (
            self.settings.output_dir / default_filename(fmt, exported_at))

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ExportError(
                f"Could not write export to {target}: {e}",
                export_format=fmt,
                details={"path": str(target)},
            ) from e

        logger.info(
            f"Exported {len(result.pages)} pages and {len(result.errors)} errors "
            f"as {fmt} to {target}")
        return target

    def _render_csv(self, result: CrawlResult, exported_at: datetime) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)

        for page in result.pages:
            data = page.to_dict()
            writer.writerow([
                data["url"],
                data["title"],
                data["description"],
                data["keywords"],
                data["wordCount"],
                data["linkCount"],
                data["imageCount"],
                data["depth"],
                data["referrer"] or "",
                data["crawledAt"],
            ])

        return buffer.getvalue()

    def _render_json(self, result: CrawlResult, exported_at: datetime) -> str:
        payload = {
            "metadata": {
                "exportedAt": exported_at.isoformat(),
                "version": EXPORT_VERSION,
                "status": result.status.value,
                "totalPages": len(result.pages),
                "totalErrors": len(result.errors),
                "crawlStats": result.stats.to_dict(),
            },
            "pages": [page.to_dict() for page in result.pages],
            "errors": [error.to_dict() for error in result.errors],
        }
        indent = self.settings.json_indent or None
        return json.dumps(payload, indent=indent, ensure_ascii=False)

    def _render_xml(self, result: CrawlResult, exported_at: datetime) -> str:
        root = ET.Element("crawlResults")

        metadata = ET.SubElement(root, "metadata")
        ET.SubElement(metadata, "exportedAt").text = exported_at.isoformat()
        ET.SubElement(metadata, "totalPages").text = str(len(result.pages))
        ET.SubElement(metadata, "totalErrors").text = str(len(result.errors))

        pages = ET.SubElement(root, "pages")
        for page in result.pages:
            data = page.to_dict()
            element = ET.SubElement(pages, "page")
            for name in XML_PAGE_FIELDS:
                ET.SubElement(element, name).text = _xml_text(data[name])

        if result.errors:
            errors = ET.SubElement(root, "errors")
            for error in result.errors:
                element = ET.SubElement(errors, "error")
                for name, value in error.to_dict().items():
                    ET.SubElement(element, name).text = _xml_text(value)

        ET.indent(root, space="  ")
        return XML_DECLARATION + ET.tostring(root, encoding="unicode")

    def _render_txt(self, result: CrawlResult, exported_at: datetime) -> str:
        stats = result.stats
        lines = [
            "WebWarden Crawler Report",
            f"Generated: {exported_at.strftime('%Y-%m-%d %H:%M:%S %Z')}".rstrip(),
            f"Status: {result.status.value}",
            f"Total Pages: {len(result.pages)}",
            f"Total Errors: {len(result.errors)}",
            f"Skipped (robots.txt): {stats.skipped}",
            f"Crawl Duration: {stats.elapsed:.1f}s",
            "",
            "=== CRAWLED PAGES ===",
            "",
        ]

        for index, page in enumerate(result.pages, start=1):
            description = page.description
            if len(description) > REPORT_DESCRIPTION_CHARS:
                description = description[:REPORT_DESCRIPTION_CHARS] + "..."
            lines.extend([
                f"{index}. {page.title}",
                f"   URL: {page.url}",
                f"   Description: {description}",
                f"   Stats: {page.word_count} words, {page.link_count} links, "
                f"{page.image_count} images",
                f"   Depth: {page.depth}, Crawled: "
                f"{page.crawled_at.strftime('%Y-%m-%d %H:%M:%S')}",
                "",
            ])

        if result.errors:
            lines.extend(["=== ERRORS ===", ""])
            for index, error in enumerate(result.errors, start=1):
                lines.extend([
                    f"{index}. {error.url}",
                    f"   Error: {error.message}",
                    f"   Time: {error.timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
                    "",
                ])

        return "\n".join(lines)


def load_json_export(path: Path | str) -> list[PageRecord]:
    """
    Read the pages back from a JSON export.

    Raises:
        ExportError: If the file is missing or not a JSON export
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return [PageRecord.from_dict(page) for page in data["pages"]]
    except OSError as e:
        raise ExportError(f"Could not read export {path}: {e}", export_format="json") from e
    except (ValueError, KeyError, TypeError) as e:
        raise ExportError(f"Not a valid JSON export: {path}", export_format="json") from e
