"""
Main CLI application for the WebWarden crawler.

Provides the primary command-line interface for:
- Crawling websites with live progress
- Exporting crawl results
- Searching exported results
- Managing configuration
"""

import asyncio
import signal
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from webwarden import __version__
from webwarden.config import (
    CrawlerSettings,
    Settings,
    get_config_search_paths,
    get_default_config_path,
    load_config,
    save_config,
)
from webwarden.core.exceptions import (
    ConfigurationError,
    ExportError,
    InvalidInputError,
)
from webwarden.core.models import CrawlConfig, CrawlResult, CrawlStats, CrawlStatus
from webwarden.crawler.scheduler import CrawlScheduler
from webwarden.export import SUPPORTED_FORMATS, ResultExporter, load_json_export
from webwarden.search import SearchFilters, SearchIndex
from webwarden.utils.logging import setup_logging, get_logger
from webwarden.utils.metrics import Metrics

# Initialize Typer app
app = typer.Typer(
    name="webwarden",
    help="WebWarden - Polite website crawler with export and search",
    add_completion=False,
    no_args_is_help=True,
)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

console = Console()
logger = get_logger(__name__)

PREVIEW_ROWS = 10


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]WebWarden[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """
    WebWarden - Crawl a website politely, then export or search the results.

    Use 'webwarden --help' for command list.
    """
    setup_logging(level="DEBUG" if verbose else "INFO")
    ctx.obj = {"verbose": verbose}


def _load_settings(config_file: Optional[Path]) -> Settings:
    """Load settings or exit with a readable error."""
    try:
        return load_config(config_file or get_default_config_path())
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def crawl(
    ctx: typer.Context,
    url: str = typer.Argument(
        ...,
        help="URL to start crawling from",
    ),
    max_pages: Optional[int] = typer.Option(
        None,
        "--max-pages",
        "-m",
        help="Maximum pages to crawl (1-1000)",
    ),
    depth: Optional[int] = typer.Option(
        None,
        "--depth",
        "-d",
        help="Maximum crawl depth (1-10)",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        help="Parallel requests (1-10)",
    ),
    delay_ms: Optional[int] = typer.Option(
        None,
        "--delay-ms",
        help="Minimum delay between requests in milliseconds",
    ),
    timeout_ms: Optional[int] = typer.Option(
        None,
        "--timeout-ms",
        help="Request timeout in milliseconds",
    ),
    retries: Optional[int] = typer.Option(
        None,
        "--retries",
        help="Retries after network errors (0-5)",
    ),
    robots: Optional[bool] = typer.Option(
        None,
        "--robots/--no-robots",
        help="Respect robots.txt",
    ),
    user_agent: Optional[str] = typer.Option(
        None,
        "--user-agent",
        help="User agent string",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write results to this file",
    ),
    fmt: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help=f"Export format ({', '.join(SUPPORTED_FORMATS)})",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
) -> None:
    """
    Crawl a website starting from URL.

    Press Ctrl-C to stop early; pages crawled so far are kept.

    Example:
        webwarden crawl https://example.com --max-pages 50 -o results.json
    """
    settings = _load_settings(config_file)

    overrides = {
        "max_pages": max_pages,
        "max_depth": depth,
        "max_concurrency": concurrency,
        "request_delay_ms": delay_ms,
        "timeout_ms": timeout_ms,
        "max_retries": retries,
        "respect_robots": robots,
        "user_agent": user_agent,
    }
    try:
        crawler_settings = CrawlerSettings.model_validate({
            **settings.crawler.model_dump(),
            **{key: value for key, value in overrides.items() if value is not None},
        })
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"[red]Invalid option {field}:[/red] {error['msg']}")
        raise typer.Exit(1)

    config = crawler_settings.to_crawl_config()

    if output is not None and fmt is None:
        suffix = output.suffix.lstrip(".").lower()
        fmt = suffix if suffix in SUPPORTED_FORMATS else None

    try:
        result = asyncio.run(_crawl_async(url, config))
    except InvalidInputError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Crawl cancelled by user[/yellow]")
        raise typer.Exit(1)

    _print_summary(result)
    if ctx.obj and ctx.obj.get("verbose"):
        console.print(f"\n[dim]{Metrics.get().summary()}[/dim]")

    if output is not None or fmt is not None:
        try:
            path = ResultExporter(settings.export).export(result, fmt, output)
        except ExportError as e:
            console.print(f"[red]Export failed:[/red] {e}")
            raise typer.Exit(1)
        console.print(f"[green]✓[/green] Results exported to: {path}")


async def _crawl_async(url: str, config: CrawlConfig) -> CrawlResult:
    """Run one crawl with a live progress bar; SIGINT stops it gracefully."""
    scheduler = CrawlScheduler(config)

    console.print(Panel(
        f"[bold]Crawling:[/bold] {url}\n"
        f"[dim]Max pages: {config.max_pages} | Depth: {config.max_depth} | "
        f"Concurrency: {config.max_concurrency} | Delay: {config.request_delay_ms}ms | "
        f"robots.txt: {'on' if config.respect_robots else 'off'}[/dim]",
        title="WebWarden Crawler",
        border_style="blue",
    ))

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, scheduler.stop)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        # Signal handlers are unavailable on some platforms and off the main thread
        handler_installed = False

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            crawl_task = progress.add_task("[cyan]Crawling...", total=config.max_pages)

            def on_progress(stats: CrawlStats) -> None:
                progress.update(
                    crawl_task,
                    completed=stats.crawled,
                    description=(
                        f"[cyan]Crawling... {stats.crawled} pages, "
                        f"{stats.errors} errors, {stats.queued} queued"
                    ),
                )

            return await scheduler.run(url, on_progress=on_progress)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def _print_summary(result: CrawlResult) -> None:
    stats = result.stats

    if result.status == CrawlStatus.STOPPED:
        headline = "[yellow]■ Crawl stopped[/yellow] (partial results kept)"
        border = "yellow"
    else:
        headline = "[green]✓ Crawl complete![/green]"
        border = "green"

    console.print()
    console.print(Panel(
        f"{headline}\n\n"
        f"Pages crawled: [bold]{stats.crawled}[/bold]\n"
        f"Errors: [bold]{stats.errors}[/bold]\n"
        f"Skipped (robots.txt): [bold]{stats.skipped}[/bold]\n"
        f"Duration: [dim]{stats.elapsed:.1f}s[/dim]",
        title="Summary",
        border_style=border,
    ))

    if result.pages:
        table = Table(title="Crawled Pages", show_header=True)
        table.add_column("#", style="dim", width=3)
        table.add_column("Depth", justify="right", width=5)
        table.add_column("Title", style="white")
        table.add_column("URL", style="cyan")

        for i, page in enumerate(result.pages[:PREVIEW_ROWS], 1):
            table.add_row(str(i), str(page.depth), page.title[:60], page.url)

        console.print(table)
        if len(result.pages) > PREVIEW_ROWS:
            console.print(f"[dim]... and {len(result.pages) - PREVIEW_ROWS} more[/dim]")

    if result.errors:
        table = Table(title="Errors", show_header=True)
        table.add_column("URL", style="cyan")
        table.add_column("Error", style="red")

        for error in result.errors[:PREVIEW_ROWS]:
            table.add_row(error.url, error.message)

        console.print(table)


@app.command()
def search(
    query: str = typer.Argument(
        ...,
        help="Search query",
    ),
    input_file: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="JSON export produced by 'webwarden crawl -f json'",
    ),
    limit: int = typer.Option(
        10,
        "--limit",
        "-n",
        help="Maximum results",
        min=1,
    ),
    min_words: Optional[int] = typer.Option(
        None,
        "--min-words",
        help="Only pages with at least this many words",
    ),
    max_depth: Optional[int] = typer.Option(
        None,
        "--max-depth",
        help="Only pages at most this deep",
    ),
    has_images: bool = typer.Option(
        False,
        "--has-images",
        help="Only pages containing images",
    ),
) -> None:
    """
    Search crawled pages from a JSON export.

    Example:
        webwarden search "pricing plans" -i results.json
    """
    try:
        pages = load_json_export(input_file)
    except ExportError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    index = SearchIndex(pages)
    filters = SearchFilters(
        min_word_count=min_words,
        max_depth=max_depth,
        has_images=has_images,
    )
    hits = index.search(query, filters)[:limit]

    console.print(f"\n[bold]Searching:[/bold] {query} [dim]({len(index)} pages)[/dim]\n")

    if not hits:
        console.print("[yellow]No results found[/yellow]")
        words = query.split()
        suggestions = index.suggestions(words[-1]) if words else []
        if suggestions:
            console.print(f"[dim]Did you mean: {', '.join(suggestions)}[/dim]")
        return

    table = Table(title=f"Search Results ({len(hits)} shown)", show_header=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Score", justify="right", width=7)
    table.add_column("Title", style="white")
    table.add_column("URL", style="cyan")

    for i, hit in enumerate(hits, 1):
        table.add_row(str(i), f"{hit.score:.1f}", hit.page.title[:60], hit.page.url)

    console.print(table)


@config_app.command("show")
def config_show(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
) -> None:
    """Show the effective configuration."""
    settings = _load_settings(config_file)

    console.print(Panel(
        "[bold]Current Configuration[/bold]",
        border_style="blue",
    ))

    for section, values in settings.model_dump(mode="json").items():
        console.print(f"\n[bold cyan]{section}:[/bold cyan]")
        for key, value in values.items():
            console.print(f"  {key}: [dim]{value}[/dim]")


@config_app.command("path")
def config_path() -> None:
    """Show which configuration file would be used."""
    found = get_default_config_path()
    if found is not None:
        console.print(f"Using: [bold]{found}[/bold]")
    else:
        console.print("[yellow]No configuration file found; using defaults[/yellow]")

    console.print("\n[dim]Search order:[/dim]")
    for candidate in get_config_search_paths():
        marker = "[green]✓[/green]" if candidate.exists() else " "
        console.print(f"  {marker} {candidate}")


@config_app.command("init")
def config_init(
    output: Path = typer.Argument(
        Path("webwarden.yaml"),
        help="Where to write the configuration file",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing file",
    ),
) -> None:
    """Create a configuration file with default values."""
    if output.exists() and not force:
        if not typer.confirm(f"File {output} exists. Overwrite?"):
            raise typer.Exit(0)

    try:
        path = save_config(Settings(), output)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Configuration saved to: {path}")


if __name__ == "__main__":
    app()
