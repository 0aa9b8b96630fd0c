"""
Output formatters for CLI.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from logresolve.application.resolve_sources import ResolveFailure
from logresolve.detection.catalog import FormatCatalog
from logresolve.detection.formats import format_nanos
from logresolve.domain.entities import LogRecord, ResolvedSource

__all__ = ["render_sources", "render_failures", "render_catalog", "format_record"]


# Error kind color mapping for Rich
KIND_STYLES = {
    "open": "red",
    "detection": "yellow",
    "read": "red bold",
    "compile": "magenta",
    "config": "magenta",
}


def _size_str(size: int) -> str:
    if size < 0:
        return "unknown"
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):.2f} MB"
    return f"{size:,} B"


def render_sources(sources: list[ResolvedSource], console: Console) -> None:
    """Render resolved sources as a Rich table."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Source", style="cyan")
    table.add_column("Path", overflow="fold")
    table.add_column("Format", style="green")
    table.add_column("Strategy")
    table.add_column("First timestamp", style="dim")
    table.add_column("Size", justify="right")

    for source in sources:
        table.add_row(
            escape(source.name),
            escape(source.path),
            escape(source.detection.format.value),
            source.detection.strategy,
            format_nanos(source.detection.first_timestamp),
            _size_str(source.size),
        )

    console.print(table)


def render_failures(failures: list[ResolveFailure], console: Console) -> None:
    """Render unresolved sources, one line each, colored by error kind."""
    for failure in failures:
        style = KIND_STYLES.get(failure.kind, "red")
        console.print(
            f"[{style}]{failure.kind}[/{style}] {escape(failure.name)} "
            f"[dim]({escape(failure.path)})[/dim]: {escape(failure.error.message)}"
        )


def render_catalog(catalog: FormatCatalog, console: Console) -> None:
    """Render the format catalog in priority order."""
    table = Table(title="Built-in Timestamp Formats")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Format", style="cyan")
    table.add_column("Pattern", style="green", overflow="fold")
    table.add_column("Description")

    for i, spec in enumerate(catalog, start=1):
        table.add_row(str(i), escape(spec.format.value), escape(spec.pattern), spec.description)

    console.print(table)


def format_record(record: LogRecord) -> str:
    """Single-line record output: RFC 3339 timestamp, tab, raw line."""
    return f"{format_nanos(record.timestamp)}\t{record.line.decode('utf-8', errors='replace')}"
