"""
CLI commands using the application layer use case.

This module provides the command implementations that wire the source
adapters to SourceResolver.
"""

import click
from rich.console import Console
from rich.markup import escape

from logresolve.application.resolve_sources import ResolveResult, SourceResolver
from logresolve.core.exceptions import LogResolveError, ReadError
from logresolve.core.models import Options, SourceDescriptor
from logresolve.cli.output import format_record, render_failures, render_sources

__all__ = ["detect_command", "cat_command"]


def _print_error(error_console: Console, error: LogResolveError) -> None:
    error_console.print(f"[red]Error ({error.kind}):[/red] {escape(str(error))}")


def detect_command(
    files: tuple[str, ...],
    options: Options,
    max_workers: int,
    quiet: bool,
    console: Console,
    error_console: Console,
) -> int:
    """
    Resolve files (or stdin) and report the detected timestamp formats.

    Returns:
        Exit code: 0 if at least one source resolved, 1 otherwise
    """
    try:
        resolver = SourceResolver(options, max_workers=max_workers)
        if files:
            result = resolver.resolve([SourceDescriptor.for_path(f) for f in files])
        else:
            result = ResolveResult(sources=resolver.pipe_stdin())
    except LogResolveError as e:
        _print_error(error_console, e)
        return 1

    with result:
        if result.sources:
            render_sources(result.sources, console)
        if result.failures:
            render_failures(result.failures, error_console)
        if not quiet:
            console.print(
                f"\n[dim]Resolved {len(result.sources)} of "
                f"{len(result.sources) + len(result.failures)} sources[/dim]"
            )

    return 0 if result.sources else 1


def cat_command(
    file_path: str,
    options: Options,
    ordered: bool,
    quiet: bool,
    error_console: Console,
) -> int:
    """
    Print a source's records as ``timestamp<TAB>line``.

    Returns:
        Exit code
    """
    try:
        resolver = SourceResolver(options)
        if file_path == "-":
            sources = resolver.pipe_stdin()
        else:
            result = resolver.resolve([SourceDescriptor.for_path(file_path)])
            if result.failures:
                render_failures(result.failures, error_console)
            sources = result.sources
    except LogResolveError as e:
        _print_error(error_console, e)
        return 1

    if not sources:
        return 1

    with sources[0] as source:
        records = source.ordered_records() if ordered else source.records()
        try:
            for record in records:
                click.echo(format_record(record))
        except ReadError as e:
            _print_error(error_console, e)
            return 1

        if not quiet:
            snap = source.progress.snapshot()
            error_console.print(
                f"[dim]{snap.records_emitted:,} records, "
                f"{snap.lines_skipped:,} lines without timestamp, "
                f"{source.late_events:,} late[/dim]"
            )

    return 0
