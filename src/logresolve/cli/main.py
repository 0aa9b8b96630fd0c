"""
Main CLI entry point for logresolve.

A thin diagnostic surface over the Python API: detect formats, list the
catalog and print timestamped records.
"""

import click
from rich.console import Console
from rich.markup import escape

from logresolve import __version__
from logresolve.core.config import options_from_mapping
from logresolve.core.exceptions import LogResolveError
from logresolve.core.logging import setup_logging
from logresolve.core.models import DEFAULT_MAX_TRIAL_LINES, Options

console = Console()
error_console = Console(stderr=True)


def _build_options(
    ctx: click.Context,
    log_format: str | None,
    regex: str | None,
    skip: int,
    window: str | None,
    policy: str | None = None,
) -> Options:
    try:
        return options_from_mapping(
            None,
            custom_format=log_format,
            custom_pattern=regex,
            max_trial_lines=skip,
            window=window,
            failure_policy=policy,
        )
    except LogResolveError as e:
        error_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        ctx.exit(2)


def detection_options(func):
    """Options shared by commands that run detection."""
    func = click.option(
        "--window", "-w",
        help="Lateness window as a duration, e.g. 2s, 250ms, 1m30s (default: 0)"
    )(func)
    func = click.option(
        "--skip", "-k", type=int, default=DEFAULT_MAX_TRIAL_LINES, show_default=True,
        help="Lines tried per candidate format"
    )(func)
    func = click.option(
        "--regex", "-x",
        help="Regex whose first group isolates the timestamp (custom override)"
    )(func)
    func = click.option(
        "--format", "-t", "log_format",
        help="Timestamp format label or strptime layout (custom override)"
    )(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="logresolve")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="warning",
    help="Diagnostic log level (default: warning)"
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def cli(ctx: click.Context, log_level: str, quiet: bool) -> None:
    """
    logresolve - Detect log timestamp formats and stream timestamped records.

    Examples:

    \b
        logresolve detect app.log nginx.log.gz
        kubectl logs --timestamps pod | logresolve detect
        logresolve detect -t rfc3339 -x '^(\\S+)' app.log
        logresolve cat --ordered --window 2s app.log
        logresolve formats
    """
    setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["console"] = console
    ctx.obj["error_console"] = error_console


@cli.command()
@click.argument("files", nargs=-1, type=click.Path())
@detection_options
@click.option(
    "--policy",
    type=click.Choice(["continue", "abort"], case_sensitive=False),
    default="continue",
    help="What to do when a source fails (default: continue)"
)
@click.option(
    "--workers", "-j", type=click.IntRange(min=1), default=1,
    help="Threads used to open and detect sources"
)
@click.pass_context
def detect(
    ctx: click.Context,
    files: tuple[str, ...],
    log_format: str | None,
    regex: str | None,
    skip: int,
    window: str | None,
    policy: str,
    workers: int,
) -> None:
    """
    Detect the timestamp format of files (or stdin when none are given).

    Examples:

    \b
        logresolve detect /var/log/syslog
        logresolve detect --policy abort *.log
        zcat app.log.gz | logresolve detect
    """
    from logresolve.cli.commands import detect_command

    options = _build_options(ctx, log_format, regex, skip, window, policy)
    exit_code = detect_command(
        files=files,
        options=options,
        max_workers=workers,
        quiet=ctx.obj.get("quiet", False),
        console=ctx.obj["console"],
        error_console=ctx.obj["error_console"],
    )
    ctx.exit(exit_code)


@cli.command()
@click.pass_context
def formats(ctx: click.Context) -> None:
    """
    List the built-in timestamp formats in detection priority order.
    """
    from logresolve.cli.output import render_catalog
    from logresolve.detection.catalog import BUILTIN_CATALOG

    render_catalog(BUILTIN_CATALOG, ctx.obj["console"])


@cli.command()
@click.argument("file", type=click.Path(allow_dash=True))
@detection_options
@click.option(
    "--ordered/--no-ordered", default=False,
    help="Release records in timestamp order within the lateness window"
)
@click.pass_context
def cat(
    ctx: click.Context,
    file: str,
    log_format: str | None,
    regex: str | None,
    skip: int,
    window: str | None,
    ordered: bool,
) -> None:
    """
    Print records as TIMESTAMP<TAB>LINE. Use - for stdin.

    Examples:

    \b
        logresolve cat app.log
        logresolve cat --ordered --window 500ms app.log.gz
    """
    from logresolve.cli.commands import cat_command

    options = _build_options(ctx, log_format, regex, skip, window)
    exit_code = cat_command(
        file_path=file,
        options=options,
        ordered=ordered,
        quiet=ctx.obj.get("quiet", False),
        error_console=ctx.obj["error_console"],
    )
    ctx.exit(exit_code)


if __name__ == "__main__":
    cli()
