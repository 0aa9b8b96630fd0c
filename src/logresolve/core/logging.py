"""
Logging setup for logresolve.

Library modules only create module loggers; applications (including the
bundled CLI) call setup_logging() once to attach handlers.
"""

import logging
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["setup_logging"]

_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "WARNING", log_file: Path | str | None = None) -> None:
    """
    Configure logging with Rich for console output and standard
    formatting for file output.

    Console output goes to stderr so it never mixes with record output.
    Set NO_RICH_LOGGING to get plain formatted lines instead.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ...)
        log_file: Optional path of an additional log file
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    if os.environ.get("NO_RICH_LOGGING"):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers: list[logging.Handler] = [handler]
    else:
        handlers = [RichHandler(console=Console(stderr=True), rich_tracebacks=True, markup=False)]

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )
