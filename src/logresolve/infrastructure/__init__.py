"""
Infrastructure layer for logresolve.

Contains adapters for files, standard input and in-memory buffers.
"""

from logresolve.infrastructure.sources import (
    OpenedSource,
    SourceCloser,
    open_bytes,
    open_source,
    open_stdin,
    read_sample,
)

__all__ = [
    "OpenedSource",
    "SourceCloser",
    "open_bytes",
    "open_source",
    "open_stdin",
    "read_sample",
]
