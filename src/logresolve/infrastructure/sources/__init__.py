"""
Source adapters for logresolve.

Open files, stdin and in-memory buffers as binary readers, with
transparent gzip decompression.
"""

from logresolve.infrastructure.sources.file_source import (
    GZIP_MAGIC,
    OpenedSource,
    ReplayReader,
    SourceCloser,
    open_reader,
    open_source,
    read_sample,
)
from logresolve.infrastructure.sources.stdin_source import (
    open_bytes,
    open_stdin,
)

__all__ = [
    "GZIP_MAGIC",
    "OpenedSource",
    "ReplayReader",
    "SourceCloser",
    "open_reader",
    "open_source",
    "read_sample",
    "open_bytes",
    "open_stdin",
]
