"""
Stream source adapters for logresolve.

Standard input and in-memory buffers: origins without a path whose size
is either unknown or simply the buffer length.
"""

import io
import sys
from typing import Any

from logresolve.infrastructure.sources.file_source import OpenedSource, open_reader

__all__ = ["STDIN_PATH", "BYTES_PATH", "open_stdin", "open_bytes"]


STDIN_PATH = "<stdin>"
BYTES_PATH = "<bytes>"


def open_stdin(stream: Any = None, name: str = "stdin") -> OpenedSource:
    """
    Open standard input (or a given stream) as a log source.

    Piped gzip is decompressed transparently. Size is always -1. Closing
    the source never closes the process's stdin.

    Example:
        # zcat app.log.gz | gzip | logresolve detect
        source = open_stdin()

    Args:
        stream: Binary or text stream with a ``buffer``; defaults to sys.stdin
        name: Source name

    Raises:
        OpenError: If the stream cannot be read or carries a corrupt gzip header
    """
    if stream is None:
        stream = sys.stdin
    raw = getattr(stream, "buffer", stream)
    return open_reader(raw, name=name, path=STDIN_PATH, size=-1, owns_raw=False)


def open_bytes(data: bytes, name: str = "bytes") -> OpenedSource:
    """
    Open an in-memory buffer as a log source.

    Size is ``len(data)`` for plain content and -1 for gzip content.

    Raises:
        OpenError: If the buffer carries a corrupt gzip header
    """
    return open_reader(io.BytesIO(bytes(data)), name=name, path=BYTES_PATH, size=len(data))
