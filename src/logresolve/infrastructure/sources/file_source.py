"""
File source adapters for logresolve.

Opens log sources in binary mode, transparently decompressing gzip input,
and reads a detection sample without consuming it.
"""

import gzip
import os
import stat
import zlib
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable

from logresolve.core.exceptions import OpenError
from logresolve.core.security import check_symlink

__all__ = [
    "GZIP_MAGIC",
    "SourceCloser",
    "OpenedSource",
    "ReplayReader",
    "open_source",
    "open_reader",
    "read_sample",
]


GZIP_MAGIC = b"\x1f\x8b"

# Errors a decompressing reader can raise on corrupt or truncated input
STREAM_ERRORS = (OSError, EOFError, zlib.error)


class SourceCloser:
    """
    Idempotent close function for an opened source.

    Closes the decompressor (if any) before the underlying file. Every
    closeable is closed even if an earlier one fails; the first error is
    re-raised afterwards.
    """

    def __init__(self, *closeables: Any):
        self._closeables = [c for c in closeables if c is not None]
        self.closed = False

    def __call__(self) -> None:
        if self.closed:
            return
        self.closed = True

        first_error: OSError | None = None
        for closeable in self._closeables:
            try:
                closeable.close()
            except OSError as e:
                first_error = first_error or e
        if first_error is not None:
            raise first_error


class ReplayReader:
    """
    Binary reader that replays a buffered prefix before the live stream.

    Used for non-seekable origins (pipes, stdin) so bytes consumed for
    sniffing and detection are still delivered to the consumer.
    """

    def __init__(self, prefix: bytes, reader: Any):
        self._prefix = prefix
        self._pos = 0
        self._reader = reader

    def _take(self, stop: int) -> bytes:
        chunk = self._prefix[self._pos:stop]
        self._pos = stop
        if self._pos >= len(self._prefix):
            self._prefix = b""
            self._pos = 0
        return chunk

    def read(self, size: int | None = -1) -> bytes:
        if not self._prefix:
            return self._reader.read(size)
        if size is None or size < 0:
            return self._take(len(self._prefix)) + self._reader.read()

        chunk = self._take(min(len(self._prefix), self._pos + size))
        if len(chunk) < size:
            chunk += self._reader.read(size - len(chunk))
        return chunk

    def readline(self, size: int | None = -1) -> bytes:
        if not self._prefix:
            return self._reader.readline(size)

        newline = self._prefix.find(b"\n", self._pos)
        stop = len(self._prefix) if newline == -1 else newline + 1
        if size is not None and size >= 0:
            stop = min(stop, self._pos + size)

        line = self._take(stop)
        if line.endswith(b"\n") or (size is not None and 0 <= size <= len(line)):
            return line

        remaining = -1 if size is None or size < 0 else size - len(line)
        return line + self._reader.readline(remaining)

    def seekable(self) -> bool:
        return False

    def readable(self) -> bool:
        return True

    def close(self) -> None:
        self._reader.close()


@dataclass
class OpenedSource:
    """
    An opened byte reader plus what is known about its size.

    Attributes:
        name: Source name
        path: Where the reader was opened from
        reader: Binary reader positioned at the start of the content
        size: Byte count, -1 when compressed or streamed
        compressed: Whether the reader decompresses gzip
        closer: Idempotent close function
    """
    name: str
    path: str
    reader: Any
    size: int
    compressed: bool = False
    closer: Callable[[], None] = field(default=lambda: None, repr=False)

    @property
    def size_known(self) -> bool:
        return self.size >= 0

    def close(self) -> None:
        self.closer()

    def metadata(self) -> dict[str, str]:
        """Get source metadata."""
        return {
            "name": self.name,
            "path": self.path,
            "size_bytes": str(self.size),
            "compressed": str(self.compressed).lower(),
        }

    def __enter__(self) -> "OpenedSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _read_magic(raw: Any) -> tuple[bytes, Any]:
    """Read the first two bytes and return a reader still positioned at the start."""
    magic = raw.read(2)
    if raw.seekable():
        raw.seek(0)
        return magic, raw
    return magic, ReplayReader(magic, raw)


def open_reader(
    raw: BinaryIO,
    name: str,
    path: str,
    size: int,
    owns_raw: bool = True,
) -> OpenedSource:
    """
    Wrap an already-open binary stream, decompressing gzip transparently.

    Args:
        raw: Open binary stream at its start
        name: Source name for errors and logs
        path: Origin reported on the source
        size: Known byte size or -1
        owns_raw: Whether closing the source closes ``raw``

    Raises:
        OpenError: If the stream cannot be read or its gzip header is corrupt
    """
    base = raw if owns_raw else None
    try:
        magic, reader = _read_magic(raw)
    except OSError as e:
        SourceCloser(base)()
        raise OpenError(f"Cannot read source: {e}", path=path, source_name=name) from e

    if magic != GZIP_MAGIC:
        return OpenedSource(
            name=name,
            path=path,
            reader=reader,
            size=size,
            compressed=False,
            closer=SourceCloser(base),
        )

    decompressor = gzip.GzipFile(fileobj=reader, mode="rb")
    closer = SourceCloser(decompressor, base)
    try:
        # Forces the header (and first block) through the decompressor
        decompressor.peek(1)
    except STREAM_ERRORS as e:
        closer()
        raise OpenError(f"Corrupt gzip stream: {e}", path=path, source_name=name) from e

    return OpenedSource(
        name=name,
        path=path,
        reader=decompressor,
        size=-1,
        compressed=True,
        closer=closer,
    )


def open_source(path: str | os.PathLike, name: str | None = None) -> OpenedSource:
    """
    Open a file as a log source.

    Symlinks are followed with a warning. Regular files report their exact
    size; gzip files, FIFOs and devices report -1.

    Args:
        path: File path
        name: Source name (defaults to the path)

    Returns:
        OpenedSource positioned at the start of the (decompressed) content

    Raises:
        OpenError: If the file is missing, unreadable or a corrupt gzip
    """
    path = os.fspath(path)
    name = name or path

    try:
        check_symlink(path)
        raw = open(path, "rb")
    except FileNotFoundError as e:
        raise OpenError("Source file not found", path=path, source_name=name) from e
    except PermissionError as e:
        raise OpenError("Permission denied", path=path, source_name=name) from e
    except IsADirectoryError as e:
        raise OpenError("Source path is a directory", path=path, source_name=name) from e
    except OSError as e:
        raise OpenError(f"Cannot open source: {e}", path=path, source_name=name) from e
    except ValueError as e:
        # The OS rejects the path itself, e.g. an embedded NUL byte
        raise OpenError(f"Invalid source path: {e}", path=path, source_name=name) from e

    try:
        st = os.fstat(raw.fileno())
    except OSError as e:
        raw.close()
        raise OpenError(f"Cannot stat source: {e}", path=path, source_name=name) from e

    size = st.st_size if stat.S_ISREG(st.st_mode) else -1
    return open_reader(raw, name=name, path=path, size=size)


def _can_rewind(reader: Any) -> bool:
    if isinstance(reader, gzip.GzipFile):
        # GzipFile claims to be seekable but rewinds by seeking its fileobj
        return reader.fileobj is not None and reader.fileobj.seekable()
    seekable = getattr(reader, "seekable", None)
    return bool(seekable and seekable())


def read_sample(reader: Any, size: int, source_name: str | None = None) -> tuple[bytes, Any]:
    """
    Read up to ``size`` bytes without consuming them.

    Seekable readers are rewound; others are wrapped in a ReplayReader that
    delivers the sample again before the rest of the stream.

    Returns:
        Tuple of (sample, reader positioned at the start)

    Raises:
        OpenError: If reading or decompressing the sample fails
    """
    chunks = []
    remaining = size
    try:
        while remaining > 0:
            chunk = reader.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        sample = b"".join(chunks)

        if _can_rewind(reader):
            reader.seek(0)
            return sample, reader
    except STREAM_ERRORS as e:
        raise OpenError(f"Cannot read sample: {e}", source_name=source_name) from e

    return sample, ReplayReader(sample, reader)
