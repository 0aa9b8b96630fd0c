"""
Domain entities for logresolve.

LogRecord and Detection are immutable value objects. ResolvedSource is the
one stateful entity: a single-consumer stream of timestamped records bound
to exactly one extractor for its lifetime.
"""

import logging
import threading
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, NamedTuple

from logresolve.core.exceptions import ReadError, TimestampParseError
from logresolve.core.models import TimestampFormat
from logresolve.core.security import MAX_LINE_LENGTH
from logresolve.domain.ordering import LatenessWindow, reorder_within_window

__all__ = [
    "LogRecord",
    "SourceState",
    "Detection",
    "ProgressSnapshot",
    "ProgressCounters",
    "ProgressCallback",
    "ResolvedSource",
]

logger = logging.getLogger(__name__)


ProgressCallback = Callable[[int, int, int], None]


class LogRecord(NamedTuple):
    """One emitted log line with its extracted timestamp (ns since epoch)."""
    timestamp: int
    line: bytes
    line_number: int


class SourceState(Enum):
    """
    Lifecycle of a resolved source.

    DETECTING -> STREAMING -> EXHAUSTED on a clean end of input, or
    -> FAILED on an open, detection or mid-stream read error.
    """
    DETECTING = "detecting"
    STREAMING = "streaming"
    EXHAUSTED = "exhausted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SourceState.EXHAUSTED, SourceState.FAILED)


@dataclass(frozen=True)
class Detection:
    """
    Outcome of timestamp format detection for one sample.

    Attributes:
        extractor: Bound extraction function (line bytes -> ns)
        first_timestamp: Timestamp of the first line that matched and parsed
        format: Detected format tag
        pattern: Regex that matched, or None for structural strategies
        strategy: Name of the winning candidate
        line_index: Zero-based index of the first matching sample line
    """
    extractor: Callable[[bytes], int]
    first_timestamp: int
    format: TimestampFormat
    pattern: str | None
    strategy: str
    line_index: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format.value,
            "pattern": self.pattern,
            "strategy": self.strategy,
            "first_timestamp": self.first_timestamp,
            "line_index": self.line_index,
        }


@dataclass(frozen=True)
class ProgressSnapshot:
    """Consistent copy of a source's progress counters."""
    bytes_read: int
    total_bytes: int
    lines_read: int
    records_emitted: int
    lines_skipped: int

    @property
    def percent(self) -> float | None:
        if self.total_bytes <= 0:
            return None
        return min(100.0, self.bytes_read * 100.0 / self.total_bytes)


class ProgressCounters:
    """
    Thread-safe progress counters for one source.

    The consuming thread updates them while a progress reporter may read
    them concurrently through snapshot().
    """

    def __init__(self, total_bytes: int = -1):
        self._lock = threading.Lock()
        self.total_bytes = total_bytes
        self.bytes_read = 0
        self.lines_read = 0
        self.records_emitted = 0
        self.lines_skipped = 0

    def line_read(self, nbytes: int) -> None:
        with self._lock:
            self.bytes_read += nbytes
            self.lines_read += 1

    def record_emitted(self) -> None:
        with self._lock:
            self.records_emitted += 1

    def line_skipped(self) -> None:
        with self._lock:
            self.lines_skipped += 1

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(
                bytes_read=self.bytes_read,
                total_bytes=self.total_bytes,
                lines_read=self.lines_read,
                records_emitted=self.records_emitted,
                lines_skipped=self.lines_skipped,
            )


class ResolvedSource:
    """
    A log source bound to a detected timestamp extractor.

    The reader is positioned at the start of the source, so the sample
    lines used for detection are emitted too. Records are pulled with
    records() (or ordered_records()); the source may only be consumed
    once.

    Usage:
        with source:
            for record in source.records():
                if source.is_closed(t):
                    ...
    """

    def __init__(
        self,
        name: str,
        path: str,
        reader: Any,
        size: int,
        detection: Detection,
        window: int = 0,
        kind: str = "log",
        closer: Callable[[], None] | None = None,
        progress_callback: ProgressCallback | None = None,
        callback_interval: int = 10000,
    ):
        """
        Args:
            name: Source name from its descriptor
            path: Location the reader was opened from
            reader: Binary reader positioned at the start of the source
            size: Byte size, or -1 when unknown (compressed or streamed)
            detection: Detection whose extractor is bound for the lifetime
            window: Lateness window in nanoseconds
            kind: Source kind from its descriptor
            closer: Idempotent close function; defaults to reader.close
            progress_callback: Called with (bytes_read, total_bytes, lines_read)
            callback_interval: Lines between progress callbacks
        """
        self.state = SourceState.DETECTING
        self.name = name
        self.path = path
        self.kind = kind
        self.reader = reader
        self.size = size
        self.detection = detection
        self.extractor = detection.extractor
        self.last_timestamp: int | None = None
        self.progress = ProgressCounters(total_bytes=size)

        self._lateness = LatenessWindow(window)
        self._closer = closer or reader.close
        self._closed = False
        self._consumed = False
        self._progress_callback = progress_callback
        self._callback_interval = max(1, callback_interval)

        self.state = SourceState.STREAMING

    @property
    def window(self) -> int:
        return self._lateness.window

    @property
    def format(self) -> TimestampFormat:
        return self.detection.format

    @property
    def size_known(self) -> bool:
        return self.size >= 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def closed_floor(self) -> int | None:
        """Largest time point known closed for this source, None before the first record."""
        return self._lateness.closed_floor

    @property
    def late_events(self) -> int:
        return self._lateness.late_events

    def is_closed(self, t: int) -> bool:
        """True once this source can no longer emit an event at or before ``t``."""
        if self.state is SourceState.EXHAUSTED:
            return True
        return self._lateness.is_closed(t)

    def records(self) -> Iterator[LogRecord]:
        """
        Yield timestamped records in source order.

        Lines without a parseable timestamp are skipped and counted in
        progress.lines_skipped. Reaching end of input closes the reader
        and moves the source to EXHAUSTED.

        Raises:
            ReadError: On I/O or decompression failure, or an over-long
                line. The source moves to FAILED; records already yielded
                stay valid.
            RuntimeError: If the source was already consumed
        """
        if self._consumed:
            raise RuntimeError(f"Source {self.name!r} has already been consumed")
        self._consumed = True
        if self.state is not SourceState.STREAMING or self._closed:
            return

        line_number = 0
        while True:
            try:
                raw = self.reader.readline(MAX_LINE_LENGTH + 1)
            except (OSError, EOFError, zlib.error) as e:
                self._fail()
                raise ReadError(
                    f"Read failed: {e}",
                    source_name=self.name,
                    line_number=line_number + 1,
                ) from e

            if not raw:
                break

            line_number += 1
            self.progress.line_read(len(raw))

            if raw.endswith(b"\n"):
                line = raw[:-1]
            elif len(raw) > MAX_LINE_LENGTH:
                self._fail()
                raise ReadError(
                    f"Line exceeds maximum length of {MAX_LINE_LENGTH} bytes",
                    source_name=self.name,
                    line_number=line_number,
                )
            else:
                line = raw
            if line.endswith(b"\r"):
                line = line[:-1]

            if line_number % self._callback_interval == 0:
                self._report_progress()

            try:
                timestamp = self.extractor(line)
            except TimestampParseError as e:
                self.progress.line_skipped()
                logger.debug("%s:%d: skipped line without timestamp (%s)", self.name, line_number, e.message)
                continue

            self._lateness.observe(timestamp)
            self.last_timestamp = timestamp
            self.progress.record_emitted()
            yield LogRecord(timestamp, line, line_number)

        self.state = SourceState.EXHAUSTED
        self._report_progress()
        self.close()

    def ordered_records(self) -> Iterator[LogRecord]:
        """Yield records in (timestamp, line_number) order within the lateness window."""
        return reorder_within_window(self.records(), self.window)

    def close(self) -> None:
        """Release the reader. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._closer()

    def _fail(self) -> None:
        self.state = SourceState.FAILED
        try:
            self.close()
        except OSError as e:
            logger.debug("%s: error while closing failed source: %s", self.name, e)

    def _report_progress(self) -> None:
        if self._progress_callback is None:
            return
        snap = self.progress.snapshot()
        self._progress_callback(snap.bytes_read, snap.total_bytes, snap.lines_read)

    def __enter__(self) -> "ResolvedSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"ResolvedSource(name={self.name!r}, path={self.path!r}, "
            f"format={self.detection.format.value!r}, state={self.state.value})"
        )
