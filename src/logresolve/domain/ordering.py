"""
Bounded-lateness ordering contract.

A source promises that once it has emitted an event at time T, every later
event it emits has a timestamp of at least T - window. The consumer can
therefore treat any time point t as closed for that source as soon as the
source has emitted some T' >= t + window.
"""

import heapq
from typing import TYPE_CHECKING, Iterable, Iterator

if TYPE_CHECKING:
    from logresolve.domain.entities import LogRecord

__all__ = ["LatenessWindow", "reorder_within_window"]


class LatenessWindow:
    """
    Watermark tracker for one source.

    Usage:
        lw = LatenessWindow(window=2_000_000_000)
        lw.observe(ts)
        if lw.is_closed(t):
            ...
    """

    __slots__ = ("window", "max_seen", "late_events", "observed")

    def __init__(self, window: int = 0):
        if isinstance(window, bool) or not isinstance(window, int) or window < 0:
            raise ValueError(f"window must be a non-negative int, got {window!r}")
        self.window = window
        self.max_seen: int | None = None
        self.late_events = 0
        self.observed = 0

    def observe(self, timestamp: int) -> bool:
        """
        Record an emitted event time.

        Returns:
            False if the event arrived later than the window allows
        """
        self.observed += 1
        if self.max_seen is None or timestamp > self.max_seen:
            self.max_seen = timestamp
            return True

        on_time = timestamp >= self.max_seen - self.window
        if not on_time:
            self.late_events += 1
        return on_time

    @property
    def closed_floor(self) -> int | None:
        """Every time point at or below this value is closed; None before the first event."""
        if self.max_seen is None:
            return None
        return self.max_seen - self.window

    def is_closed(self, t: int) -> bool:
        """True once some emitted T' satisfies T' >= t + window."""
        return self.max_seen is not None and self.max_seen >= t + self.window

    def __repr__(self) -> str:
        return (
            f"LatenessWindow(window={self.window}, max_seen={self.max_seen}, "
            f"late_events={self.late_events})"
        )


def reorder_within_window(records: Iterable["LogRecord"], window: int) -> Iterator["LogRecord"]:
    """
    Release records in (timestamp, line_number) order using a heap buffer.

    A buffered record is released once it is closed under the window, i.e.
    the largest timestamp seen so far is at least its timestamp + window.
    Everything left is flushed in order at end of input. Records that
    arrive later than the window allows are released as soon as possible,
    so output is sorted only for inputs that honour the window.
    """
    buffer: list[tuple[int, int, "LogRecord"]] = []
    tracker = LatenessWindow(window)

    for record in records:
        tracker.observe(record.timestamp)
        heapq.heappush(buffer, (record.timestamp, record.line_number, record))
        while buffer and tracker.is_closed(buffer[0][0]):
            yield heapq.heappop(buffer)[2]

    while buffer:
        yield heapq.heappop(buffer)[2]
