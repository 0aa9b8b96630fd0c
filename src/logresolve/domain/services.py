"""
Domain service protocols for logresolve.

These define the interfaces that the detection and application layers
depend on. Concrete extractors, candidates and readers implement them.
"""

from abc import ABC, abstractmethod
from typing import Protocol, Sequence, runtime_checkable

from logresolve.domain.entities import Detection

__all__ = [
    "ByteReader",
    "ExtractionFunction",
    "TimestampCandidate",
]


@runtime_checkable
class ByteReader(Protocol):
    """
    Protocol for the binary readers a resolved source streams from.

    Plain files, gzip streams, stdin and in-memory buffers all satisfy it.
    """

    def read(self, size: int = -1) -> bytes:
        ...

    def readline(self, size: int = -1) -> bytes:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class ExtractionFunction(Protocol):
    """
    Protocol for timestamp extraction functions.

    An extractor maps one raw log line to nanoseconds since the epoch. It
    must be side-effect free and raise TimestampParseError for lines that
    carry no parseable timestamp.
    """

    name: str

    def __call__(self, line: bytes) -> int:
        ...


class TimestampCandidate(ABC):
    """
    One detection strategy tried against the sample lines.

    Candidates are immutable once built so a detector can share them
    across threads.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name reported in Detection.strategy."""
        pass

    @abstractmethod
    def attempt(self, lines: Sequence[bytes]) -> Detection:
        """
        Try this candidate against the sample lines.

        Args:
            lines: Sample lines, already limited to the trial budget

        Returns:
            Detection bound to the first line that matched and parsed

        Raises:
            DetectionFailed: If no line matched and parsed
        """
        pass
