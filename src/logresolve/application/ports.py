"""
Port interfaces for the application layer.

These are the interfaces that infrastructure adapters must implement.
They define the contract between the resolver and the outside world.
"""

from typing import Protocol, runtime_checkable

from logresolve.domain.entities import Detection
from logresolve.domain.services import ByteReader

__all__ = [
    "OpenedSourcePort",
    "SourceOpenerPort",
    "FormatDetectorPort",
]


@runtime_checkable
class OpenedSourcePort(Protocol):
    """
    Port for an opened byte source.

    ``reader`` is positioned at the start of the (decompressed) content;
    ``size`` is -1 when the byte count is not known ahead of reading.
    """

    name: str
    path: str
    reader: ByteReader
    size: int
    compressed: bool

    def close(self) -> None:
        """Release the reader and any decompressor. Idempotent."""
        ...


class SourceOpenerPort(Protocol):
    """
    Port for opening a location.

    Raises OpenError for missing, unreadable or corrupt sources.
    """

    def __call__(self, path: str, name: str | None = None) -> OpenedSourcePort:
        ...


@runtime_checkable
class FormatDetectorPort(Protocol):
    """Port for timestamp format detection over a byte sample."""

    def detect(self, sample: bytes) -> Detection:
        """Return the bound Detection or raise DetectionFailed."""
        ...
