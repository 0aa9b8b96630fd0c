"""
Domain layer for logresolve.

Contains the resolved-source entity, the lateness ordering contract and
the service protocols detection strategies implement.
"""

from logresolve.domain.entities import (
    LogRecord,
    SourceState,
    Detection,
    ProgressSnapshot,
    ProgressCounters,
    ResolvedSource,
)
from logresolve.domain.ordering import LatenessWindow, reorder_within_window
from logresolve.domain.services import (
    ByteReader,
    ExtractionFunction,
    TimestampCandidate,
)

__all__ = [
    # Entities
    "LogRecord",
    "SourceState",
    "Detection",
    "ProgressSnapshot",
    "ProgressCounters",
    "ResolvedSource",
    # Ordering
    "LatenessWindow",
    "reorder_within_window",
    # Service protocols
    "ByteReader",
    "ExtractionFunction",
    "TimestampCandidate",
]
