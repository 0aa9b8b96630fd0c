"""
Application layer for logresolve.

Contains the use case that turns source descriptors into resolved streams.
"""

from logresolve.application.resolve_sources import (
    ResolveFailure,
    ResolveResult,
    SourceResolver,
)
from logresolve.application.ports import (
    FormatDetectorPort,
    OpenedSourcePort,
    SourceOpenerPort,
)

__all__ = [
    "ResolveFailure",
    "ResolveResult",
    "SourceResolver",
    "FormatDetectorPort",
    "OpenedSourcePort",
    "SourceOpenerPort",
]
