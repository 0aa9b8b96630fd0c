"""
logresolve - Turn heterogeneous log sources into timestamped record streams.

Detects each source's timestamp encoding from a small sample, streams
plain, gzip, stdin or in-memory input as timestamped records, and exposes
a bounded-lateness contract for cross-source correlation.

Usage:
    from logresolve import resolve, detect_timestamp_format

    # Detect the timestamp format of a file
    detection = detect_timestamp_format("app.log")
    print(detection.format, detection.first_timestamp)

    # Resolve several sources with a 2s lateness window
    with resolve(["app.log", "nginx.log.gz"], window="2s") as result:
        for source in result:
            for record in source.records():
                if source.is_closed(record.timestamp - 5_000_000_000):
                    ...

    # Pipe stdin
    from logresolve import pipe_stdin
    (source,) = pipe_stdin()
"""

__version__ = "0.1.0"

import os
from typing import Any, Iterable, Mapping

from logresolve.core.models import (
    TimestampFormat,
    FormatSpec,
    Location,
    SourceDescriptor,
    FailurePolicy,
    Options,
)
from logresolve.core.exceptions import (
    LogResolveError,
    CompileError,
    OpenError,
    DetectionFailed,
    ReadError,
    ConfigurationError,
    UnknownFormatError,
    TimestampParseError,
)
from logresolve.core.config import options_from_mapping, parse_duration
from logresolve.detection import (
    BUILTIN_CATALOG,
    FormatCatalog,
    Detection,
    TimestampDetector,
    detect,
    try_format,
)
from logresolve.domain import (
    LatenessWindow,
    LogRecord,
    ResolvedSource,
    SourceState,
)
from logresolve.application import (
    ResolveFailure,
    ResolveResult,
    SourceResolver,
)
from logresolve.infrastructure import open_source, read_sample

__all__ = [
    # Version
    "__version__",
    # Core models
    "TimestampFormat",
    "FormatSpec",
    "Location",
    "SourceDescriptor",
    "FailurePolicy",
    "Options",
    # Exceptions
    "LogResolveError",
    "CompileError",
    "OpenError",
    "DetectionFailed",
    "ReadError",
    "ConfigurationError",
    "UnknownFormatError",
    "TimestampParseError",
    # Configuration
    "options_from_mapping",
    "parse_duration",
    # Detection
    "BUILTIN_CATALOG",
    "FormatCatalog",
    "Detection",
    "TimestampDetector",
    "detect",
    "try_format",
    # Domain
    "LatenessWindow",
    "LogRecord",
    "ResolvedSource",
    "SourceState",
    # Resolution
    "ResolveFailure",
    "ResolveResult",
    "SourceResolver",
    # Convenience functions
    "resolve",
    "pipe_stdin",
    "detect_timestamp_format",
]


def _descriptor(item: Any) -> SourceDescriptor | Mapping[str, Any]:
    if isinstance(item, (str, os.PathLike)):
        return SourceDescriptor.for_path(os.fspath(item))
    return item


def resolve(
    descriptors: Iterable[SourceDescriptor | Mapping[str, Any] | str | os.PathLike],
    max_workers: int = 1,
    **options: Any,
) -> ResolveResult:
    """
    Resolve log sources.

    Args:
        descriptors: SourceDescriptor objects, descriptor mappings or plain paths
        max_workers: Threads used to open and detect sources
        **options: Options fields (window accepts durations such as "2s")

    Returns:
        ResolveResult; close it (or use it as a context manager) when done
    """
    resolver = SourceResolver(options_from_mapping(None, **options), max_workers=max_workers)
    return resolver.resolve([_descriptor(d) for d in descriptors])


def pipe_stdin(stream: Any = None, **options: Any) -> list[ResolvedSource]:
    """
    Resolve standard input as a single source.

    Args:
        stream: Stream to read instead of sys.stdin
        **options: Options fields

    Returns:
        List containing the one resolved source
    """
    return SourceResolver(options_from_mapping(None, **options)).pipe_stdin(stream)


def detect_timestamp_format(file_path: str | os.PathLike, **options: Any) -> Detection:
    """
    Detect the timestamp format of a file.

    Args:
        file_path: Path to the log file (plain or gzip)
        **options: Options fields

    Returns:
        Detection with the bound format, pattern and first timestamp

    Raises:
        OpenError: If the file cannot be opened
        DetectionFailed: If no timestamp format matched
    """
    opts = options_from_mapping(None, **options)
    detector = TimestampDetector(opts)
    with open_source(file_path) as opened:
        sample, _ = read_sample(opened.reader, opts.sample_size, source_name=opened.name)
    return detector.detect(sample)
