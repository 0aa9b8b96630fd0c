"""
Core module containing models, exceptions, configuration and limits.
"""

from logresolve.core.models import (
    TimestampFormat,
    FormatSpec,
    Location,
    SourceDescriptor,
    FailurePolicy,
    Options,
    DEFAULT_MAX_TRIAL_LINES,
    DEFAULT_SAMPLE_SIZE,
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
from logresolve.core.config import (
    parse_duration,
    options_from_mapping,
    descriptors_from_mapping,
)

__all__ = [
    # Models
    "TimestampFormat",
    "FormatSpec",
    "Location",
    "SourceDescriptor",
    "FailurePolicy",
    "Options",
    "DEFAULT_MAX_TRIAL_LINES",
    "DEFAULT_SAMPLE_SIZE",
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
    "parse_duration",
    "options_from_mapping",
    "descriptors_from_mapping",
]
