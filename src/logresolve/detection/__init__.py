"""
Timestamp format detection.
"""

from logresolve.detection.catalog import BUILTIN_CATALOG, FormatCatalog
from logresolve.detection.detector import (
    Detection,
    PatternCandidate,
    TimestampDetector,
    TimestampExtractor,
    detect,
    first_success,
    try_format,
)
from logresolve.detection.formats import format_nanos, get_timestamp_parser
from logresolve.detection.sniff import JsonFieldCandidate, JsonFieldExtractor

__all__ = [
    "BUILTIN_CATALOG",
    "FormatCatalog",
    "Detection",
    "PatternCandidate",
    "TimestampDetector",
    "TimestampExtractor",
    "JsonFieldCandidate",
    "JsonFieldExtractor",
    "detect",
    "first_success",
    "try_format",
    "format_nanos",
    "get_timestamp_parser",
]
