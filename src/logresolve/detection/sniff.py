"""
Structural sniffing candidates.

These run before any regex catalog entry: JSON-lines logs are recognised by
a well-known timestamp key, and container runtime logs (kubectl
--timestamps, CRI) by a leading RFC 3339 stamp followed by whitespace.
"""

import json
import math
from decimal import Decimal
from typing import Any, Sequence

from logresolve.core.exceptions import DetectionFailed, TimestampParseError
from logresolve.core.models import FormatSpec, TimestampFormat
from logresolve.detection.formats import get_timestamp_parser
from logresolve.domain.entities import Detection
from logresolve.domain.services import TimestampCandidate

__all__ = [
    "TIMESTAMP_FIELDS",
    "RFC3339_PREFIX_SPEC",
    "JsonFieldExtractor",
    "JsonFieldCandidate",
]


# Checked in order; the first key present on a line decides
TIMESTAMP_FIELDS = (
    "time", "timestamp", "@timestamp", "ts", "datetime",
    "created", "date", "logged_at", "log_time",
)

RFC3339_PREFIX_SPEC = FormatSpec(
    pattern=r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+\-]\d{2}:\d{2}))[ \t]",
    format=TimestampFormat.RFC3339,
    description="Leading RFC 3339 stamp (kubectl --timestamps, CRI)",
)

_parse_epoch = get_timestamp_parser(TimestampFormat.EPOCH_ANY)
_parse_rfc3339 = get_timestamp_parser(TimestampFormat.RFC3339)


def _epoch_number(value: int | float) -> int:
    """Convert a JSON number holding an epoch value to nanoseconds."""
    if isinstance(value, float) and not math.isfinite(value):
        raise TimestampParseError("Epoch value is not finite", value=repr(value), format_name="epochany")
    if value < 0:
        raise TimestampParseError("Negative epoch value", value=str(value), format_name="epochany")
    if isinstance(value, int):
        return _parse_epoch(str(value).encode("ascii"))

    # Same rules as a numeric string: a fraction is only valid on the seconds scale
    text = format(Decimal(repr(value)), "f")
    return _parse_epoch(text.encode("ascii"))


def _value_nanos(value: Any, fmt: TimestampFormat | None = None) -> tuple[TimestampFormat, int]:
    """
    Parse a JSON timestamp value.

    Numbers and numeric strings are epoch values; other strings must be
    RFC 3339. ``fmt`` restricts the accepted kind once a source is bound.
    """
    if isinstance(value, bool):
        raise TimestampParseError("Boolean is not a timestamp", value=str(value), format_name="json")

    if isinstance(value, (int, float)):
        if fmt not in (None, TimestampFormat.EPOCH_ANY):
            raise TimestampParseError("Expected a string timestamp", value=str(value), format_name=fmt.value)
        return TimestampFormat.EPOCH_ANY, _epoch_number(value)

    if isinstance(value, str):
        raw = value.strip().encode("utf-8")
        is_numeric = raw.replace(b".", b"", 1).isdigit()
        if is_numeric and fmt in (None, TimestampFormat.EPOCH_ANY):
            return TimestampFormat.EPOCH_ANY, _parse_epoch(raw)
        if not is_numeric and fmt in (None, TimestampFormat.RFC3339):
            return TimestampFormat.RFC3339, _parse_rfc3339(raw)
        raise TimestampParseError(
            "Timestamp value does not match the bound format",
            value=value,
            format_name=fmt.value if fmt else "json",
        )

    raise TimestampParseError(
        f"Unsupported timestamp value type {type(value).__name__}",
        value=str(value),
        format_name="json",
    )


def _load_object(line: bytes) -> dict:
    stripped = line.strip()
    if not stripped.startswith(b"{"):
        raise TimestampParseError("Line is not a JSON object", value=line[:100], format_name="json")
    try:
        data = json.loads(stripped)
    except (ValueError, RecursionError) as e:
        raise TimestampParseError(f"Invalid JSON: {e}", value=line[:100], format_name="json") from e
    if not isinstance(data, dict):
        raise TimestampParseError("Line is not a JSON object", value=line[:100], format_name="json")
    return data


class JsonFieldExtractor:
    """Extraction function reading one top-level JSON key."""

    __slots__ = ("key", "format", "name")

    def __init__(self, key: str, fmt: TimestampFormat):
        self.key = key
        self.format = fmt
        self.name = f"json:{key}"

    def __call__(self, line: bytes) -> int:
        data = _load_object(line)
        if self.key not in data:
            raise TimestampParseError(f"Missing JSON key {self.key!r}", value=line[:100], format_name=self.name)
        return _value_nanos(data[self.key], self.format)[1]

    def __repr__(self) -> str:
        return f"JsonFieldExtractor(key={self.key!r}, format={self.format.value!r})"


class JsonFieldCandidate(TimestampCandidate):
    """Detect JSON-lines logs by their timestamp key."""

    def __init__(self, fields: Sequence[str] = TIMESTAMP_FIELDS):
        self.fields = tuple(fields)

    @property
    def name(self) -> str:
        return "sniff:json"

    def attempt(self, lines: Sequence[bytes]) -> Detection:
        last_error: Exception | None = None

        for index, line in enumerate(lines):
            try:
                data = _load_object(line)
            except TimestampParseError as e:
                last_error = e
                continue

            key = next((k for k in self.fields if k in data), None)
            if key is None:
                last_error = TimestampParseError("No timestamp key in JSON object", value=line[:100], format_name="json")
                continue

            try:
                fmt, timestamp = _value_nanos(data[key])
            except TimestampParseError as e:
                last_error = e
                continue

            return Detection(
                extractor=JsonFieldExtractor(key, fmt),
                first_timestamp=timestamp,
                format=fmt,
                pattern=None,
                strategy="sniff",
                line_index=index,
            )

        raise DetectionFailed(
            "No JSON line carried a recognised timestamp field",
            last_error=last_error,
            attempts=[self.name],
        )
