"""
Timestamp parse functions, one per TimestampFormat.

Every parser takes the raw bytes captured from a log line and returns
nanoseconds since the Unix epoch, or raises TimestampParseError.
Layouts that carry no zone are read as UTC. Layouts that carry no year
use the caller's reference year.

Epoch scale (EPOCH_ANY) is classified by magnitude, i.e. by the number of
integer digits once leading zeros are dropped:

    digits   scale          example
    <= 10    seconds        1735800000
    11-13    milliseconds   1735800000000
    14-16    microseconds   1735800000000000
    17-19    nanoseconds    1735800000000000000

Twenty or more digits are rejected. A decimal fraction is only accepted
on the seconds scale ("1735800000.25").
"""

import re
from datetime import datetime, timezone
from functools import partial
from typing import Callable

from dateutil import parser as dateutil_parser

from logresolve.core.exceptions import TimestampParseError
from logresolve.core.models import TimestampFormat

__all__ = [
    "TimestampParser",
    "get_timestamp_parser",
    "classify_epoch",
    "datetime_to_nanos",
    "format_nanos",
    "NANOS_PER_SECOND",
]


TimestampParser = Callable[[bytes], int]

NANOS_PER_SECOND = 1_000_000_000

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# (upper bound exclusive, nanoseconds per unit, unit name)
_EPOCH_SCALES = (
    (10 ** 10, NANOS_PER_SECOND, "seconds"),
    (10 ** 13, 1_000_000, "milliseconds"),
    (10 ** 16, 1_000, "microseconds"),
    (10 ** 19, 1, "nanoseconds"),
)

_FIXED_SCALES = {
    TimestampFormat.EPOCH_SECONDS: NANOS_PER_SECOND,
    TimestampFormat.EPOCH_MILLIS: 1_000_000,
    TimestampFormat.EPOCH_MICROS: 1_000,
    TimestampFormat.EPOCH_NANOS: 1,
}

# strptime layout (fraction removed), fraction separator, layout has year
_LAYOUTS: dict[TimestampFormat, tuple[str, str | None, bool]] = {
    TimestampFormat.ISO8601_MILLIS: ("%Y-%m-%d %H:%M:%S", ".", True),
    TimestampFormat.ISO8601_COMMA_MILLIS: ("%Y-%m-%d %H:%M:%S", ",", True),
    TimestampFormat.ISO8601_MICROS_OFFSET: ("%Y-%m-%d %H:%M:%S%z", ".", True),
    TimestampFormat.W3C: ("%Y-%m-%d %H:%M:%S", None, True),
    TimestampFormat.SLASH_DATETIME: ("%Y/%m/%d %H:%M:%S", None, True),
    TimestampFormat.RFC3164: ("%b %d %H:%M:%S", None, False),
    TimestampFormat.KLOG: ("%m%d %H:%M:%S", ".", False),
    TimestampFormat.IIS: ("%m/%d/%Y, %H:%M:%S", None, True),
    TimestampFormat.DAY_MON_YEAR_MILLIS: ("%d %b %Y %H:%M:%S", ".", True),
    TimestampFormat.YEAR_MON_DAY_MILLIS: ("%Y %b %d %H:%M:%S", ".", True),
    TimestampFormat.YEAR_MON_DAY: ("%Y %b %d %H:%M:%S", None, True),
    TimestampFormat.CLF_MILLIS: ("%d/%b/%Y:%H:%M:%S", ".", True),
    TimestampFormat.US_12H: ("%m/%d/%Y %I:%M:%S %p", None, True),
}

_RFC3339_SHAPE = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(?:[.,]\d+)?(?:[Zz]|[+-]\d{2}:?\d{2})$"
)

_FRACTION = {
    ".": re.compile(r"(?<=\d{2}:\d{2}:\d{2})\.(\d+)"),
    ",": re.compile(r"(?<=\d{2}:\d{2}:\d{2}),(\d+)"),
}


def _decode(value: bytes | str, fmt: TimestampFormat) -> str:
    if isinstance(value, str):
        return value.strip()
    try:
        return value.decode("ascii").strip()
    except UnicodeDecodeError:
        raise TimestampParseError("Timestamp is not ASCII", value=value, format_name=fmt.value) from None


def _check_range(nanos: int, value: bytes | str, fmt: TimestampFormat) -> int:
    if not _INT64_MIN <= nanos <= _INT64_MAX:
        raise TimestampParseError(
            "Timestamp outside the representable nanosecond range",
            value=value,
            format_name=fmt.value,
        )
    return nanos


def _split_fraction(text: str, sep: str) -> tuple[str, int | None]:
    """Remove fractional seconds after HH:MM:SS, returning (rest, nanos or None)."""
    match = _FRACTION[sep].search(text)
    if not match:
        return text, None
    digits = match.group(1)[:9]
    nanos = int(digits.ljust(9, "0"))
    return text[:match.start()] + text[match.end():], nanos


def datetime_to_nanos(dt: datetime, fraction_nanos: int | None = None) -> int:
    """
    Convert a datetime to nanoseconds since the epoch.

    Naive datetimes are treated as UTC. When ``fraction_nanos`` is given it
    replaces the datetime's own microseconds.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - _EPOCH
    seconds = delta.days * 86400 + delta.seconds
    if fraction_nanos is None:
        fraction_nanos = delta.microseconds * 1_000
    return seconds * NANOS_PER_SECOND + fraction_nanos


def format_nanos(nanos: int) -> str:
    """Render nanoseconds since the epoch as an RFC 3339 UTC string."""
    seconds, fraction = divmod(nanos, NANOS_PER_SECOND)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    text = dt.strftime("%Y-%m-%dT%H:%M:%S")
    if fraction:
        text += "." + f"{fraction:09d}".rstrip("0")
    return text + "Z"


def classify_epoch(value: int) -> tuple[int, str]:
    """
    Classify a non-negative epoch integer by magnitude.

    Returns:
        Tuple of (nanoseconds per unit, unit name)

    Raises:
        ValueError: If the value has 20 or more digits
    """
    for bound, unit_nanos, unit in _EPOCH_SCALES:
        if value < bound:
            return unit_nanos, unit
    raise ValueError(f"epoch value {value} has too many digits")


def _parse_epoch_any(value: bytes) -> int:
    fmt = TimestampFormat.EPOCH_ANY
    text = _decode(value, fmt)
    whole, _, fraction = text.partition(".")

    if not whole.isdigit() or (fraction and not fraction.isdigit()):
        raise TimestampParseError("Epoch value is not numeric", value=value, format_name=fmt.value)

    number = int(whole)
    try:
        unit_nanos, unit = classify_epoch(number)
    except ValueError:
        raise TimestampParseError("Epoch value has too many digits", value=value, format_name=fmt.value) from None

    nanos = number * unit_nanos
    if fraction:
        if unit != "seconds":
            raise TimestampParseError(
                f"Fractional epoch only supported for seconds, got {unit}",
                value=value,
                format_name=fmt.value,
            )
        nanos += int(fraction[:9].ljust(9, "0"))

    return _check_range(nanos, value, fmt)


def _parse_epoch_fixed(value: bytes, fmt: TimestampFormat, unit_nanos: int) -> int:
    text = _decode(value, fmt)
    if not text.isdigit():
        raise TimestampParseError("Epoch value is not numeric", value=value, format_name=fmt.value)
    return _check_range(int(text) * unit_nanos, value, fmt)


def _parse_rfc3339(value: bytes) -> int:
    fmt = TimestampFormat.RFC3339
    text = _decode(value, fmt)
    if not _RFC3339_SHAPE.match(text):
        raise TimestampParseError("Not an RFC 3339 timestamp", value=value, format_name=fmt.value)

    rest, fraction = _split_fraction(text.replace(",", "."), ".")
    try:
        dt = dateutil_parser.isoparse(rest.upper())
    except (ValueError, OverflowError) as e:
        raise TimestampParseError(f"Invalid RFC 3339 timestamp: {e}", value=value, format_name=fmt.value) from e

    return _check_range(datetime_to_nanos(dt, fraction), value, fmt)


def _parse_layout(
    value: bytes,
    fmt: TimestampFormat,
    layout: str,
    fraction_sep: str | None,
    has_year: bool,
    reference_year: int,
) -> int:
    text = _decode(value, fmt)
    fraction = None
    if fraction_sep:
        text, fraction = _split_fraction(text, fraction_sep)

    if not has_year:
        # Parse with an explicit year so Feb 29 and friends resolve correctly
        text = f"{reference_year:04d} {text}"
        layout = "%Y " + layout

    try:
        dt = datetime.strptime(text, layout)
    except ValueError as e:
        raise TimestampParseError(
            f"Timestamp does not match layout {fmt.value!r}",
            value=value,
            format_name=fmt.value,
        ) from e

    return _check_range(datetime_to_nanos(dt, fraction), value, fmt)


def _parse_custom(value: bytes, layout: str, reference_year: int) -> int:
    fmt = TimestampFormat.CUSTOM
    text = _decode(value, fmt)
    if "%Y" not in layout and "%y" not in layout:
        text = f"{reference_year:04d} {text}"
        layout = "%Y " + layout

    try:
        dt = datetime.strptime(text, layout)
    except ValueError as e:
        raise TimestampParseError(
            f"Timestamp does not match layout {layout!r}",
            value=value,
            format_name=fmt.value,
        ) from e

    return _check_range(datetime_to_nanos(dt), value, fmt)


def _check_layout(layout: str) -> None:
    """Reject strptime layouts with unknown directives before any line is parsed."""
    try:
        datetime.strptime("", layout)
    except ValueError as e:
        message = str(e)
        if "bad directive" in message or "stray %" in message:
            raise ValueError(f"Invalid strptime layout {layout!r}: {message}") from e


def _parse_auto(value: bytes, reference_year: int) -> int:
    fmt = TimestampFormat.AUTO
    text = _decode(value, fmt)
    if not text:
        raise TimestampParseError("Empty timestamp", value=value, format_name=fmt.value)

    rest, fraction = _split_fraction(text, ".")
    if fraction is None:
        rest, fraction = _split_fraction(text, ",")
    default = datetime(reference_year, 1, 1, tzinfo=timezone.utc)
    try:
        dt = dateutil_parser.parse(rest, default=default)
    except (ValueError, OverflowError) as e:
        raise TimestampParseError(f"Unrecognized timestamp: {e}", value=value, format_name=fmt.value) from e

    return _check_range(datetime_to_nanos(dt, fraction), value, fmt)


def get_timestamp_parser(
    fmt: TimestampFormat,
    layout: str | None = None,
    reference_year: int | None = None,
) -> TimestampParser:
    """
    Return the parse function for a format.

    Args:
        fmt: Format tag
        layout: strptime layout, required for CUSTOM
        reference_year: Year for layouts without one (defaults to the
            current UTC year)

    Returns:
        Callable mapping captured bytes to nanoseconds since the epoch

    Raises:
        ValueError: If CUSTOM is requested without a layout, or the layout
            has an unsupported directive
    """
    if reference_year is None:
        reference_year = datetime.now(timezone.utc).year

    if fmt is TimestampFormat.EPOCH_ANY:
        return _parse_epoch_any
    if fmt in _FIXED_SCALES:
        return partial(_parse_epoch_fixed, fmt=fmt, unit_nanos=_FIXED_SCALES[fmt])
    if fmt is TimestampFormat.RFC3339:
        return _parse_rfc3339
    if fmt in _LAYOUTS:
        strp_layout, fraction_sep, has_year = _LAYOUTS[fmt]
        return partial(
            _parse_layout,
            fmt=fmt,
            layout=strp_layout,
            fraction_sep=fraction_sep,
            has_year=has_year,
            reference_year=reference_year,
        )
    if fmt is TimestampFormat.AUTO:
        return partial(_parse_auto, reference_year=reference_year)
    if fmt is TimestampFormat.CUSTOM:
        if not layout:
            raise ValueError("CUSTOM timestamp format requires a layout")
        _check_layout(layout)
        return partial(_parse_custom, layout=layout, reference_year=reference_year)

    raise ValueError(f"No parser for timestamp format {fmt!r}")
