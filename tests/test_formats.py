"""
Tests for timestamp parse functions.
"""

import pytest

from conftest import SECOND, T0
from logresolve.core.exceptions import TimestampParseError
from logresolve.core.models import TimestampFormat
from logresolve.detection.formats import (
    classify_epoch,
    format_nanos,
    get_timestamp_parser,
)


def parse(fmt: TimestampFormat, value: bytes, layout: str | None = None) -> int:
    return get_timestamp_parser(fmt, layout=layout, reference_year=2025)(value)


class TestFixedLayouts:
    """Literal instants for every fixed-layout format."""

    @pytest.mark.parametrize("fmt,value,expected", [
        (TimestampFormat.RFC3339, b"2025-01-02T03:04:05Z", T0),
        (TimestampFormat.RFC3339, b"2025-01-02T03:04:05.123456789Z", T0 + 123_456_789),
        (TimestampFormat.RFC3339, b"2025-01-02T05:04:05+02:00", T0),
        (TimestampFormat.ISO8601_MILLIS, b"2025-01-02 03:04:05.123", T0 + 123_000_000),
        (TimestampFormat.ISO8601_COMMA_MILLIS, b"2025-01-02 03:04:05,123", T0 + 123_000_000),
        (TimestampFormat.ISO8601_MICROS_OFFSET, b"2025-01-02 05:04:05.123456+0200", T0 + 123_456_000),
        (TimestampFormat.W3C, b"2025-01-02 03:04:05", T0),
        (TimestampFormat.SLASH_DATETIME, b"2025/01/02 03:04:05", T0),
        (TimestampFormat.RFC3164, b"Jan  2 03:04:05", T0),
        (TimestampFormat.RFC3164, b"Jan 2 03:04:05", T0),
        (TimestampFormat.KLOG, b"0102 03:04:05.123456", T0 + 123_456_000),
        (TimestampFormat.IIS, b"01/02/2025, 03:04:05", T0),
        (TimestampFormat.DAY_MON_YEAR_MILLIS, b"02 Jan 2025 03:04:05.123", T0 + 123_000_000),
        (TimestampFormat.YEAR_MON_DAY_MILLIS, b"2025 Jan 02 03:04:05.123", T0 + 123_000_000),
        (TimestampFormat.YEAR_MON_DAY, b"2025 Jan 02 03:04:05", T0),
        (TimestampFormat.CLF_MILLIS, b"02/Jan/2025:03:04:05.123", T0 + 123_000_000),
        (TimestampFormat.US_12H, b"01/02/2025 03:04:05 AM", T0),
        (TimestampFormat.US_12H, b"01/02/2025 03:04:05 PM", T0 + 12 * 3600 * SECOND),
    ])
    def test_literal_instant(self, fmt, value, expected):
        assert parse(fmt, value) == expected

    def test_rfc3339_requires_zone(self):
        with pytest.raises(TimestampParseError):
            parse(TimestampFormat.RFC3339, b"2025-01-02T03:04:05")

    def test_rfc3339_rejects_invalid_date(self):
        with pytest.raises(TimestampParseError):
            parse(TimestampFormat.RFC3339, b"2025-13-02T03:04:05Z")

    def test_mismatched_layout_raises(self):
        with pytest.raises(TimestampParseError) as exc_info:
            parse(TimestampFormat.W3C, b"02/Jan/2025:03:04:05")
        assert exc_info.value.format_name == TimestampFormat.W3C.value

    def test_non_ascii_raises(self):
        with pytest.raises(TimestampParseError):
            parse(TimestampFormat.W3C, "2025-01-02 03:04:05é".encode())

    def test_missing_year_uses_reference_year(self):
        leap = get_timestamp_parser(TimestampFormat.RFC3164, reference_year=2024)
        # Feb 29 only exists in the reference year
        assert format_nanos(leap(b"Feb 29 00:00:00")) == "2024-02-29T00:00:00Z"


class TestEpoch:
    """Tests for epoch scale classification."""

    @pytest.mark.parametrize("value,expected", [
        (b"1000", 1000 * SECOND),
        (b"1735787045", T0),
        (b"1735787045123", T0 + 123_000_000),
        (b"1735787045123456", T0 + 123_456_000),
        (b"1735787045123456789", T0 + 123_456_789),
        (b"1735787045.5", T0 + 500_000_000),
    ])
    def test_epoch_any(self, value, expected):
        assert parse(TimestampFormat.EPOCH_ANY, value) == expected

    def test_fixed_scale_millis(self):
        assert parse(TimestampFormat.EPOCH_MILLIS, b"42") == 42_000_000

    def test_fixed_scale_nanos(self):
        assert parse(TimestampFormat.EPOCH_NANOS, b"42") == 42

    def test_twenty_digits_rejected(self):
        with pytest.raises(TimestampParseError):
            parse(TimestampFormat.EPOCH_ANY, b"17357870451234567890")

    def test_fraction_only_on_seconds(self):
        with pytest.raises(TimestampParseError):
            parse(TimestampFormat.EPOCH_ANY, b"1735787045123.5")

    def test_non_numeric_rejected(self):
        with pytest.raises(TimestampParseError):
            parse(TimestampFormat.EPOCH_ANY, b"12ab")

    def test_out_of_range_rejected(self):
        # 9999999999 seconds overflows a signed 64-bit nanosecond count
        with pytest.raises(TimestampParseError):
            parse(TimestampFormat.EPOCH_ANY, b"9999999999")

    def test_classify_epoch(self):
        assert classify_epoch(1) == (SECOND, "seconds")
        assert classify_epoch(10 ** 12) == (1_000_000, "milliseconds")
        assert classify_epoch(10 ** 15) == (1_000, "microseconds")
        assert classify_epoch(10 ** 18) == (1, "nanoseconds")
        with pytest.raises(ValueError):
            classify_epoch(10 ** 19)


class TestAutoAndCustom:
    """Tests for AUTO and CUSTOM parsers."""

    def test_auto_parses_common_text(self):
        assert parse(TimestampFormat.AUTO, b"2025-01-02 03:04:05") == T0

    def test_auto_keeps_nanoseconds(self):
        assert parse(TimestampFormat.AUTO, b"2025-01-02 03:04:05.000000007") == T0 + 7

    def test_auto_keeps_comma_millis(self):
        assert parse(TimestampFormat.AUTO, b"2025-01-02 03:04:05,123") == T0 + 123_000_000

    def test_auto_without_fraction(self):
        assert parse(TimestampFormat.AUTO, b"2025-01-02T03:04:05Z") == T0

    def test_auto_rejects_garbage(self):
        with pytest.raises(TimestampParseError):
            parse(TimestampFormat.AUTO, b"not a date at all")

    def test_custom_layout(self):
        assert parse(TimestampFormat.CUSTOM, b"02.01.2025 03:04:05", layout="%d.%m.%Y %H:%M:%S") == T0

    def test_custom_layout_without_year(self):
        assert parse(TimestampFormat.CUSTOM, b"02.01 03:04:05", layout="%d.%m %H:%M:%S") == T0

    def test_custom_requires_layout(self):
        with pytest.raises(ValueError):
            get_timestamp_parser(TimestampFormat.CUSTOM)

    @pytest.mark.parametrize("layout", ["%Q", "%Y-%m-%d %"])
    def test_custom_rejects_unsupported_directive(self, layout):
        with pytest.raises(ValueError, match="Invalid strptime layout"):
            get_timestamp_parser(TimestampFormat.CUSTOM, layout=layout)


class TestFormatNanos:
    """Tests for RFC 3339 rendering."""

    def test_whole_seconds(self):
        assert format_nanos(T0) == "2025-01-02T03:04:05Z"

    def test_fraction_trimmed(self):
        assert format_nanos(T0 + 120_000_000) == "2025-01-02T03:04:05.12Z"
