"""
Built-in timestamp format catalog.

Entries are tried in order, so more specific patterns must come before the
generic ones they overlap with (ISO8601_MILLIS before W3C, for example).
"""

from typing import Iterable, Iterator

from logresolve.core.models import FormatSpec, TimestampFormat

__all__ = ["FormatCatalog", "BUILTIN_CATALOG"]


class FormatCatalog:
    """
    Immutable, priority-ordered collection of FormatSpec entries.

    Usage:
        catalog = FormatCatalog([FormatSpec(r"^(\\d+)", TimestampFormat.EPOCH_ANY)])
        for spec in catalog:
            ...
    """

    __slots__ = ("_specs",)

    def __init__(self, specs: Iterable[FormatSpec]):
        specs = tuple(specs)
        for spec in specs:
            if not isinstance(spec, FormatSpec):
                raise TypeError(f"FormatCatalog entries must be FormatSpec, got {type(spec).__name__}")
        object.__setattr__(self, "_specs", specs)

    def __setattr__(self, name, value):
        raise AttributeError("FormatCatalog is immutable")

    def __iter__(self) -> Iterator[FormatSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __getitem__(self, index: int) -> FormatSpec:
        return self._specs[index]

    def __repr__(self) -> str:
        return f"FormatCatalog({len(self._specs)} specs)"

    @property
    def specs(self) -> tuple[FormatSpec, ...]:
        return self._specs

    def formats(self) -> list[TimestampFormat]:
        """Distinct formats in priority order."""
        seen: list[TimestampFormat] = []
        for spec in self._specs:
            if spec.format not in seen:
                seen.append(spec.format)
        return seen

    def specs_for(self, fmt: TimestampFormat) -> list[FormatSpec]:
        """All specs bound to ``fmt``, in priority order."""
        return [spec for spec in self._specs if spec.format is fmt]


BUILTIN_CATALOG = FormatCatalog([
    FormatSpec(
        pattern=r'"time":(\d{16,19})',
        format=TimestampFormat.EPOCH_ANY,
        description="JSON epoch field with sub-second precision",
    ),
    FormatSpec(
        pattern=r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+\-]\d{2}:\d{2}))",
        format=TimestampFormat.RFC3339,
        description="RFC 3339 (2025-01-02T03:04:05.123Z)",
    ),
    FormatSpec(
        pattern=r"^(\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2})",
        format=TimestampFormat.SLASH_DATETIME,
        description="Slash date with time (nginx error log)",
    ),
    FormatSpec(
        pattern=r"^(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3})",
        format=TimestampFormat.ISO8601_MILLIS,
        description="ISO 8601 with milliseconds",
    ),
    FormatSpec(
        pattern=r"^([A-Z][a-z]{2}\s{1,2}\d{1,2}\s\d{2}:\d{2}:\d{2})",
        format=TimestampFormat.RFC3164,
        description="BSD syslog (Jan  2 15:04:05)",
    ),
    FormatSpec(
        pattern=r"^(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})",
        format=TimestampFormat.W3C,
        description="W3C extended log date and time",
    ),
    FormatSpec(
        pattern=r"^[IWEF](\d{4} \d{2}:\d{2}:\d{2}\.\d{6})",
        format=TimestampFormat.KLOG,
        description="Kubernetes klog header (I0102 15:04:05.000000)",
    ),
    FormatSpec(
        pattern=r"^\[(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3})\]",
        format=TimestampFormat.ISO8601_COMMA_MILLIS,
        description="Bracketed ISO 8601 with comma milliseconds",
    ),
    FormatSpec(
        pattern=r"^(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{6}[+-]\d{4})",
        format=TimestampFormat.ISO8601_MICROS_OFFSET,
        description="ISO 8601 with microseconds and numeric offset",
    ),
    FormatSpec(
        pattern=r"^(\d{2}/\d{2}/\d{4}, \d{2}:\d{2}:\d{2})",
        format=TimestampFormat.IIS,
        description="Microsoft IIS log",
    ),
    FormatSpec(
        pattern=r"^(\d{2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2}\.\d{3})",
        format=TimestampFormat.DAY_MON_YEAR_MILLIS,
        description="Day month year with milliseconds",
    ),
    FormatSpec(
        pattern=r"^(\d{4} [A-Z][a-z]{2} \d{2} \d{2}:\d{2}:\d{2}\.\d{3})",
        format=TimestampFormat.YEAR_MON_DAY_MILLIS,
        description="Year month day with milliseconds",
    ),
    FormatSpec(
        pattern=r"^(\d{2}/[A-Z][a-z]{2}/\d{4}:\d{2}:\d{2}:\d{2}\.\d{3})",
        format=TimestampFormat.CLF_MILLIS,
        description="Common log format date with milliseconds",
    ),
    FormatSpec(
        pattern=r"^(\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2} (AM|PM))",
        format=TimestampFormat.US_12H,
        description="US date with 12-hour clock",
    ),
    FormatSpec(
        pattern=r"^(\d{4} [A-Z][a-z]{2} \d{2} \d{2}:\d{2}:\d{2})",
        format=TimestampFormat.YEAR_MON_DAY,
        description="Year month day",
    ),
    FormatSpec(
        pattern=r"/Date\((\d+)\)",
        format=TimestampFormat.EPOCH_ANY,
        description="Windows event JSON date (/Date(1735800000000)/)",
    ),
])
