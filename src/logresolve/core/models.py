"""
Core data models for logresolve.

These are plain, immutable value objects: timestamp format tags, format
specifications, source descriptors and resolution options.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from logresolve.core.exceptions import ConfigurationError, UnknownFormatError

__all__ = [
    "TimestampFormat",
    "FormatSpec",
    "Location",
    "SourceDescriptor",
    "FailurePolicy",
    "Options",
    "DEFAULT_MAX_TRIAL_LINES",
    "DEFAULT_SAMPLE_SIZE",
]


# Lines tried per candidate format before giving up on it
DEFAULT_MAX_TRIAL_LINES = 50

# Bytes read from the start of a source for detection
DEFAULT_SAMPLE_SIZE = 16 * 1024


class TimestampFormat(Enum):
    """
    Closed set of timestamp encodings.

    The value is the canonical configuration label. Fixed-layout tags use
    the reference-time layout strings that log shipping configs commonly
    carry (e.g. "2006-01-02 15:04:05").
    """
    EPOCH_ANY = "epochany"
    EPOCH_SECONDS = "epochseconds"
    EPOCH_MILLIS = "epochmillis"
    EPOCH_MICROS = "epochmicros"
    EPOCH_NANOS = "epochnanos"
    RFC3339 = "rfc3339"
    ISO8601_MILLIS = "2006-01-02 15:04:05.000"
    ISO8601_COMMA_MILLIS = "2006-01-02 15:04:05,000"
    ISO8601_MICROS_OFFSET = "2006-01-02 15:04:05.000000-0700"
    W3C = "2006-01-02 15:04:05"
    SLASH_DATETIME = "2006/01/02 15:04:05"
    RFC3164 = "Jan 2 15:04:05"
    KLOG = "0102 15:04:05.000000"
    IIS = "01/02/2006, 15:04:05"
    DAY_MON_YEAR_MILLIS = "02 Jan 2006 15:04:05.000"
    YEAR_MON_DAY_MILLIS = "2006 Jan 02 15:04:05.000"
    YEAR_MON_DAY = "2006 Jan 02 15:04:05"
    CLF_MILLIS = "02/Jan/2006:15:04:05.000"
    US_12H = "01/02/2006 03:04:05 PM"
    AUTO = "auto"
    CUSTOM = "custom"

    @property
    def label(self) -> str:
        return self.value

    @property
    def is_epoch(self) -> bool:
        return self in _EPOCH_FORMATS

    @classmethod
    def from_label(cls, label: str) -> tuple["TimestampFormat", str | None]:
        """
        Map a configuration label to a format tag.

        Handles canonical labels, common aliases ("rfc3339nano", "unixmilli",
        "2006/01/02 03:04:05", ...) and strptime layouts. Any label that
        contains a "%" directive is a CUSTOM layout.

        Args:
            label: Format label from configuration

        Returns:
            Tuple of (format, layout) where layout is only set for CUSTOM

        Raises:
            UnknownFormatError: If the label is not recognized
        """
        if not isinstance(label, str) or not label.strip():
            raise UnknownFormatError(str(label))

        text = label.strip()
        if "%" in text:
            return cls.CUSTOM, text

        fmt = _LABELS.get(text) or _LABELS.get(text.lower())
        if fmt is None or fmt is cls.CUSTOM:
            raise UnknownFormatError(text)
        return fmt, None


_EPOCH_FORMATS = frozenset({
    TimestampFormat.EPOCH_ANY,
    TimestampFormat.EPOCH_SECONDS,
    TimestampFormat.EPOCH_MILLIS,
    TimestampFormat.EPOCH_MICROS,
    TimestampFormat.EPOCH_NANOS,
})

_LABELS: dict[str, TimestampFormat] = {fmt.value: fmt for fmt in TimestampFormat}
_LABELS.update({
    # Epoch aliases
    "epoch": TimestampFormat.EPOCH_ANY,
    "unix": TimestampFormat.EPOCH_SECONDS,
    "epochsecs": TimestampFormat.EPOCH_SECONDS,
    "unixmilli": TimestampFormat.EPOCH_MILLIS,
    "epochms": TimestampFormat.EPOCH_MILLIS,
    "unixmicro": TimestampFormat.EPOCH_MICROS,
    "epochus": TimestampFormat.EPOCH_MICROS,
    "unixnano": TimestampFormat.EPOCH_NANOS,
    "epochns": TimestampFormat.EPOCH_NANOS,
    # RFC 3339 aliases
    "rfc3339nano": TimestampFormat.RFC3339,
    "2006-01-02T15:04:05Z07:00": TimestampFormat.RFC3339,
    "2006-01-02T15:04:05.999999999Z07:00": TimestampFormat.RFC3339,
    # Named fixed layouts
    "iso8601": TimestampFormat.ISO8601_MILLIS,
    "w3c": TimestampFormat.W3C,
    "rfc3164": TimestampFormat.RFC3164,
    "syslog": TimestampFormat.RFC3164,
    "klog": TimestampFormat.KLOG,
    "iis": TimestampFormat.IIS,
    "2006/01/02 03:04:05": TimestampFormat.SLASH_DATETIME,
    "Jan _2 15:04:05": TimestampFormat.RFC3164,
})


@dataclass(frozen=True)
class FormatSpec:
    """
    A timestamp pattern bound to a format.

    The first capture group of ``pattern`` isolates the timestamp text.
    ``layout`` is required for CUSTOM formats and ignored otherwise.
    """
    pattern: str
    format: TimestampFormat
    layout: str | None = None
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.format, TimestampFormat):
            raise ConfigurationError(
                f"FormatSpec format must be a TimestampFormat, got {self.format!r}",
                config_key="format",
            )
        if self.format is TimestampFormat.CUSTOM and not self.layout:
            raise ConfigurationError(
                "CUSTOM timestamp format requires a strptime layout",
                config_key="format",
            )

    @property
    def name(self) -> str:
        """Short label used in logs and diagnostics."""
        if self.format is TimestampFormat.CUSTOM:
            return f"custom:{self.layout}"
        return self.format.value

    @classmethod
    def from_config(cls, pattern: str, label: str, description: str = "") -> "FormatSpec":
        """Build a spec from configuration strings."""
        fmt, layout = TimestampFormat.from_label(label)
        return cls(
            pattern=pattern.strip(),
            format=fmt,
            layout=layout,
            description=description,
        )


@dataclass(frozen=True)
class Location:
    """One physical origin of a data source."""
    path: str


@dataclass(frozen=True)
class SourceDescriptor:
    """
    A named data source as described by the data-source collaborator.

    Read-only input: the resolver never mutates descriptors.
    """
    name: str
    kind: str = "log"
    locations: tuple[Location, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "locations", tuple(
            loc if isinstance(loc, Location) else Location(path=str(loc))
            for loc in self.locations
        ))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SourceDescriptor":
        """
        Create a descriptor from an already-parsed mapping.

        Accepts ``type`` as an alias for ``kind`` and locations given either
        as ``{"path": ...}`` mappings or bare strings.
        """
        name = data.get("name")
        if not name:
            raise ConfigurationError("Data source is missing a name", config_key="name")

        locations = []
        for loc in data.get("locations") or []:
            if isinstance(loc, Mapping):
                path = loc.get("path")
            else:
                path = loc
            if not path:
                raise ConfigurationError(
                    f"Data source {name!r} has a location without a path",
                    config_key="locations",
                )
            locations.append(Location(path=str(path)))

        return cls(
            name=str(name),
            kind=str(data.get("kind") or data.get("type") or "log"),
            locations=tuple(locations),
        )

    @classmethod
    def for_path(cls, path: str, name: str | None = None) -> "SourceDescriptor":
        """Convenience descriptor for a single file."""
        return cls(name=name or str(path), locations=(Location(path=str(path)),))


class FailurePolicy(Enum):
    """
    What the resolver does when one source fails to open or detect.

    CONTINUE drops the failing source and keeps resolving the rest.
    ABORT closes every source opened so far and raises the failure.
    """
    CONTINUE = "continue"
    ABORT = "abort"

    @classmethod
    def from_string(cls, value: "str | FailurePolicy") -> "FailurePolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown failure policy: {value!r} (expected 'continue' or 'abort')",
                config_key="policy",
            ) from None


def _current_year() -> int:
    return datetime.now(timezone.utc).year


@dataclass(frozen=True)
class Options:
    """
    Resolution options.

    Attributes:
        custom_pattern: Caller regex override; when set (or custom_format is
            set) only that pair is tried
        custom_format: Caller format label for the override
        fallback_specs: Ordered specs tried after the structural sniff;
            empty means the built-in catalog
        max_trial_lines: Lines tried per candidate before it fails
        window: Lateness window in nanoseconds
        failure_policy: Per-source failure handling
        sample_size: Bytes sampled from the start of each source
        reference_year: Year assumed by layouts that omit it
    """
    custom_pattern: str = ""
    custom_format: str = ""
    fallback_specs: tuple[FormatSpec, ...] = ()
    max_trial_lines: int = DEFAULT_MAX_TRIAL_LINES
    window: int = 0
    failure_policy: FailurePolicy = FailurePolicy.CONTINUE
    sample_size: int = DEFAULT_SAMPLE_SIZE
    reference_year: int = field(default_factory=_current_year)

    def __post_init__(self):
        object.__setattr__(self, "fallback_specs", tuple(self.fallback_specs))
        object.__setattr__(
            self, "failure_policy", FailurePolicy.from_string(self.failure_policy)
        )

        if isinstance(self.window, bool) or not isinstance(self.window, int) or self.window < 0:
            raise ConfigurationError(
                f"window must be a non-negative number of nanoseconds, got {self.window!r}",
                config_key="window",
            )
        if self.max_trial_lines < 1:
            raise ConfigurationError(
                f"max_trial_lines must be at least 1, got {self.max_trial_lines}",
                config_key="max_trial_lines",
            )
        if self.sample_size < 1:
            raise ConfigurationError(
                f"sample_size must be at least 1, got {self.sample_size}",
                config_key="sample_size",
            )
        if not 1 <= self.reference_year <= 9999:
            raise ConfigurationError(
                f"reference_year out of range: {self.reference_year}",
                config_key="reference_year",
            )
        for spec in self.fallback_specs:
            if not isinstance(spec, FormatSpec):
                raise ConfigurationError(
                    f"fallback_specs entries must be FormatSpec, got {type(spec).__name__}",
                    config_key="timestamps",
                )
        if self.custom_format:
            # Fail on unknown labels before any source is touched
            TimestampFormat.from_label(self.custom_format)

    @property
    def has_custom(self) -> bool:
        return bool(self.custom_pattern or self.custom_format)
