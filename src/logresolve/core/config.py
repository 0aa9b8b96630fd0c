"""
Configuration helpers for logresolve.

The resolver accepts already-parsed configuration values: a mapping that a
YAML or JSON loader produced. These helpers turn such mappings into typed
Options and SourceDescriptor values, reporting bad keys as
ConfigurationError.

Example mapping:

    {
        "timestamps": [
            {"format": "epochany", "pattern": '"time":(\\d{16,19})'},
            {"format": "rfc3339", "pattern": "^(\\S+Z)"},
        ],
        "window": "2s",
        "skip": 50,
        "policy": "continue",
    }
"""

import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from logresolve.core.exceptions import ConfigurationError, UnknownFormatError
from logresolve.core.models import (
    DEFAULT_MAX_TRIAL_LINES,
    DEFAULT_SAMPLE_SIZE,
    FailurePolicy,
    FormatSpec,
    Options,
    SourceDescriptor,
)

__all__ = [
    "parse_duration",
    "specs_from_config",
    "options_from_mapping",
    "descriptors_from_mapping",
]


_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: Any, config_key: str = "window") -> int:
    """
    Convert a duration value to nanoseconds.

    Accepts:
        - int: already nanoseconds
        - float: seconds
        - timedelta
        - str: unit-suffixed components such as "2s", "250ms", "1m30s",
          "1.5h", "100us", "10ns", or "0"

    Raises:
        ConfigurationError: If the value is malformed or negative
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}", config_key=config_key)

    if isinstance(value, int):
        nanos = value
    elif isinstance(value, float):
        nanos = int(Decimal(str(value)) * _UNIT_NANOS["s"])
    elif isinstance(value, timedelta):
        nanos = (value.days * 86400 + value.seconds) * _UNIT_NANOS["s"] + value.microseconds * 1_000
    elif isinstance(value, str):
        nanos = _parse_duration_string(value.strip(), config_key)
    else:
        raise ConfigurationError(f"Invalid duration: {value!r}", config_key=config_key)

    if nanos < 0:
        raise ConfigurationError(f"Duration must not be negative: {value!r}", config_key=config_key)
    return nanos


def _parse_duration_string(text: str, config_key: str) -> int:
    if text in ("0", "+0"):
        return 0

    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    pos = 0
    total = Decimal(0)
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        try:
            total += Decimal(match.group(1)) * _UNIT_NANOS[match.group(2)]
        except InvalidOperation:
            break
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ConfigurationError(f"Invalid duration: {text!r}", config_key=config_key)

    return sign * int(total)


def specs_from_config(entries: Any) -> tuple[FormatSpec, ...]:
    """
    Build an ordered fallback list from ``[{"pattern": ..., "format": ...}]``.

    Order is preserved: it is detection priority.
    """
    if entries is None:
        return ()
    if not isinstance(entries, (list, tuple)):
        raise ConfigurationError("timestamps must be a list", config_key="timestamps")

    specs = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise ConfigurationError(
                f"timestamps[{i}] must be a mapping with pattern and format",
                config_key="timestamps",
            )
        pattern = entry.get("pattern")
        label = entry.get("format")
        if not pattern or not label:
            raise ConfigurationError(
                f"timestamps[{i}] needs both pattern and format",
                config_key="timestamps",
            )
        try:
            specs.append(FormatSpec.from_config(str(pattern), str(label)))
        except UnknownFormatError as e:
            raise UnknownFormatError(e.label, config_key=f"timestamps[{i}].format") from None
    return tuple(specs)


def _int_value(data: Mapping[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", config_key=key)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", config_key=key) from None


def options_from_mapping(data: Mapping[str, Any] | None, **overrides: Any) -> Options:
    """
    Build Options from an already-parsed configuration mapping.

    Keyword overrides win over mapping values (e.g. command line flags
    over the configuration file).

    Args:
        data: Parsed configuration (may be None or empty)
        **overrides: Options field values applied last

    Returns:
        Validated Options
    """
    data = data or {}
    if not isinstance(data, Mapping):
        raise ConfigurationError("configuration must be a mapping")

    fields: dict[str, Any] = {
        "fallback_specs": specs_from_config(data.get("timestamps")),
        "custom_pattern": str(data.get("regex") or ""),
        "custom_format": str(data.get("format") or ""),
        "failure_policy": FailurePolicy.from_string(data.get("policy", FailurePolicy.CONTINUE)),
        "sample_size": _int_value(data, "sample_size", DEFAULT_SAMPLE_SIZE),
    }

    skip_key = "max_trial_lines" if "max_trial_lines" in data else "skip"
    fields["max_trial_lines"] = _int_value(data, skip_key, DEFAULT_MAX_TRIAL_LINES)

    if data.get("window") is not None:
        fields["window"] = parse_duration(data["window"])
    if data.get("reference_year") is not None:
        fields["reference_year"] = _int_value(data, "reference_year", 0)

    for key, value in overrides.items():
        if value is None:
            continue
        if key == "window":
            value = parse_duration(value)
        fields[key] = value

    try:
        return Options(**fields)
    except TypeError as e:
        raise ConfigurationError(f"Unknown option: {e}") from e


def descriptors_from_mapping(data: Mapping[str, Any]) -> list[SourceDescriptor]:
    """
    Build source descriptors from ``{"sources": [{name, type, locations}]}``.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError("data sources must be a mapping", config_key="sources")

    sources = data.get("sources")
    if not isinstance(sources, (list, tuple)):
        raise ConfigurationError("data sources need a 'sources' list", config_key="sources")

    return [SourceDescriptor.from_dict(item) for item in sources]
