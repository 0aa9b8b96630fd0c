"""
Timestamp format detection engine.

Detection runs an ordered list of candidate strategies over the first
lines of a byte sample and binds the first one that both matches and
parses. The order is:

1. The caller's custom pattern/format pair, when set (and nothing else)
2. Structural sniffing (JSON timestamp fields, leading RFC 3339 prefix)
3. The caller's fallback specs, or the built-in catalog when none are set
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from logresolve.core.exceptions import (
    ConfigurationError,
    DetectionFailed,
    TimestampParseError,
)
from logresolve.core.models import FormatSpec, Options, TimestampFormat
from logresolve.core.security import compile_timestamp_pattern
from logresolve.detection.catalog import BUILTIN_CATALOG, FormatCatalog
from logresolve.detection.formats import TimestampParser, get_timestamp_parser
from logresolve.detection.sniff import RFC3339_PREFIX_SPEC, JsonFieldCandidate
from logresolve.domain.entities import Detection
from logresolve.domain.services import TimestampCandidate

__all__ = [
    "Detection",
    "TimestampExtractor",
    "PatternCandidate",
    "TimestampDetector",
    "first_success",
    "sample_lines",
    "try_format",
    "detect",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimestampExtractor:
    """
    Regex-plus-parser extraction function.

    The first capture group of ``regex`` isolates the timestamp bytes,
    which are then handed to ``parser``.
    """
    regex: re.Pattern
    parser: TimestampParser
    format: TimestampFormat
    name: str

    def __call__(self, line: bytes) -> int:
        match = self.regex.search(line)
        if match is None:
            raise TimestampParseError("No timestamp match", value=line[:100], format_name=self.name)
        value = match.group(1)
        if value is None:
            raise TimestampParseError("Timestamp group did not participate", value=line[:100], format_name=self.name)
        return self.parser(value)


def _build_parser(spec: FormatSpec, reference_year: int | None) -> TimestampParser:
    try:
        return get_timestamp_parser(spec.format, layout=spec.layout, reference_year=reference_year)
    except ValueError as e:
        raise ConfigurationError(str(e), config_key="format") from e


class PatternCandidate(TimestampCandidate):
    """Candidate that tries one FormatSpec line by line."""

    def __init__(self, spec: FormatSpec, reference_year: int | None = None, strategy: str = "pattern"):
        self.spec = spec
        self._strategy = strategy
        self.extractor = TimestampExtractor(
            regex=compile_timestamp_pattern(spec.pattern),
            parser=_build_parser(spec, reference_year),
            format=spec.format,
            name=spec.name,
        )

    @property
    def name(self) -> str:
        return f"{self._strategy}:{self.spec.name}"

    def attempt(self, lines: Sequence[bytes]) -> Detection:
        last_error: Exception | None = None
        for index, line in enumerate(lines):
            try:
                timestamp = self.extractor(line)
            except TimestampParseError as e:
                last_error = e
                continue
            return Detection(
                extractor=self.extractor,
                first_timestamp=timestamp,
                format=self.spec.format,
                pattern=self.spec.pattern,
                strategy=self._strategy,
                line_index=index,
            )

        raise DetectionFailed(
            f"Pattern {self.spec.pattern!r} did not yield a {self.spec.name} timestamp",
            last_error=last_error,
            attempts=[self.name],
        )


def first_success(candidates: Iterable[TimestampCandidate], lines: Sequence[bytes]) -> Detection:
    """
    Return the Detection of the first candidate that succeeds.

    Raises:
        DetectionFailed: If every candidate failed, chained to the last
            underlying error
    """
    attempts: list[str] = []
    last_error: Exception | None = None

    for candidate in candidates:
        attempts.append(candidate.name)
        try:
            detection = candidate.attempt(lines)
        except DetectionFailed as e:
            last_error = e.last_error or e
            logger.debug("Candidate %s failed: %s", candidate.name, last_error)
            continue
        logger.debug("Candidate %s matched at sample line %d", candidate.name, detection.line_index)
        return detection

    if not lines:
        message = "Sample is empty; no timestamp format could be detected"
    else:
        message = f"No timestamp format matched within {len(lines)} sample lines"
    raise DetectionFailed(message, last_error=last_error, attempts=attempts) from last_error


def sample_lines(sample: bytes, max_tries: int) -> list[bytes]:
    """
    Split a sample into at most ``max_tries`` lines.

    A trailing partial line is kept; line endings are removed.
    """
    if not sample:
        return []
    lines = sample.split(b"\n")
    if lines[-1] == b"":
        lines.pop()
    return [line[:-1] if line.endswith(b"\r") else line for line in lines[:max_tries]]


def try_format(
    pattern: str,
    fmt: TimestampFormat,
    sample: bytes,
    max_tries: int,
    layout: str | None = None,
    reference_year: int | None = None,
) -> Detection:
    """
    Try one pattern/format pair against a sample.

    Args:
        pattern: Regex whose first capture group isolates the timestamp
        fmt: Format tag for the captured text
        sample: Raw bytes from the start of a source
        max_tries: Maximum number of lines to try
        layout: strptime layout for CUSTOM
        reference_year: Year for layouts without one

    Returns:
        Detection bound to the first line that matched and parsed

    Raises:
        CompileError: If the pattern is invalid or has no capture group
        DetectionFailed: If no line within the budget matched and parsed
    """
    spec = FormatSpec(pattern=pattern, format=fmt, layout=layout)
    candidate = PatternCandidate(spec, reference_year=reference_year, strategy="try")
    lines = sample_lines(sample, max_tries)
    try:
        return candidate.attempt(lines)
    except DetectionFailed as e:
        raise DetectionFailed(
            f"No line within {len(lines)} tries matched {spec.name}",
            last_error=e.last_error,
            attempts=e.attempts,
        ) from e.last_error


class TimestampDetector:
    """
    Detect the timestamp format of byte samples.

    All candidates are compiled once at construction, so a bad custom
    regex raises CompileError before any source is opened. The detector
    holds no mutable state and can be shared across threads.

    Usage:
        detector = TimestampDetector(Options())
        detection = detector.detect(sample)
    """

    def __init__(self, options: Options | None = None, catalog: FormatCatalog = BUILTIN_CATALOG):
        """
        Args:
            options: Resolution options (custom override, fallback specs,
                trial budget, reference year)
            catalog: Catalog used when options carry no fallback specs

        Raises:
            CompileError: If a custom or fallback pattern is invalid
            ConfigurationError: If the custom override is incomplete
        """
        self.options = options or Options()
        self.catalog = catalog
        self.candidates: tuple[TimestampCandidate, ...] = tuple(self._build_candidates())

    def _custom_spec(self) -> FormatSpec:
        opts = self.options
        if opts.custom_format:
            fmt, layout = TimestampFormat.from_label(opts.custom_format)
        else:
            fmt, layout = TimestampFormat.AUTO, None

        pattern = opts.custom_pattern.strip()
        if not pattern:
            if fmt in (TimestampFormat.CUSTOM, TimestampFormat.AUTO):
                raise ConfigurationError(
                    "A custom timestamp layout needs a regex to locate the timestamp",
                    config_key="regex",
                )
            specs = self.catalog.specs_for(fmt)
            if not specs:
                raise ConfigurationError(
                    f"No built-in pattern for format {fmt.value!r}; supply a regex",
                    config_key="regex",
                )
            pattern = specs[0].pattern

        return FormatSpec(pattern=pattern, format=fmt, layout=layout, description="custom override")

    def _build_candidates(self) -> list[TimestampCandidate]:
        year = self.options.reference_year

        if self.options.has_custom:
            return [PatternCandidate(self._custom_spec(), reference_year=year, strategy="custom")]

        candidates: list[TimestampCandidate] = [
            JsonFieldCandidate(),
            PatternCandidate(RFC3339_PREFIX_SPEC, strategy="sniff"),
        ]

        if self.options.fallback_specs:
            specs, strategy = self.options.fallback_specs, "fallback"
        else:
            specs, strategy = self.catalog, "catalog"
        candidates.extend(PatternCandidate(spec, reference_year=year, strategy=strategy) for spec in specs)
        return candidates

    def detect(self, sample: bytes) -> Detection:
        """
        Detect the timestamp format of a sample.

        Raises:
            DetectionFailed: If no candidate matched within the trial budget
        """
        lines = sample_lines(sample, self.options.max_trial_lines)
        return first_success(self.candidates, lines)


def detect(sample: bytes, options: Options | None = None, catalog: FormatCatalog = BUILTIN_CATALOG) -> Detection:
    """
    Detect the timestamp format of a sample.

    Convenience wrapper that builds a TimestampDetector for one call.

    Raises:
        CompileError: If a custom or fallback pattern is invalid
        ConfigurationError: If the custom override is incomplete
        DetectionFailed: If no candidate matched
    """
    return TimestampDetector(options, catalog).detect(sample)
