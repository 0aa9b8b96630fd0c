"""
Custom exceptions for logresolve.

Every per-source error carries the source name so an operator can tell
"I mistyped a path" apart from "no known timestamp format matched".
"""

__all__ = [
    "LogResolveError",
    "CompileError",
    "OpenError",
    "DetectionFailed",
    "ReadError",
    "ConfigurationError",
    "UnknownFormatError",
    "TimestampParseError",
]


class LogResolveError(Exception):
    """Base exception for all logresolve errors."""

    kind: str = "error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class CompileError(LogResolveError):
    """Raised when a timestamp pattern cannot be compiled."""

    kind = "compile"

    def __init__(self, message: str, pattern: str | None = None):
        details = {}
        if pattern is not None:
            details["pattern"] = pattern[:100] + "..." if len(pattern) > 100 else pattern
        super().__init__(message, details)
        self.pattern = pattern


class OpenError(LogResolveError):
    """Raised when a source is missing, unreadable, or corrupt at open time."""

    kind = "open"

    def __init__(
        self,
        message: str,
        path: str | None = None,
        source_name: str | None = None,
    ):
        details = {}
        if source_name is not None:
            details["source"] = source_name
        if path is not None:
            details["path"] = path
        super().__init__(message, details)
        self.path = path
        self.source_name = source_name


class DetectionFailed(LogResolveError):
    """
    Raised when no candidate format matched within the sample/trial budget.

    Attributes:
        last_error: The last underlying parse or match error, if any
        attempts: Names of the candidates that were tried, in order
    """

    kind = "detection"

    def __init__(
        self,
        message: str,
        source_name: str | None = None,
        last_error: Exception | None = None,
        attempts: list[str] | None = None,
    ):
        details = {}
        if source_name is not None:
            details["source"] = source_name
        if attempts:
            details["attempts"] = len(attempts)
        if last_error is not None:
            details["last_error"] = str(last_error)
        super().__init__(message, details)
        self.source_name = source_name
        self.last_error = last_error
        self.attempts = attempts or []


class ReadError(LogResolveError):
    """Raised on an I/O or decompression failure after streaming began."""

    kind = "read"

    def __init__(
        self,
        message: str,
        source_name: str | None = None,
        line_number: int | None = None,
    ):
        details = {}
        if source_name is not None:
            details["source"] = source_name
        if line_number is not None:
            details["line_number"] = line_number
        super().__init__(message, details)
        self.source_name = source_name
        self.line_number = line_number


class ConfigurationError(LogResolveError):
    """Raised when configuration is invalid."""

    kind = "config"

    def __init__(self, message: str, config_key: str | None = None):
        details = {}
        if config_key is not None:
            details["config_key"] = config_key
        super().__init__(message, details)
        self.config_key = config_key


class UnknownFormatError(ConfigurationError):
    """Raised when a timestamp format label is not recognized."""

    def __init__(self, label: str, config_key: str | None = "format"):
        super().__init__(f"Unrecognized timestamp format: {label!r}", config_key)
        self.details["label"] = label
        self.label = label


class TimestampParseError(LogResolveError):
    """Raised when a captured value does not parse under a timestamp format."""

    kind = "parse"

    def __init__(self, message: str, value: bytes | str | None = None, format_name: str | None = None):
        details = {}
        if value is not None:
            text = value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value
            details["value"] = text[:100] + "..." if len(text) > 100 else text
        if format_name is not None:
            details["format"] = format_name
        super().__init__(message, details)
        self.value = value
        self.format_name = format_name
