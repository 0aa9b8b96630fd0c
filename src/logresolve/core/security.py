"""
Security limits and validators for logresolve.

Centralizes the bounds applied to user-supplied patterns and to the
records read from untrusted sources.
"""

import re
import warnings
from pathlib import Path

from logresolve.core.exceptions import CompileError

__all__ = [
    "MAX_LINE_LENGTH",
    "MAX_PATTERN_LENGTH",
    "compile_timestamp_pattern",
    "check_symlink",
]


# Longest single record accepted from a source (10MB)
MAX_LINE_LENGTH = 10 * 1024 * 1024

# Longest timestamp regex accepted from configuration
MAX_PATTERN_LENGTH = 1000

# A group that ends in an unbounded quantifier and is itself quantified,
# e.g. (a+)+ or (\d*)*. Heuristic, not comprehensive.
_NESTED_QUANTIFIER = re.compile(r"\((?:[^()\\]|\\.)*[+*]\)[+*{]")


def compile_timestamp_pattern(pattern: str, max_length: int = MAX_PATTERN_LENGTH) -> re.Pattern:
    """
    Validate and compile a timestamp extraction pattern.

    Patterns are compiled as bytes regexes since detection and extraction
    run on raw line bytes.

    Checks for:
    - Pattern length limits
    - Known problematic patterns (basic ReDoS detection)
    - Valid regex syntax
    - At least one capture group

    Args:
        pattern: Regex pattern string
        max_length: Maximum pattern length

    Returns:
        Compiled bytes regex pattern

    Raises:
        CompileError: If pattern is invalid or potentially dangerous
    """
    if not isinstance(pattern, str) or not pattern.strip():
        raise CompileError("Timestamp pattern is empty", pattern=str(pattern))

    pattern = pattern.strip()

    if len(pattern) > max_length:
        raise CompileError(
            f"Timestamp pattern too long ({len(pattern)} > {max_length})",
            pattern=pattern,
        )

    if _NESTED_QUANTIFIER.search(pattern):
        raise CompileError(
            "Timestamp pattern contains nested quantifiers. Please simplify the pattern.",
            pattern=pattern,
        )

    try:
        compiled = re.compile(pattern.encode("utf-8"))
    except re.error as e:
        raise CompileError(f"Invalid timestamp pattern: {e}", pattern=pattern) from e

    if compiled.groups < 1:
        raise CompileError(
            "Timestamp pattern must have a capture group around the timestamp",
            pattern=pattern,
        )

    return compiled


def check_symlink(path: Path | str, warn: bool = True) -> tuple[bool, Path]:
    """
    Check if a path is a symlink and optionally warn.

    Args:
        path: Path to check
        warn: If True, emit a warning when symlink is detected

    Returns:
        Tuple of (is_symlink, resolved_path)
    """
    path = Path(path)
    is_symlink = path.is_symlink()

    if is_symlink and warn:
        resolved = path.resolve()
        warnings.warn(
            f"Following symlink: {path} -> {resolved}",
            UserWarning,
            stacklevel=2,
        )

    return is_symlink, path.resolve()
