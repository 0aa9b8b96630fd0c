"""
Pytest fixtures for logresolve tests.
"""

import gzip
import io

import pytest

from logresolve.core.models import Options


# 2025-01-02T03:04:05Z in nanoseconds since the epoch
T0 = 1_735_787_045_000_000_000
SECOND = 1_000_000_000


class PipeStream(io.RawIOBase):
    """Non-seekable raw stream standing in for a pipe."""

    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readinto(self, b) -> int:
        chunk = self._buf.read(len(b))
        b[:len(chunk)] = chunk
        return len(chunk)


def pipe(data: bytes) -> io.BufferedReader:
    """Buffered, non-seekable reader over ``data``."""
    return io.BufferedReader(PipeStream(data))


@pytest.fixture
def options() -> Options:
    """Default options with a fixed reference year."""
    return Options(reference_year=2025)


# Sample log content for each kind of source

@pytest.fixture
def w3c_lines() -> list[str]:
    """W3C-style lines, one second apart."""
    return [
        "2025-01-02 03:04:05 INFO service started",
        "2025-01-02 03:04:06 DEBUG loading config",
        "2025-01-02 03:04:07 WARN cache cold",
    ]


@pytest.fixture
def w3c_log(tmp_path, w3c_lines):
    """Plain W3C log file."""
    path = tmp_path / "app.log"
    path.write_text("\n".join(w3c_lines) + "\n")
    return path


@pytest.fixture
def gzip_log(tmp_path, w3c_lines):
    """Gzip-compressed W3C log file."""
    path = tmp_path / "app.log.gz"
    path.write_bytes(gzip.compress(("\n".join(w3c_lines) + "\n").encode()))
    return path


@pytest.fixture
def json_lines() -> list[str]:
    """JSON lines with nanosecond epoch time fields."""
    return [
        '{"time":1735787045123456789,"level":"info","msg":"started"}',
        '{"time":1735787046000000000,"level":"info","msg":"ready"}',
    ]


@pytest.fixture
def kubectl_lines() -> list[str]:
    """kubectl logs --timestamps output."""
    return [
        "2025-01-02T03:04:05.123456789Z I0102 03:04:05.123456       1 main.go:42] starting",
        "2025-01-02T03:04:06.000000001Z I0102 03:04:06.000000       1 main.go:43] listening",
    ]


@pytest.fixture
def unstamped_log(tmp_path):
    """File with no recognizable timestamps."""
    path = tmp_path / "plain.txt"
    path.write_text("hello\nworld\nno timestamps here\n")
    return path
