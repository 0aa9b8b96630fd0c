"""
Tests for source adapters.
"""

import gzip
import io
import os
import warnings

import pytest

from conftest import pipe
from logresolve.core.exceptions import OpenError
from logresolve.infrastructure.sources import (
    OpenedSource,
    ReplayReader,
    SourceCloser,
    open_bytes,
    open_source,
    open_stdin,
    read_sample,
)


class TestOpenSource:
    """Tests for open_source."""

    def test_plain_file_reports_exact_size(self, w3c_log):
        with open_source(w3c_log) as opened:
            assert opened.size == os.path.getsize(w3c_log)
            assert opened.size_known
            assert not opened.compressed
            assert opened.reader.read().startswith(b"2025-01-02 03:04:05")

    def test_gzip_is_transparent(self, gzip_log, w3c_lines):
        with open_source(gzip_log) as opened:
            assert opened.size == -1
            assert not opened.size_known
            assert opened.compressed
            assert opened.reader.read().decode() == "\n".join(w3c_lines) + "\n"

    def test_name_defaults_to_path(self, w3c_log):
        with open_source(w3c_log) as opened:
            assert opened.name == str(w3c_log)

    def test_missing_file(self, tmp_path):
        path = tmp_path / "missing.log"
        with pytest.raises(OpenError) as exc_info:
            open_source(path, name="my-app")
        assert exc_info.value.path == str(path)
        assert exc_info.value.source_name == "my-app"
        assert exc_info.value.kind == "open"

    def test_directory(self, tmp_path):
        with pytest.raises(OpenError):
            open_source(tmp_path)

    def test_nul_byte_in_path(self):
        with pytest.raises(OpenError, match="Invalid source path") as exc_info:
            open_source("bad\x00path", name="bad")
        assert exc_info.value.kind == "open"
        assert exc_info.value.source_name == "bad"

    def test_corrupt_gzip_header(self, tmp_path):
        path = tmp_path / "bad.gz"
        path.write_bytes(b"\x1f\x8bnot really gzip at all")
        with pytest.raises(OpenError, match="gzip"):
            open_source(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.log"
        path.write_bytes(b"")
        with open_source(path) as opened:
            assert opened.size == 0
            assert opened.reader.read() == b""

    def test_symlink_warns(self, w3c_log, tmp_path):
        link = tmp_path / "link.log"
        link.symlink_to(w3c_log)

        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            with open_source(link):
                pass

            assert len(w) == 1
            assert "symlink" in str(w[0].message).lower()

    def test_metadata(self, gzip_log):
        with open_source(gzip_log, name="app") as opened:
            meta = opened.metadata()
        assert meta["name"] == "app"
        assert meta["size_bytes"] == "-1"
        assert meta["compressed"] == "true"


class TestStreamSources:
    """Tests for stdin and in-memory sources."""

    def test_stdin_size_unknown(self):
        with open_stdin(pipe(b"2025-01-02 03:04:05 x\n")) as opened:
            assert opened.size == -1
            assert opened.path == "<stdin>"
            assert opened.reader.read() == b"2025-01-02 03:04:05 x\n"

    def test_stdin_not_closed(self):
        stream = pipe(b"hello\n")
        opened = open_stdin(stream)
        opened.close()
        assert not stream.closed

    def test_stdin_uses_buffer_of_text_stream(self):
        text = io.TextIOWrapper(io.BytesIO(b"hello\n"))
        with open_stdin(text) as opened:
            assert opened.reader.read() == b"hello\n"

    def test_stdin_gzip(self):
        with open_stdin(pipe(gzip.compress(b"hello\nworld\n"))) as opened:
            assert opened.compressed
            assert opened.reader.read() == b"hello\nworld\n"

    def test_bytes_plain(self):
        with open_bytes(b"hello\n", name="mem") as opened:
            assert opened.size == 6
            assert opened.name == "mem"

    def test_bytes_gzip(self):
        with open_bytes(gzip.compress(b"hello\n")) as opened:
            assert opened.size == -1
            assert opened.reader.read() == b"hello\n"


class TestReadSample:
    """Sampling never consumes the source."""

    def test_seekable_rewinds(self, w3c_log):
        with open_source(w3c_log) as opened:
            sample, reader = read_sample(opened.reader, 10)
            assert sample == b"2025-01-02"
            assert reader is opened.reader
            assert reader.read() == w3c_log.read_bytes()

    def test_gzip_file_rewinds(self, gzip_log, w3c_lines):
        with open_source(gzip_log) as opened:
            sample, reader = read_sample(opened.reader, 10)
            assert sample == b"2025-01-02"
            assert reader.read().decode() == "\n".join(w3c_lines) + "\n"

    def test_pipe_replays(self):
        data = b"line one\nline two\nline three\n"
        with open_stdin(pipe(data)) as opened:
            sample, reader = read_sample(opened.reader, 12)
            assert sample == b"line one\nlin"
            assert isinstance(reader, ReplayReader)
            assert reader.read() == data

    def test_piped_gzip_replays(self):
        data = b"alpha\nbeta\n"
        with open_stdin(pipe(gzip.compress(data))) as opened:
            sample, reader = read_sample(opened.reader, 4)
            assert sample == b"alph"
            assert reader.read() == data

    def test_sample_larger_than_source(self):
        with open_bytes(b"short\n") as opened:
            sample, reader = read_sample(opened.reader, 1024)
            assert sample == b"short\n"
            assert reader.read() == b"short\n"

    def test_corrupt_gzip_body(self):
        payload = gzip.compress(os.urandom(4096))
        truncated = payload[: len(payload) // 2]
        with pytest.raises(OpenError):
            with open_bytes(truncated, name="broken") as opened:
                read_sample(opened.reader, 16 * 1024, source_name="broken")


class TestReplayReader:
    """Tests for ReplayReader."""

    def test_readline_across_prefix_boundary(self):
        reader = ReplayReader(b"first\nsec", io.BytesIO(b"ond\nthird\n"))
        assert reader.readline() == b"first\n"
        assert reader.readline() == b"second\n"
        assert reader.readline() == b"third\n"
        assert reader.readline() == b""

    def test_readline_limit(self):
        reader = ReplayReader(b"abcdef\n", io.BytesIO(b""))
        assert reader.readline(3) == b"abc"
        assert reader.readline() == b"def\n"

    def test_read_sized(self):
        reader = ReplayReader(b"abc", io.BytesIO(b"def"))
        assert reader.read(2) == b"ab"
        assert reader.read(3) == b"cde"
        assert reader.read() == b"f"

    def test_not_seekable(self):
        assert not ReplayReader(b"", io.BytesIO()).seekable()


class TestSourceCloser:
    """Tests for SourceCloser."""

    def test_idempotent(self):
        stream = io.BytesIO(b"x")
        closer = SourceCloser(stream)
        closer()
        closer()
        assert closer.closed
        assert stream.closed

    def test_closes_all_in_order(self):
        order = []

        class Closeable:
            def __init__(self, name):
                self.name = name

            def close(self):
                order.append(self.name)

        SourceCloser(Closeable("gzip"), None, Closeable("file"))()
        assert order == ["gzip", "file"]

    def test_opened_source_close_is_idempotent(self):
        stream = io.BytesIO(b"x")
        opened = OpenedSource(name="x", path="x", reader=stream, size=1, closer=SourceCloser(stream))
        opened.close()
        opened.close()
        assert stream.closed
