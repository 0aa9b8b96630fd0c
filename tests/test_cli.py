"""
Tests for CLI interface.
"""

import pytest
from click.testing import CliRunner

from logresolve.cli.main import cli


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


class TestCLI:
    """Tests for top-level CLI behavior."""

    def test_cli_version(self, runner):
        """Test --version flag."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_cli_help(self, runner):
        """Test --help flag."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "logresolve" in result.output
        assert "detect" in result.output
        assert "cat" in result.output

    def test_detect_help(self, runner):
        result = runner.invoke(cli, ["detect", "--help"])
        assert result.exit_code == 0
        assert "--window" in result.output
        assert "--policy" in result.output

    def test_formats_command(self, runner):
        """Test formats command."""
        result = runner.invoke(cli, ["formats"])
        assert result.exit_code == 0
        assert "epochany" in result.output
        assert "rfc3339" in result.output


class TestDetectCommand:
    """Tests for detect command."""

    def test_detect_file(self, runner, w3c_log):
        result = runner.invoke(cli, ["detect", str(w3c_log)])
        assert result.exit_code == 0
        assert "Resolved 1 of 1 sources" in result.output

    def test_detect_gzip_and_plain(self, runner, w3c_log, gzip_log):
        result = runner.invoke(cli, ["detect", "-j", "2", str(w3c_log), str(gzip_log)])
        assert result.exit_code == 0
        assert "Resolved 2 of 2 sources" in result.output

    def test_detect_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["detect", str(tmp_path / "nope.log")])
        assert result.exit_code == 1
        assert "open" in result.output
        assert "Resolved 0 of 1 sources" in result.output

    def test_detect_partial_failure(self, runner, w3c_log, unstamped_log):
        """One undetectable source does not fail the run under continue."""
        result = runner.invoke(cli, ["detect", str(w3c_log), str(unstamped_log)])
        assert result.exit_code == 0
        assert "detection" in result.output
        assert "Resolved 1 of 2 sources" in result.output

    def test_detect_abort_policy(self, runner, w3c_log, unstamped_log):
        result = runner.invoke(cli, ["detect", "--policy", "abort", str(w3c_log), str(unstamped_log)])
        assert result.exit_code == 1
        assert "Error (detection)" in result.output

    def test_detect_stdin(self, runner):
        result = runner.invoke(cli, ["detect"], input="2025-01-02 03:04:05 hello\n")
        assert result.exit_code == 0
        assert "Resolved 1 of 1 sources" in result.output

    def test_detect_quiet(self, runner, w3c_log):
        result = runner.invoke(cli, ["--quiet", "detect", str(w3c_log)])
        assert result.exit_code == 0
        assert "Resolved" not in result.output

    def test_bad_regex(self, runner, w3c_log):
        result = runner.invoke(cli, ["detect", "-x", "(bad", str(w3c_log)])
        assert result.exit_code == 1
        assert "compile" in result.output

    def test_bad_window(self, runner, w3c_log):
        result = runner.invoke(cli, ["detect", "--window", "soon", str(w3c_log)])
        assert result.exit_code == 2
        assert "Configuration error" in result.output

    def test_unknown_format_label(self, runner, w3c_log):
        result = runner.invoke(cli, ["detect", "-t", "yesterday", str(w3c_log)])
        assert result.exit_code == 2


class TestCatCommand:
    """Tests for cat command."""

    def test_cat_file(self, runner, w3c_log):
        result = runner.invoke(cli, ["--quiet", "cat", str(w3c_log)])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines == [
            "2025-01-02T03:04:05Z\t2025-01-02 03:04:05 INFO service started",
            "2025-01-02T03:04:06Z\t2025-01-02 03:04:06 DEBUG loading config",
            "2025-01-02T03:04:07Z\t2025-01-02 03:04:07 WARN cache cold",
        ]

    def test_cat_stats(self, runner, w3c_log):
        result = runner.invoke(cli, ["cat", str(w3c_log)])
        assert result.exit_code == 0
        assert "3 records" in result.output

    def test_cat_ordered(self, runner, tmp_path):
        path = tmp_path / "jitter.log"
        path.write_text(
            "2025-01-02 03:04:06 second\n"
            "2025-01-02 03:04:05 first\n"
            "2025-01-02 03:04:07 third\n"
        )
        result = runner.invoke(cli, ["--quiet", "cat", "--ordered", "--window", "2s", str(path)])
        assert result.exit_code == 0
        assert [line.split("\t")[1] for line in result.output.splitlines()] == [
            "2025-01-02 03:04:05 first",
            "2025-01-02 03:04:06 second",
            "2025-01-02 03:04:07 third",
        ]

    def test_cat_stdin(self, runner):
        result = runner.invoke(cli, ["--quiet", "cat", "-"], input="2025-01-02 03:04:05 hello\n")
        assert result.exit_code == 0
        assert result.output == "2025-01-02T03:04:05Z\t2025-01-02 03:04:05 hello\n"

    def test_cat_custom_pair(self, runner, tmp_path):
        path = tmp_path / "app.log"
        path.write_text("level=info ts=1735787045 msg=up\n")
        result = runner.invoke(cli, ["--quiet", "cat", "-x", r"ts=(\d+)", "-t", "epochseconds", str(path)])
        assert result.exit_code == 0
        assert result.output.startswith("2025-01-02T03:04:05Z\t")

    def test_cat_undetectable(self, runner, unstamped_log):
        result = runner.invoke(cli, ["cat", str(unstamped_log)])
        assert result.exit_code == 1
        assert "detection" in result.output
