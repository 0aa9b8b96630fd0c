"""Command line interface for logresolve."""

from logresolve.cli.main import cli

__all__ = ["cli"]
