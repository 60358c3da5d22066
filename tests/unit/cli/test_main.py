"""Tests for the semindex CLI entry point."""

from __future__ import annotations

import logging

from typer.testing import CliRunner

from semindex.cli.main import app

runner = CliRunner()


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("semindex ")


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("semindex ")


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("index", "search", "stats", "list", "remove", "clear", "version"):
        assert name in result.output


def test_verbose_enables_debug_logging() -> None:
    runner.invoke(app, ["--verbose", "version"])
    assert logging.getLogger("semindex").level == logging.DEBUG
    runner.invoke(app, ["version"])
    assert logging.getLogger("semindex").level == logging.WARNING
