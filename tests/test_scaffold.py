"""Tests for the package scaffold, entry points and command wiring."""

import subprocess
import sys

import pytest
import typer
from typer.testing import CliRunner

import bikelab_analytics
from bikelab_analytics import __main__ as main_mod
from bikelab_analytics.cli import app

runner = CliRunner()

COMMANDS = [
    "stats",
    "trend",
    "compare",
    "terrain",
    "goals",
    "advice",
    "plan",
    "zones",
    "periods",
    "achievements",
]


def test_version_is_semver():
    assert bikelab_analytics.__version__.count(".") == 2


def test_main_module_exposes_typer_app():
    assert main_mod.app is app
    assert isinstance(app, typer.Typer)


@pytest.mark.parametrize("command", COMMANDS)
def test_command_help(command):
    """Every command is registered and accepts a feed file."""
    result = runner.invoke(app, [command, "--help"])

    assert result.exit_code == 0
    assert "--file" in result.stdout


def test_root_help_lists_every_command():
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in COMMANDS:
        assert command in result.stdout
    assert "--verbose" in result.stdout


@pytest.mark.parametrize("flag", ["--version", "-v"])
def test_version_flags(flag):
    result = runner.invoke(app, [flag])

    assert result.exit_code == 0
    assert result.stdout.strip() == f"bikelab {bikelab_analytics.__version__}"


def test_module_entry_point_runs():
    """python -m bikelab_analytics prints the version."""
    result = subprocess.run(
        [sys.executable, "-m", "bikelab_analytics", "-v"],
        capture_output=True,
        text=True,
        timeout=10,
    )
    assert result.returncode == 0
    assert bikelab_analytics.__version__ in result.stdout


def test_no_args_shows_help():
    result = runner.invoke(app, [])

    assert "Usage" in result.output
