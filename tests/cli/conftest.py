"""Fixtures for CLI interface tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from issuedesk.cli import cli

ADMIN = "ada@example.com"
USER = "uma@example.com"


@pytest.fixture
def cli_in_project(tmp_path: Path, cli_runner: CliRunner) -> Generator[tuple[CliRunner, Path], None, None]:
    """Initialize a deployment in tmp_path with an admin and a user; return (runner, root)."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    result = cli_runner.invoke(cli, ["init", "--name", "test", "--admin-email", ADMIN, "--first-name", "Ada"])
    assert result.exit_code == 0, result.output
    result = cli_runner.invoke(cli, ["--as", ADMIN, "add-user", USER, "--first-name", "Uma", "--last-name", "User"])
    assert result.exit_code == 0, result.output
    yield cli_runner, tmp_path
    os.chdir(original_cwd)
    logger = logging.getLogger("issuedesk")
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


def _extract_id(create_output: str) -> int:
    """Extract issue ID from 'Created #12: Title' output."""
    return int(create_output.split(":")[0].replace("Created #", "").strip())
