"""CLI tests for init, token and dashboard."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from issuedesk.cli import cli
from issuedesk.core import DB_FILENAME, ISSUEDESK_DIR_NAME, IssueDeskDB, read_config
from issuedesk.errors import StorageFailure
from tests.cli.conftest import ADMIN, USER


class TestInit:
    def test_init_creates_dir(self, tmp_path: Path, cli_runner: CliRunner) -> None:
        original = os.getcwd()
        os.chdir(str(tmp_path))
        try:
            result = cli_runner.invoke(cli, ["init"])
            assert result.exit_code == 0
            assert (tmp_path / ISSUEDESK_DIR_NAME).is_dir()
            assert (tmp_path / ISSUEDESK_DIR_NAME / DB_FILENAME).exists()
            config = read_config(tmp_path / ISSUEDESK_DIR_NAME)
            assert config["name"] == tmp_path.name
            assert config["port"] == 8390
        finally:
            os.chdir(original)

    def test_init_with_admin(self, tmp_path: Path, cli_runner: CliRunner) -> None:
        original = os.getcwd()
        os.chdir(str(tmp_path))
        try:
            result = cli_runner.invoke(cli, ["init", "--admin-email", "Boss@Example.com"])
            assert result.exit_code == 0
            assert "Admin:" in result.output
            with IssueDeskDB(tmp_path / ISSUEDESK_DIR_NAME / DB_FILENAME) as db:
                boss = db.get_user_by_email("boss@example.com")
                assert boss is not None
                assert boss.is_admin
        finally:
            os.chdir(original)

    def test_init_bad_admin_email(self, tmp_path: Path, cli_runner: CliRunner) -> None:
        original = os.getcwd()
        os.chdir(str(tmp_path))
        try:
            result = cli_runner.invoke(cli, ["init", "--admin-email", "not-an-email"])
            assert result.exit_code == 1
            assert "Invalid email" in result.output
        finally:
            os.chdir(original)

    def test_init_already_exists(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["init", "--admin-email", "second@example.com"])
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert "already present" in result.output

    def test_command_outside_deployment(self, tmp_path: Path, cli_runner: CliRunner) -> None:
        original = os.getcwd()
        os.chdir(str(tmp_path))
        try:
            result = cli_runner.invoke(cli, ["list"])
            assert result.exit_code == 1
            assert "issuedesk init" in result.output
        finally:
            os.chdir(original)


class TestToken:
    def test_token_resolves_to_user(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        result = runner.invoke(cli, ["token", USER, "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ttl_hours"] == 168
        with IssueDeskDB(root / ISSUEDESK_DIR_NAME / DB_FILENAME) as db:
            session = db.lookup_session(data["token"])
            assert session is not None
            assert session[1] == "user"

    def test_token_unknown_email(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["token", "ghost@example.com"])
        assert result.exit_code == 1

    def test_token_storage_failure(self, cli_in_project: tuple[CliRunner, Path], monkeypatch: pytest.MonkeyPatch) -> None:
        runner, _ = cli_in_project

        def _broken(self: IssueDeskDB, email: str) -> None:
            raise StorageFailure("get_user_by_email", cause="disk I/O error")

        monkeypatch.setattr(IssueDeskDB, "get_user_by_email", _broken)
        result = runner.invoke(cli, ["token", ADMIN, "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["code"] == "STORAGE_FAILURE"

    def test_token_ttl_from_env(self, cli_in_project: tuple[CliRunner, Path], monkeypatch: pytest.MonkeyPatch) -> None:
        runner, _ = cli_in_project
        monkeypatch.setenv("ISSUEDESK_SESSION_TTL_HOURS", "3")
        result = runner.invoke(cli, ["token", ADMIN, "--json"])
        assert json.loads(result.output)["ttl_hours"] == 3


class TestDashboard:
    def test_dashboard_passes_options(self, cli_in_project: tuple[CliRunner, Path], monkeypatch: pytest.MonkeyPatch) -> None:
        runner, _ = cli_in_project
        calls: list[tuple[int | None, str]] = []
        monkeypatch.setattr("issuedesk.dashboard.main", lambda port=None, host="": calls.append((port, host)))
        result = runner.invoke(cli, ["dashboard", "--port", "9001", "--host", "0.0.0.0"])
        assert result.exit_code == 0
        assert calls == [(9001, "0.0.0.0")]
