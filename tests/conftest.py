"""Shared pytest fixtures for issuedesk tests."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from click.testing import CliRunner

from issuedesk.auth import RequestContext
from issuedesk.core import DB_FILENAME, ISSUEDESK_DIR_NAME, IssueDeskDB, write_config


@dataclass
class PopulatedDB:
    """A database plus the ids of the rows the ``populated_db`` fixture created."""

    db: IssueDeskDB
    ids: dict[str, int] = field(default_factory=dict)

    @property
    def admin(self) -> RequestContext:
        return RequestContext(user_id=self.ids["admin"], role="admin")

    @property
    def user(self) -> RequestContext:
        return RequestContext(user_id=self.ids["user"], role="user")


@pytest.fixture
def db(tmp_path: Path) -> Generator[IssueDeskDB, None, None]:
    """Fresh IssueDeskDB for each test."""
    d = IssueDeskDB(tmp_path / "issuedesk.db")
    d.initialize()
    yield d
    d.close()


@pytest.fixture
def populated_db(db: IssueDeskDB) -> PopulatedDB:
    """IssueDeskDB pre-populated with a representative data set.

    Creates:
    - admin Ada Admin, user Uma User, user Otto Other
    - open issue "Login broken" (High) with one comment by Uma
    - open issue "Typo on homepage" (Low)
    - closed issue "Old crash" (Medium)
    """
    admin = db.create_user("Ada", "Admin", "ada@example.com", role="admin")
    user = db.create_user("Uma", "User", "uma@example.com")
    other = db.create_user("Otto", "Other", "otto@example.com")
    login = db.create_issue("Login broken", description="500 on submit", priority="High")
    typo = db.create_issue("Typo on homepage", priority="Low")
    old = db.create_issue("Old crash")
    db.close_issue(old.id)
    db.insert_comment(login.id, user.id, "Seeing this too", login.date_opened)
    return PopulatedDB(
        db=db,
        ids={
            "admin": admin.id,
            "user": user.id,
            "other": other.id,
            "open": login.id,
            "typo": typo.id,
            "closed": old.id,
        },
    )


@pytest.fixture
def issuedesk_project(tmp_path: Path) -> Path:
    """A tmp directory set up as a deployment (.issuedesk/ with config + db).

    Returns the deployment root (parent of .issuedesk/).
    """
    issuedesk_dir = tmp_path / ISSUEDESK_DIR_NAME
    issuedesk_dir.mkdir()
    write_config(issuedesk_dir, {"name": "proj", "version": 1})

    d = IssueDeskDB(issuedesk_dir / DB_FILENAME)
    d.initialize()
    d.close()
    return tmp_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
