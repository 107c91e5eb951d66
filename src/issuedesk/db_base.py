"""Shared utilities, types, and Protocol for DB mixins."""

from __future__ import annotations

import contextlib
import sqlite3
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Protocol

from issuedesk.errors import StorageFailure

if TYPE_CHECKING:
    from issuedesk.core import Issue

Role = Literal["user", "admin"]
Priority = Literal["High", "Medium", "Low"]
IssueState = Literal["open", "closed"]

VALID_ROLES: frozenset[str] = frozenset({"user", "admin"})
VALID_PRIORITIES: tuple[str, ...] = ("High", "Medium", "Low")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@contextlib.contextmanager
def storage_guard(conn: sqlite3.Connection, operation: str, **context: Any) -> Iterator[None]:
    """Roll back and re-raise driver faults as ``StorageFailure``.

    *context* (issue id, user id, ...) travels on the exception so the
    service layer can log it without parsing messages.
    """
    try:
        yield
    except sqlite3.Error as exc:
        with contextlib.suppress(sqlite3.Error):
            conn.rollback()
        raise StorageFailure(operation, context, cause=str(exc)) from exc


class DBMixinProtocol(Protocol):
    """Shared attributes and methods that DB mixins access via self.

    Mixins inherit this Protocol so mypy can type-check self.conn,
    self.get_issue(), etc. without ``type: ignore`` on every call.
    Actual implementations are provided by IssueDeskDB at composition time.
    """

    db_path: Path
    _conn: sqlite3.Connection | None

    @property
    def conn(self) -> sqlite3.Connection: ...

    def get_issue(self, issue_id: int) -> Issue: ...
