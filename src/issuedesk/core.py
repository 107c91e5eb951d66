"""Core database operations for issuedesk.

Single source of truth for all SQLite operations. Both the CLI and the
dashboard go through this module (via the service layer). No ORM, just
direct SQLite with WAL mode.

Covers the issue store, comments (``db_comments``), and users and sessions
(``db_users``).

Convention-based discovery: each deployment has an `.issuedesk/` directory
containing `issuedesk.db` (SQLite) and `config.json`.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from issuedesk.db_base import IssueState, _now_iso, storage_guard
from issuedesk.db_comments import CommentsMixin
from issuedesk.db_schema import CURRENT_SCHEMA_VERSION, SCHEMA_SQL
from issuedesk.db_users import User, UsersMixin
from issuedesk.errors import NotFound
from issuedesk.types.core import ISOTimestamp, IssueDict, ProjectConfig

logger = logging.getLogger(__name__)

__all__ = [
    "CONFIG_FILENAME",
    "DB_FILENAME",
    "ISSUEDESK_DIR_NAME",
    "Issue",
    "IssueDeskDB",
    "User",
    "find_issuedesk_root",
    "read_config",
    "write_config",
]

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

ISSUEDESK_DIR_NAME = ".issuedesk"
DB_FILENAME = "issuedesk.db"
CONFIG_FILENAME = "config.json"

DEFAULT_PORT = 8390
DEFAULT_SESSION_TTL_HOURS = 168


def find_issuedesk_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .issuedesk/ directory.

    Returns the .issuedesk/ directory path (not the deployment root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / ISSUEDESK_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {ISSUEDESK_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def read_config(issuedesk_dir: Path) -> ProjectConfig:
    """Read .issuedesk/config.json. Returns defaults if missing or corrupt."""
    defaults = ProjectConfig(name="issuedesk", version=1, port=DEFAULT_PORT, session_ttl_hours=DEFAULT_SESSION_TTL_HOURS)
    config_path = issuedesk_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        loaded = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults
    if not isinstance(loaded, dict):
        logger.warning("Ignoring %s: expected a JSON object", config_path)
        return defaults
    result: ProjectConfig = {**defaults, **loaded}  # type: ignore[typeddict-item]
    return result


def write_config(issuedesk_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .issuedesk/config.json."""
    config_path = issuedesk_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(config, indent=2) + "\n")


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Unparseable %s=%r, ignoring", name, raw)
        return None


def resolve_port(config: ProjectConfig) -> int:
    """Dashboard port: ISSUEDESK_PORT env var, then config, then default."""
    return _env_int("ISSUEDESK_PORT") or int(config.get("port", DEFAULT_PORT))


def resolve_session_ttl_hours(config: ProjectConfig) -> int:
    value = _env_int("ISSUEDESK_SESSION_TTL_HOURS") or int(config.get("session_ttl_hours", DEFAULT_SESSION_TTL_HOURS))
    if value < 1:
        logger.warning("session_ttl_hours=%d is below 1, using %d", value, DEFAULT_SESSION_TTL_HOURS)
        return DEFAULT_SESSION_TTL_HOURS
    return value


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Issue:
    id: int
    title: str
    description: str = ""
    priority: str = "Medium"
    date_opened: str = ""
    date_closed: str | None = None

    @property
    def is_open(self) -> bool:
        return self.date_closed is None

    @property
    def status(self) -> IssueState:
        return "open" if self.date_closed is None else "closed"

    def to_dict(self) -> IssueDict:
        return IssueDict(
            id=self.id,
            title=self.title,
            description=self.description,
            priority=self.priority,
            date_opened=ISOTimestamp(self.date_opened),
            date_closed=ISOTimestamp(self.date_closed) if self.date_closed else None,
            status=self.status,
        )


def _build_issue(row: sqlite3.Row) -> Issue:
    return Issue(
        id=row["id"],
        title=row["title"],
        description=row["description"] or "",
        priority=row["priority"],
        date_opened=row["date_opened"],
        date_closed=row["date_closed"],
    )


# ---------------------------------------------------------------------------
# IssueDeskDB
# ---------------------------------------------------------------------------


class IssueDeskDB(CommentsMixin, UsersMixin):
    """Direct SQLite operations. No daemon, no ORM. Importable by CLI and dashboard.

    Every store method runs under ``storage_guard`` so callers only ever see
    ``StorageFailure`` for persistence faults, never a raw ``sqlite3.Error``.
    """

    def __init__(self, db_path: str | Path, *, check_same_thread: bool = True) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._check_same_thread = check_same_thread

    @classmethod
    def from_project(cls, project_path: Path | None = None) -> IssueDeskDB:
        """Create an IssueDeskDB by discovering .issuedesk/ from project_path (or cwd)."""
        issuedesk_dir = find_issuedesk_root(project_path)
        db = cls(issuedesk_dir / DB_FILENAME)
        db.initialize()
        return db

    def __enter__(self) -> IssueDeskDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                isolation_level="DEFERRED",
                check_same_thread=self._check_same_thread,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
        return self._conn

    def initialize(self) -> None:
        """Create tables on a fresh database and stamp the schema version."""
        with storage_guard(self.conn, "initialize"):
            current_version = self.get_schema_version()
            if current_version == 0:
                self.conn.executescript(SCHEMA_SQL)
                self.conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION}")
            elif current_version > CURRENT_SCHEMA_VERSION:
                logger.warning(
                    "Database %s has schema v%d, newer than this release (v%d)",
                    self.db_path,
                    current_version,
                    CURRENT_SCHEMA_VERSION,
                )
            self.conn.commit()

    def get_schema_version(self) -> int:
        """Return the current schema version from PRAGMA user_version."""
        result: int = self.conn.execute("PRAGMA user_version").fetchone()[0]
        return result

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # -- Issue store ---------------------------------------------------------

    def create_issue(self, title: str, *, description: str = "", priority: str = "Medium") -> Issue:
        """Insert an Open issue. Inputs are expected to be validated by the caller."""
        with storage_guard(self.conn, "create_issue"):
            cursor = self.conn.execute(
                "INSERT INTO issues (title, description, priority, date_opened) VALUES (?, ?, ?, ?)",
                (title, description, priority, _now_iso()),
            )
            self.conn.commit()
        issue_id = cursor.lastrowid
        if issue_id is None:  # pragma: no cover: INSERT always sets lastrowid
            msg = "INSERT did not produce a lastrowid"
            raise RuntimeError(msg)
        return self.get_issue(issue_id)

    def get_issue(self, issue_id: int) -> Issue:
        with storage_guard(self.conn, "get_issue", issue_id=issue_id):
            row = self.conn.execute("SELECT * FROM issues WHERE id = ?", (issue_id,)).fetchone()
        if row is None:
            raise NotFound("issue", issue_id)
        return _build_issue(row)

    def list_issues(self, *, status: IssueState | None = None) -> list[Issue]:
        """All issues, newest first, optionally filtered to open or closed."""
        where = ""
        if status == "open":
            where = " WHERE date_closed IS NULL"
        elif status == "closed":
            where = " WHERE date_closed IS NOT NULL"
        with storage_guard(self.conn, "list_issues"):
            rows = self.conn.execute(f"SELECT * FROM issues{where} ORDER BY date_opened DESC, id DESC").fetchall()
        return [_build_issue(r) for r in rows]

    def issue_closed_state(self, issue_id: int) -> bool | None:
        """Fresh read of whether an issue is closed. ``None`` if it does not exist."""
        with storage_guard(self.conn, "issue_closed_state", issue_id=issue_id):
            row = self.conn.execute("SELECT date_closed FROM issues WHERE id = ?", (issue_id,)).fetchone()
        if row is None:
            return None
        return row["date_closed"] is not None

    def conditional_update(
        self,
        issue_id: int,
        *,
        title: str,
        description: str,
        priority: str,
        require_open: bool = True,
    ) -> int:
        """Compare-and-set update of the mutable issue fields.

        One statement: matches only when the submitted values differ from the
        stored ones and, with *require_open*, only while ``date_closed IS NULL``.
        Returns rows affected (0 or 1); the caller disambiguates a zero.
        """
        sql = (
            "UPDATE issues SET title = ?, description = ?, priority = ? "
            "WHERE id = ? AND (title IS NOT ? OR description IS NOT ? OR priority IS NOT ?)"
        )
        if require_open:
            sql += " AND date_closed IS NULL"
        with storage_guard(self.conn, "conditional_update", issue_id=issue_id):
            cursor = self.conn.execute(sql, (title, description, priority, issue_id, title, description, priority))
            self.conn.commit()
        return cursor.rowcount

    def close_issue(self, issue_id: int, *, closed_at: str | None = None) -> int:
        """Compare-and-set close: stamps ``date_closed`` only if still open."""
        with storage_guard(self.conn, "close_issue", issue_id=issue_id):
            cursor = self.conn.execute(
                "UPDATE issues SET date_closed = ? WHERE id = ? AND date_closed IS NULL",
                (closed_at or _now_iso(), issue_id),
            )
            self.conn.commit()
        return cursor.rowcount
