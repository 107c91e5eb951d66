"""UsersMixin: user records, roles, and the session table.

All methods access ``self.conn`` via Python's MRO when composed into
``IssueDeskDB``.
"""

from __future__ import annotations

import secrets
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from issuedesk.db_base import DBMixinProtocol, _now_iso, storage_guard
from issuedesk.errors import NotFound, ValidationError
from issuedesk.types.core import UserDict


@dataclass
class User:
    id: int
    first_name: str
    last_name: str
    email: str
    role: str = "user"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> UserDict:
        return UserDict(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            role=self.role,
        )


def _build_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        role=row["role"],
    )


class UsersMixin(DBMixinProtocol):
    """User CRUD plus bearer-token sessions."""

    # -- Users ---------------------------------------------------------------

    def create_user(self, first_name: str, last_name: str, email: str, *, role: str = "user") -> User:
        with storage_guard(self.conn, "create_user"):
            try:
                cursor = self.conn.execute(
                    "INSERT INTO users (first_name, last_name, email, role, created_at) VALUES (?, ?, ?, ?, ?)",
                    (first_name, last_name, email, role, _now_iso()),
                )
            except sqlite3.IntegrityError:
                self.conn.rollback()
                existing = self.get_user_by_email(email)
                if existing is None:
                    raise
                raise ValidationError("email", f"A user with email {email} already exists.") from None
            self.conn.commit()
        user_id = cursor.lastrowid
        if user_id is None:  # pragma: no cover: INSERT always sets lastrowid
            msg = "INSERT did not produce a lastrowid"
            raise RuntimeError(msg)
        return self.get_user(user_id)

    def get_user(self, user_id: int) -> User:
        with storage_guard(self.conn, "get_user", user_id=user_id):
            row = self.conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            raise NotFound("user", user_id)
        return _build_user(row)

    def get_user_by_email(self, email: str) -> User | None:
        with storage_guard(self.conn, "get_user_by_email"):
            row = self.conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        return _build_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        with storage_guard(self.conn, "list_users"):
            rows = self.conn.execute("SELECT * FROM users ORDER BY last_name, first_name, id").fetchall()
        return [_build_user(r) for r in rows]

    def count_admins(self) -> int:
        with storage_guard(self.conn, "count_admins"):
            result: int = self.conn.execute("SELECT COUNT(*) FROM users WHERE role = 'admin'").fetchone()[0]
        return result

    def update_user_names(self, user_id: int, first_name: str, last_name: str) -> int:
        with storage_guard(self.conn, "update_user_names", user_id=user_id):
            cursor = self.conn.execute(
                "UPDATE users SET first_name = ?, last_name = ? WHERE id = ?",
                (first_name, last_name, user_id),
            )
            self.conn.commit()
        return cursor.rowcount

    def set_role(self, user_id: int, role: str) -> int:
        """Conditional role change: matches only when the role actually differs."""
        with storage_guard(self.conn, "set_role", user_id=user_id):
            cursor = self.conn.execute(
                "UPDATE users SET role = ? WHERE id = ? AND role != ?",
                (role, user_id, role),
            )
            self.conn.commit()
        return cursor.rowcount

    def delete_user(self, user_id: int) -> int:
        """Delete a user. Their comments stay, with ``user_id`` set to NULL."""
        with storage_guard(self.conn, "delete_user", user_id=user_id):
            cursor = self.conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            self.conn.commit()
        return cursor.rowcount

    # -- Sessions ------------------------------------------------------------

    def create_session(self, user_id: int, *, ttl_hours: int) -> str:
        """Mint a bearer token for *user_id* valid for *ttl_hours*."""
        token = secrets.token_urlsafe(32)
        now = datetime.now(UTC)
        expires = now + timedelta(hours=ttl_hours)
        with storage_guard(self.conn, "create_session", user_id=user_id):
            self.conn.execute(
                "INSERT INTO sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
                (token, user_id, now.isoformat(), expires.isoformat()),
            )
            self.conn.commit()
        return token

    def lookup_session(self, token: str) -> tuple[int, str] | None:
        """Return ``(user_id, role)`` for a live session, else ``None``.

        The role comes from the users table, so a role change or deletion
        takes effect on the next request.
        """
        with storage_guard(self.conn, "lookup_session"):
            row = self.conn.execute(
                "SELECT u.id, u.role FROM sessions s JOIN users u ON s.user_id = u.id "
                "WHERE s.token = ? AND s.expires_at > ?",
                (token, _now_iso()),
            ).fetchone()
        if row is None:
            return None
        return (row["id"], row["role"])

    def delete_session(self, token: str) -> bool:
        with storage_guard(self.conn, "delete_session"):
            cursor = self.conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
            self.conn.commit()
        return cursor.rowcount > 0

    def purge_expired_sessions(self) -> int:
        with storage_guard(self.conn, "purge_expired_sessions"):
            cursor = self.conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (_now_iso(),))
            self.conn.commit()
        return cursor.rowcount
