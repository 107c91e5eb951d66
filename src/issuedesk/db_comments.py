"""CommentsMixin: the append-only comment store.

All methods access ``self.conn`` via Python's MRO when composed into
``IssueDeskDB``.
"""

from __future__ import annotations

from typing import cast

from issuedesk.db_base import DBMixinProtocol, storage_guard
from issuedesk.types.core import CommentView

# Rendered in place of the author's name once their account is deleted.
FORMER_USER_FIRST_NAME = "Former"
FORMER_USER_LAST_NAME = "user"


class CommentsMixin(DBMixinProtocol):
    """Comment insert and ordered listing. No update or delete exists."""

    def insert_comment(
        self,
        issue_id: int,
        user_id: int,
        text: str,
        timestamp: str,
        *,
        require_open: bool = True,
    ) -> int | None:
        """Append a comment; returns its id, or ``None`` if the guard failed.

        The insert selects from ``issues`` so the open-state check and the
        write are one statement: it only matches when the issue exists, was
        opened no later than *timestamp*, and (with *require_open*) has no
        ``date_closed``.
        """
        sql = (
            "INSERT INTO comments (issue_id, user_id, comment, date_posted) "
            "SELECT id, ?, ?, ? FROM issues WHERE id = ? AND date_opened <= ?"
        )
        if require_open:
            sql += " AND date_closed IS NULL"
        with storage_guard(self.conn, "insert_comment", issue_id=issue_id, user_id=user_id):
            cursor = self.conn.execute(sql, (user_id, text, timestamp, issue_id, timestamp))
            self.conn.commit()
        if cursor.rowcount == 0:
            return None
        return cursor.lastrowid

    def list_comments_by_issue(self, issue_id: int) -> list[CommentView]:
        """Comments oldest first, with the author's name resolved at read time."""
        with storage_guard(self.conn, "list_comments", issue_id=issue_id):
            rows = self.conn.execute(
                "SELECT c.id, c.comment, c.date_posted, "
                "COALESCE(u.first_name, ?) AS author_first_name, "
                "COALESCE(u.last_name, ?) AS author_last_name "
                "FROM comments c LEFT JOIN users u ON c.user_id = u.id "
                "WHERE c.issue_id = ? ORDER BY c.date_posted ASC, c.id ASC",
                (FORMER_USER_FIRST_NAME, FORMER_USER_LAST_NAME, issue_id),
            ).fetchall()
        return cast(list[CommentView], [dict(r) for r in rows])

    def get_comment(self, comment_id: int) -> CommentView | None:
        with storage_guard(self.conn, "get_comment"):
            row = self.conn.execute(
                "SELECT c.id, c.comment, c.date_posted, "
                "COALESCE(u.first_name, ?) AS author_first_name, "
                "COALESCE(u.last_name, ?) AS author_last_name "
                "FROM comments c LEFT JOIN users u ON c.user_id = u.id WHERE c.id = ?",
                (FORMER_USER_FIRST_NAME, FORMER_USER_LAST_NAME, comment_id),
            ).fetchone()
        return cast(CommentView, dict(row)) if row is not None else None
