"""Database schema definitions for issuedesk.

Contains the canonical SQL schema and the current schema version constant.
"""

from __future__ import annotations

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS users (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    first_name  TEXT NOT NULL,
    last_name   TEXT NOT NULL,
    email       TEXT NOT NULL UNIQUE COLLATE NOCASE,
    role        TEXT NOT NULL DEFAULT 'user',
    created_at  TEXT NOT NULL,

    CHECK (role IN ('user', 'admin'))
);

CREATE INDEX IF NOT EXISTS idx_users_name ON users(last_name, first_name);

CREATE TABLE IF NOT EXISTS issues (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    title        TEXT NOT NULL,
    description  TEXT NOT NULL DEFAULT '',
    priority     TEXT NOT NULL DEFAULT 'Medium',
    date_opened  TEXT NOT NULL,
    date_closed  TEXT,

    CHECK (priority IN ('High', 'Medium', 'Low'))
);

CREATE INDEX IF NOT EXISTS idx_issues_closed ON issues(date_closed);

CREATE TABLE IF NOT EXISTS comments (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    issue_id     INTEGER NOT NULL REFERENCES issues(id),
    user_id      INTEGER REFERENCES users(id) ON DELETE SET NULL,
    comment      TEXT NOT NULL,
    date_posted  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_comments_issue ON comments(issue_id, date_posted);

CREATE TABLE IF NOT EXISTS sessions (
    token       TEXT PRIMARY KEY,
    user_id     INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    created_at  TEXT NOT NULL,
    expires_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_sessions_user ON sessions(user_id);
"""

CURRENT_SCHEMA_VERSION = 1
