"""Foundational TypedDicts for dataclass to_dict() returns."""

from __future__ import annotations

from typing import NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)


class ProjectConfig(TypedDict, total=False):
    """Shape of .issuedesk/config.json."""

    name: str
    version: int
    port: int
    session_ttl_hours: int


class IssueDict(TypedDict):
    id: int
    title: str
    description: str
    priority: str
    date_opened: ISOTimestamp
    date_closed: ISOTimestamp | None
    status: str


class UserDict(TypedDict):
    id: int
    first_name: str
    last_name: str
    email: str
    role: str


class CommentView(TypedDict):
    """One row of ``list_comments_by_issue()``: authorship resolved at read time."""

    id: int
    comment: str
    date_posted: ISOTimestamp
    author_first_name: str
    author_last_name: str
