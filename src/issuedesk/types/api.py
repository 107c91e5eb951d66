"""TypedDicts for dashboard route API responses."""

from __future__ import annotations

from typing import Any, TypedDict

from issuedesk.types.core import CommentView, IssueDict

# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class ErrorBody(TypedDict):
    message: str
    code: str
    details: dict[str, Any]


class ErrorResponse(TypedDict):
    """Standard error envelope returned by every dashboard error path."""

    error: ErrorBody


class OperationResultDict(TypedDict):
    """Success envelope: the outcome plus the message shown to the user."""

    outcome: str
    message: str
    data: Any


# ---------------------------------------------------------------------------
# View-models
#
# RESERVED EXTENSION KEYS: these names must never be added to IssueDict:
# comments, can_edit, can_comment
# ---------------------------------------------------------------------------


class IssueDetail(IssueDict):
    """Issue page view-model: the issue, its comments, and what the caller may do."""

    comments: list[CommentView]
    can_edit: bool
    can_comment: bool


class MeResponse(TypedDict):
    authenticated: bool
    user_id: int | None
    role: str | None
    capabilities: dict[str, bool]
