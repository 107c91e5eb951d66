"""Issue lifecycle service: role-gated issue mutation and commenting.

Issues have two states. ``Open`` (no ``date_closed``) permits updates and
comments; ``Closed`` is terminal and permits reads only. Every mutation is
checked against the *current* persisted state at write time, never against a
value read earlier in the request: the issue page may have been rendered
minutes before the form was submitted.

Order of checks in every operation: authentication, capability, input
validation, storage.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from issuedesk.auth import RequestContext, require_authenticated, require_capability
from issuedesk.db_base import IssueState, _now_iso
from issuedesk.errors import NotFound, RejectedClosed, ValidationError
from issuedesk.results import OperationResult, Outcome, track_operation
from issuedesk.types.api import IssueDetail
from issuedesk.types.core import CommentView
from issuedesk.validation import clean_comment, clean_description, clean_priority, clean_title

if TYPE_CHECKING:
    from issuedesk.core import Issue, IssueDeskDB

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("title", "description", "priority")


def _validate_issue_fields(title: object, description: object, priority: object) -> tuple[str, str, str]:
    """Validate in fixed precedence: title, then priority, then description."""
    clean_t, err = clean_title(title)
    if err:
        raise ValidationError("title", err)
    clean_p, err = clean_priority(priority)
    if err:
        raise ValidationError("priority", err)
    clean_d, err = clean_description(description)
    if err:
        raise ValidationError("description", err)
    return clean_t, clean_d, clean_p


class IssueLifecycleService:
    """Orchestrates the issue and comment stores behind the authorization guard."""

    def __init__(self, db: IssueDeskDB) -> None:
        self.db = db

    # -- Reads ---------------------------------------------------------------

    def get_issue(self, ctx: RequestContext, issue_id: int) -> Issue:
        user_id = require_authenticated(ctx)
        with track_operation("get_issue", user_id=user_id, issue_id=issue_id):
            return self.db.get_issue(issue_id)

    def list_issues(self, ctx: RequestContext, *, status: IssueState | None = None) -> list[Issue]:
        user_id = require_authenticated(ctx)
        with track_operation("list_issues", user_id=user_id):
            return self.db.list_issues(status=status)

    def list_comments(self, ctx: RequestContext, issue_id: int) -> list[CommentView]:
        """Comments oldest first. Repeating the call repeats the result absent new writes."""
        user_id = require_authenticated(ctx)
        with track_operation("list_comments", user_id=user_id, issue_id=issue_id):
            return self.db.list_comments_by_issue(issue_id)

    def issue_detail(self, ctx: RequestContext, issue_id: int) -> IssueDetail:
        """View-model for the issue page."""
        user_id = require_authenticated(ctx)
        with track_operation("issue_detail", user_id=user_id, issue_id=issue_id):
            issue = self.db.get_issue(issue_id)
            comments = self.db.list_comments_by_issue(issue_id)
        caps = ctx.capabilities
        return IssueDetail(
            **issue.to_dict(),
            comments=comments,
            can_edit=caps.can_edit_issue and issue.is_open,
            can_comment=caps.can_comment and issue.is_open,
        )

    # -- Mutations -----------------------------------------------------------

    def create_issue(
        self,
        ctx: RequestContext,
        *,
        title: object,
        description: object = "",
        priority: object = "Medium",
    ) -> OperationResult:
        user_id = require_capability(ctx, "can_edit_issue")
        clean_t, clean_d, clean_p = _validate_issue_fields(title, description, priority)
        with track_operation("create_issue", user_id=user_id):
            issue = self.db.create_issue(clean_t, description=clean_d, priority=clean_p)
        return OperationResult(Outcome.CREATED, "Issue created successfully!", issue.to_dict())

    def update_issue(
        self,
        ctx: RequestContext,
        issue_id: int,
        *,
        title: object,
        description: object,
        priority: object,
    ) -> OperationResult:
        """Change title/description/priority of an Open issue.

        One compare-and-set UPDATE. When it touches no row, the closed state
        is re-read to tell a closed issue from an unchanged submission.
        """
        user_id = require_capability(ctx, "can_edit_issue")
        clean_t, clean_d, clean_p = _validate_issue_fields(title, description, priority)

        with track_operation("update_issue", user_id=user_id, issue_id=issue_id):
            changed = self.db.conditional_update(
                issue_id,
                title=clean_t,
                description=clean_d,
                priority=clean_p,
                require_open=True,
            )
            if changed:
                return OperationResult(
                    Outcome.UPDATED,
                    "Issue updated successfully!",
                    self.db.get_issue(issue_id).to_dict(),
                )

            closed = self.db.issue_closed_state(issue_id)
        if closed is None:
            raise NotFound("issue", issue_id)
        if closed:
            raise RejectedClosed(issue_id, "Cannot update a closed issue.")
        return OperationResult(
            Outcome.NO_OP,
            "No changes were detected or needed for the update.",
            self.db.get_issue(issue_id).to_dict(),
        )

    def patch_issue(self, ctx: RequestContext, issue_id: int, changes: Mapping[str, object]) -> OperationResult:
        """``update_issue`` where a field absent from ``changes`` keeps its current value."""
        user_id = require_capability(ctx, "can_edit_issue")
        fields = {name: changes[name] for name in _EDITABLE_FIELDS if name in changes}
        if len(fields) < len(_EDITABLE_FIELDS):
            with track_operation("patch_issue", user_id=user_id, issue_id=issue_id):
                current = self.db.get_issue(issue_id)
            for name in _EDITABLE_FIELDS:
                fields.setdefault(name, getattr(current, name))
        return self.update_issue(ctx, issue_id, **fields)

    def add_comment(self, ctx: RequestContext, issue_id: int, text: object) -> OperationResult:
        """Append a comment to an Open issue.

        The closed state is re-read here, immediately before the insert, and
        the insert itself is guarded on ``date_closed IS NULL``; a close that
        commits first always wins.
        """
        user_id = require_capability(ctx, "can_comment")
        clean_text, err = clean_comment(text)
        if err:
            raise ValidationError("comment", err)

        with track_operation("add_comment", user_id=user_id, issue_id=issue_id):
            closed = self.db.issue_closed_state(issue_id)
            if closed is None:
                raise NotFound("issue", issue_id)
            if closed:
                raise RejectedClosed(issue_id, "Cannot comment on a closed issue.")

            comment_id = self.db.insert_comment(issue_id, user_id, clean_text, _now_iso(), require_open=True)
            if comment_id is None:
                # Guard failed between the re-read and the insert.
                return self._comment_guard_failed(issue_id, user_id)
            comment = self.db.get_comment(comment_id)
        return OperationResult(Outcome.CREATED, "Comment added successfully!", comment)

    def _comment_guard_failed(self, issue_id: int, user_id: int) -> OperationResult:
        closed = self.db.issue_closed_state(issue_id)
        if closed is None:
            raise NotFound("issue", issue_id)
        if closed:
            logger.info(
                "Comment rejected: issue %s closed while the comment was in flight",
                issue_id,
                extra={"operation": "add_comment", "issue_id": issue_id, "user_id": user_id},
            )
            raise RejectedClosed(issue_id, "Cannot comment on a closed issue.")
        # Open but the guard failed: the clock reads earlier than date_opened.
        raise ValidationError("date_posted", "Comment time precedes the issue's opening time.")

    def close_issue(self, ctx: RequestContext, issue_id: int) -> OperationResult:
        """Open → Closed. Compare-and-set; there is no way back."""
        user_id = require_capability(ctx, "can_edit_issue")
        with track_operation("close_issue", user_id=user_id, issue_id=issue_id):
            changed = self.db.close_issue(issue_id)
            if changed:
                return OperationResult(Outcome.CLOSED, "Issue closed.", self.db.get_issue(issue_id).to_dict())
            closed = self.db.issue_closed_state(issue_id)
        if closed is None:
            raise NotFound("issue", issue_id)
        raise RejectedClosed(issue_id, f"Issue {issue_id} is already closed.")
