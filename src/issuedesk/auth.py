"""Authorization guard: request-scoped identity and capability checks.

A ``RequestContext`` is built once per request from the session provider and
passed explicitly to every service call; nothing about the caller is stored
process-wide. Role checks go through ``require_capability()`` only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from issuedesk.errors import Forbidden, Unauthenticated

if TYPE_CHECKING:
    from issuedesk.core import IssueDeskDB

logger = logging.getLogger(__name__)

Capability = Literal["can_edit_issue", "can_comment", "can_manage_users"]


@dataclass(frozen=True)
class Capabilities:
    can_edit_issue: bool = False
    can_comment: bool = False
    can_manage_users: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "can_edit_issue": self.can_edit_issue,
            "can_comment": self.can_comment,
            "can_manage_users": self.can_manage_users,
        }


NO_CAPABILITIES = Capabilities()

ROLE_CAPABILITIES: dict[str, Capabilities] = {
    "user": Capabilities(can_comment=True),
    "admin": Capabilities(can_edit_issue=True, can_comment=True, can_manage_users=True),
}

_DENIED_MESSAGES: dict[str, str] = {
    "can_edit_issue": "Access Denied: Only administrators can update issues.",
    "can_comment": "Access Denied: You are not allowed to comment.",
    "can_manage_users": "Access Denied: You must be an administrator to manage users.",
}


@dataclass(frozen=True)
class RequestContext:
    """Who is calling. ``user_id is None`` means unauthenticated."""

    user_id: int | None = None
    role: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def capabilities(self) -> Capabilities:
        if not self.authenticated or self.role is None:
            return NO_CAPABILITIES
        return ROLE_CAPABILITIES.get(self.role, NO_CAPABILITIES)

    def is_self(self, user_id: int) -> bool:
        return self.user_id is not None and self.user_id == user_id


UNAUTHENTICATED = RequestContext()


def require_authenticated(ctx: RequestContext) -> int:
    """Return the caller's user id or raise ``Unauthenticated``."""
    if ctx.user_id is None:
        raise Unauthenticated
    return ctx.user_id


def require_capability(ctx: RequestContext, capability: Capability) -> int:
    """Authentication first, then the role's capability; returns the user id."""
    user_id = require_authenticated(ctx)
    if not getattr(ctx.capabilities, capability):
        logger.info(
            "Denied %s for user %s (role=%s)",
            capability,
            user_id,
            ctx.role,
            extra={"operation": capability, "user_id": user_id},
        )
        raise Forbidden(_DENIED_MESSAGES[capability], capability=capability)
    return user_id


def resolve_context(db: IssueDeskDB, token: str | None) -> RequestContext:
    """Session provider: map a bearer token to a context.

    Unknown, expired, or orphaned tokens yield ``UNAUTHENTICATED``.
    """
    if not token:
        return UNAUTHENTICATED
    session = db.lookup_session(token)
    if session is None:
        return UNAUTHENTICATED
    user_id, role = session
    return RequestContext(user_id=user_id, role=role)


def context_for_email(db: IssueDeskDB, email: str | None) -> RequestContext:
    """Local operator identity for the CLI: look the user up by email."""
    if not email:
        return UNAUTHENTICATED
    user = db.get_user_by_email(email.strip().lower())
    if user is None:
        return UNAUTHENTICATED
    return RequestContext(user_id=user.id, role=user.role)
