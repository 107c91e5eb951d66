"""User administration service. Every operation is admin-only.

An admin may never change their own role or delete their own account; both
fail with ``CannotActOnSelf`` before any storage access.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from issuedesk.auth import RequestContext, require_capability
from issuedesk.errors import CannotActOnSelf, NotFound, ValidationError
from issuedesk.results import OperationResult, Outcome, track_operation
from issuedesk.validation import clean_email, clean_name, clean_role

if TYPE_CHECKING:
    from issuedesk.core import IssueDeskDB, User


class UserAdminService:
    def __init__(self, db: IssueDeskDB) -> None:
        self.db = db

    def list_users(self, ctx: RequestContext) -> list[User]:
        require_capability(ctx, "can_manage_users")
        return self.db.list_users()

    def create_user(
        self,
        ctx: RequestContext,
        *,
        first_name: object,
        last_name: object,
        email: object,
        role: object = "user",
    ) -> OperationResult:
        actor_id = require_capability(ctx, "can_manage_users")
        first, last = _clean_names(first_name, last_name)
        clean_e, err = clean_email(email)
        if err:
            raise ValidationError("email", err)
        clean_r, err = clean_role(role)
        if err:
            raise ValidationError("role", err)
        with track_operation("create_user", user_id=actor_id):
            user = self.db.create_user(first, last, clean_e, role=clean_r)
        return OperationResult(Outcome.CREATED, f"User {user.full_name} created.", user.to_dict())

    def update_user(
        self,
        ctx: RequestContext,
        user_id: int,
        *,
        first_name: object = None,
        last_name: object = None,
    ) -> OperationResult:
        """Rename a user. A name passed as ``None`` keeps its current value."""
        actor_id = require_capability(ctx, "can_manage_users")
        first = None if first_name is None else _clean_one(first_name, "first_name", "First name")
        last = None if last_name is None else _clean_one(last_name, "last_name", "Last name")
        with track_operation("update_user", user_id=actor_id):
            current = self.db.get_user(user_id)
            first = current.first_name if first is None else first
            last = current.last_name if last is None else last
            if (current.first_name, current.last_name) == (first, last):
                return OperationResult(Outcome.NO_OP, "No changes were detected or needed for the update.", current.to_dict())
            if not self.db.update_user_names(user_id, first, last):
                raise NotFound("user", user_id)
            updated = self.db.get_user(user_id)
        return OperationResult(Outcome.UPDATED, "User updated successfully.", updated.to_dict())

    def set_role(self, ctx: RequestContext, user_id: int, role: object) -> OperationResult:
        """Grant or revoke admin. Targeting yourself always fails."""
        actor_id = require_capability(ctx, "can_manage_users")
        if ctx.is_self(user_id):
            raise CannotActOnSelf("change the role of", "You cannot change your own admin privileges.")
        clean_r, err = clean_role(role)
        if err:
            raise ValidationError("role", err)

        with track_operation("set_role", user_id=actor_id):
            changed = self.db.set_role(user_id, clean_r)
            target = self.db.get_user(user_id)  # raises NotFound
        if not changed:
            return OperationResult(Outcome.NO_OP, f"User already has the {clean_r} role.", target.to_dict())
        message = "Admin privileges granted successfully." if clean_r == "admin" else "Admin privileges revoked successfully."
        return OperationResult(Outcome.UPDATED, message, target.to_dict())

    def delete_user(self, ctx: RequestContext, user_id: int) -> OperationResult:
        """Delete an account. Comments it authored remain, shown as a former user."""
        actor_id = require_capability(ctx, "can_manage_users")
        if ctx.is_self(user_id):
            raise CannotActOnSelf("delete", "You cannot delete your own account.")
        with track_operation("delete_user", user_id=actor_id):
            deleted = self.db.delete_user(user_id)
        if not deleted:
            raise NotFound("user", user_id)
        return OperationResult(Outcome.DELETED, "User deleted successfully.", {"id": user_id})


def _clean_names(first_name: object, last_name: object) -> tuple[str, str]:
    return _clean_one(first_name, "first_name", "First name"), _clean_one(last_name, "last_name", "Last name")


def _clean_one(value: object, field: str, label: str) -> str:
    cleaned, err = clean_name(value, label)
    if err:
        raise ValidationError(field, err)
    return cleaned
