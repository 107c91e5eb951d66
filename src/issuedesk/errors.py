"""Error taxonomy shared by the service layer, the HTTP API and the CLI.

Each error carries a stable machine-readable ``code`` and the HTTP status the
dashboard maps it to. Services raise these; the boundaries (FastAPI exception
handler, CLI commands) turn them into user-visible messages.
"""

from __future__ import annotations

from typing import Any


class IssueDeskError(Exception):
    """Base class for every failure surfaced to a caller."""

    code = "ERROR"
    status_code = 400

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


class Unauthenticated(IssueDeskError):
    """No valid session."""

    code = "UNAUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Authentication required.") -> None:
        super().__init__(message)


class Forbidden(IssueDeskError):
    """Authenticated, but the role lacks the capability."""

    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "Access denied.", *, capability: str = "") -> None:
        super().__init__(message, details={"capability": capability} if capability else None)
        self.capability = capability


class ValidationError(IssueDeskError):
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message, details={"field": field})
        self.field = field


class NotFound(IssueDeskError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity.capitalize()} not found: {entity_id}", details={"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class RejectedClosed(IssueDeskError):
    """Valid request blocked because the issue is closed."""

    code = "ISSUE_CLOSED"
    status_code = 409

    def __init__(self, issue_id: int, message: str = "") -> None:
        super().__init__(message or f"Issue {issue_id} is closed.", details={"issue_id": issue_id})
        self.issue_id = issue_id


class CannotActOnSelf(IssueDeskError):
    code = "CANNOT_ACT_ON_SELF"
    status_code = 409

    def __init__(self, action: str, message: str = "") -> None:
        super().__init__(message or f"You cannot {action} your own account.", details={"action": action})
        self.action = action


class StorageFailure(IssueDeskError):
    """Persistence fault. The user-facing message never includes driver text."""

    code = "STORAGE_FAILURE"
    status_code = 500

    def __init__(self, operation: str, context: dict[str, Any] | None = None, *, cause: str = "") -> None:
        super().__init__("A database error occurred. Please try again later.", details={"operation": operation})
        self.operation = operation
        self.context: dict[str, Any] = context or {}
        self.cause = cause
