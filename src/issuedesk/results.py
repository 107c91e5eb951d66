"""Operation results and the logging wrapper shared by the service layer.

``OperationResult`` is returned to the presentation layer for every
successful mutation; its ``message`` replaces the one-shot flash message a
page would otherwise keep in session state.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from issuedesk.errors import StorageFailure
from issuedesk.types.api import OperationResultDict

logger = logging.getLogger("issuedesk.operations")


class Outcome(StrEnum):
    UPDATED = "updated"
    NO_OP = "no_op"
    CREATED = "created"
    CLOSED = "closed"
    DELETED = "deleted"


@dataclass(frozen=True)
class OperationResult:
    outcome: Outcome
    message: str
    data: Any = None

    def to_dict(self) -> OperationResultDict:
        return OperationResultDict(outcome=self.outcome.value, message=self.message, data=self.data)


@contextlib.contextmanager
def track_operation(operation: str, *, user_id: int | None = None, issue_id: int | None = None) -> Iterator[None]:
    """Log a service operation with its duration; log storage faults with context.

    ``StorageFailure`` is re-raised unchanged after logging: it is terminal
    for the request and never retried.
    """
    t0 = time.monotonic()
    try:
        yield
    except StorageFailure as exc:
        logger.error(
            "storage_failure",
            extra={
                "operation": f"{operation}/{exc.operation}",
                "issue_id": issue_id if issue_id is not None else exc.context.get("issue_id"),
                "user_id": user_id if user_id is not None else exc.context.get("user_id"),
                "error": exc.cause,
            },
        )
        raise
    else:
        duration_ms = round((time.monotonic() - t0) * 1000, 1)
        logger.info(
            "operation",
            extra={"operation": operation, "issue_id": issue_id, "user_id": user_id, "duration_ms": duration_ms},
        )
