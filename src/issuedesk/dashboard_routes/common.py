"""Shared helpers for dashboard route modules."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, cast

if TYPE_CHECKING:
    from fastapi.responses import JSONResponse
    from starlette.requests import Request

    from issuedesk.db_base import IssueState
    from issuedesk.results import OperationResult

from issuedesk.errors import ValidationError

logger = logging.getLogger(__name__)

_ISSUE_STATUS_VALUES = frozenset({"open", "closed"})


def _error_response(
    message: str,
    code: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Return a structured error response and log the error."""
    from fastapi.responses import JSONResponse

    logger.warning("API error [%s] %s: %s", status_code, code, message)
    return JSONResponse(
        {"error": {"message": message, "code": code, "details": details or {}}},
        status_code=status_code,
    )


def _result_response(result: OperationResult, status_code: int = 200) -> JSONResponse:
    from fastapi.responses import JSONResponse

    return JSONResponse(result.to_dict(), status_code=status_code)


async def _parse_json_body(request: Request) -> dict[str, Any]:
    """Parse a JSON object body; raises ``ValidationError`` on anything else."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, ValueError, UnicodeDecodeError):
        raise ValidationError("body", "Invalid JSON body") from None
    if not isinstance(body, dict):
        raise ValidationError("body", "Request body must be a JSON object")
    return body


def _parse_status_filter(raw: str | None) -> IssueState | None:
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value not in _ISSUE_STATUS_VALUES:
        raise ValidationError("status", f'Invalid value for status: "{raw}". Must be one of: open, closed.')
    return cast("IssueState", value)
