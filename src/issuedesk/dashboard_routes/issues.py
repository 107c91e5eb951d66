"""Issue and comment route handlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.requests import Request

from issuedesk.auth import RequestContext
from issuedesk.core import IssueDeskDB
from issuedesk.dashboard_routes.common import _parse_json_body, _parse_status_filter, _result_response
from issuedesk.lifecycle import IssueLifecycleService

# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------


def create_router() -> APIRouter:
    """Build the APIRouter for issue and comment endpoints.

    NOTE: All handlers are intentionally async despite doing synchronous
    SQLite I/O. This serializes DB access on the event loop thread,
    avoiding concurrent multi-thread access to the shared DB connection.
    """
    from issuedesk.dashboard import _get_context, _get_db

    router = APIRouter()

    @router.get("/issues")
    async def api_issues(
        request: Request,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        status = _parse_status_filter(request.query_params.get("status"))
        issues = IssueLifecycleService(db).list_issues(ctx, status=status)
        return JSONResponse([i.to_dict() for i in issues])

    @router.post("/issues", status_code=201)
    async def api_create_issue(
        request: Request,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        """Create a new issue (admin)."""
        body = await _parse_json_body(request)
        result = IssueLifecycleService(db).create_issue(
            ctx,
            title=body.get("title"),
            description=body.get("description", ""),
            priority=body.get("priority", "Medium"),
        )
        return _result_response(result, status_code=201)

    @router.get("/issue/{issue_id}")
    async def api_issue_detail(
        issue_id: int,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        """Issue page view-model: the issue, its comments, and the caller's permissions."""
        return JSONResponse(IssueLifecycleService(db).issue_detail(ctx, issue_id))

    @router.patch("/issue/{issue_id}")
    async def api_update_issue(
        issue_id: int,
        request: Request,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        """Update an open issue (admin). Omitted fields keep their current value."""
        body = await _parse_json_body(request)
        return _result_response(IssueLifecycleService(db).patch_issue(ctx, issue_id, body))

    @router.post("/issue/{issue_id}/close")
    async def api_close_issue(
        issue_id: int,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        """Close an issue (admin)."""
        return _result_response(IssueLifecycleService(db).close_issue(ctx, issue_id))

    @router.get("/issue/{issue_id}/comments")
    async def api_list_comments(
        issue_id: int,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        return JSONResponse(IssueLifecycleService(db).list_comments(ctx, issue_id))

    @router.post("/issue/{issue_id}/comments", status_code=201)
    async def api_add_comment(
        issue_id: int,
        request: Request,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        """Add a comment to an open issue."""
        body = await _parse_json_body(request)
        result = IssueLifecycleService(db).add_comment(ctx, issue_id, body.get("comment"))
        return _result_response(result, status_code=201)

    return router
