"""User administration and identity route handlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.requests import Request

from issuedesk.auth import RequestContext
from issuedesk.core import IssueDeskDB
from issuedesk.dashboard_routes.common import _parse_json_body, _result_response
from issuedesk.types.api import MeResponse
from issuedesk.users import UserAdminService


def create_router() -> APIRouter:
    """Build the APIRouter for user management and ``/me``."""
    from issuedesk.dashboard import _get_context, _get_db

    router = APIRouter()

    @router.get("/me")
    async def api_me(ctx: RequestContext = Depends(_get_context)) -> JSONResponse:
        """The caller's identity and capabilities; works unauthenticated."""
        return JSONResponse(
            MeResponse(
                authenticated=ctx.authenticated,
                user_id=ctx.user_id,
                role=ctx.role,
                capabilities=ctx.capabilities.to_dict(),
            )
        )

    @router.get("/users")
    async def api_users(
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        users = UserAdminService(db).list_users(ctx)
        return JSONResponse([u.to_dict() for u in users])

    @router.post("/users", status_code=201)
    async def api_create_user(
        request: Request,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        body = await _parse_json_body(request)
        result = UserAdminService(db).create_user(
            ctx,
            first_name=body.get("first_name"),
            last_name=body.get("last_name"),
            email=body.get("email"),
            role=body.get("role", "user"),
        )
        return _result_response(result, status_code=201)

    @router.patch("/user/{user_id}")
    async def api_update_user(
        user_id: int,
        request: Request,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        """Edit a user's first and last name."""
        body = await _parse_json_body(request)
        result = UserAdminService(db).update_user(
            ctx,
            user_id,
            first_name=body.get("first_name"),
            last_name=body.get("last_name"),
        )
        return _result_response(result)

    @router.put("/user/{user_id}/role")
    async def api_set_role(
        user_id: int,
        request: Request,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        """Grant or revoke admin."""
        body = await _parse_json_body(request)
        return _result_response(UserAdminService(db).set_role(ctx, user_id, body.get("role")))

    @router.delete("/user/{user_id}")
    async def api_delete_user(
        user_id: int,
        db: IssueDeskDB = Depends(_get_db),
        ctx: RequestContext = Depends(_get_context),
    ) -> JSONResponse:
        return _result_response(UserAdminService(db).delete_user(ctx, user_id))

    return router
