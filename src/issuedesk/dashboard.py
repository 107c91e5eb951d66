"""Web API for issuedesk.

JSON endpoints for viewing issues and comments, editing and closing issues,
and managing users. Rendering is left to the client; every response is a
view-model or an ``OperationResult`` envelope.

A module-level ``_db`` is set at startup (or by test fixtures) and injected
via ``Depends(_get_db)``. The caller's identity is resolved per request from
a bearer token or the session cookie and injected via ``Depends(_get_context)``;
nothing about the caller outlives the request.

Usage:
    issuedesk dashboard                    # Serves on localhost:8390
    issuedesk dashboard --port 9000        # Custom port
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from issuedesk.auth import RequestContext, resolve_context
from issuedesk.core import DB_FILENAME, IssueDeskDB, find_issuedesk_root, read_config, resolve_port
from issuedesk.dashboard_routes.common import _error_response
from issuedesk.errors import IssueDeskError

SESSION_COOKIE = "issuedesk_session"

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level state: set by main() or test fixtures
# ---------------------------------------------------------------------------

_db: IssueDeskDB | None = None


def _get_db() -> IssueDeskDB:
    """Return the active database connection."""
    if _db is None:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return _db


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(SESSION_COOKIE) or None


async def _get_context(request: Request) -> RequestContext:
    """Resolve the request's identity from its session token.

    Async so the lookup runs on the event loop thread with the handlers.
    """
    return resolve_context(_get_db(), _bearer_token(request))


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Create the FastAPI application with all API endpoints."""
    from issuedesk.dashboard_routes import issues as issue_routes
    from issuedesk.dashboard_routes import users as user_routes

    app = FastAPI(title="issuedesk", docs_url=None, redoc_url=None)

    @app.exception_handler(IssueDeskError)
    async def _domain_error(request: Request, exc: IssueDeskError) -> JSONResponse:
        return _error_response(exc.message, exc.code, exc.status_code, exc.details)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first: dict[str, Any] = errors[0] if errors else {}
        field = str(first.get("loc", ["", "request"])[-1])
        return _error_response(
            f"Invalid value for {field}: {first.get('msg', 'invalid request')}",
            "VALIDATION_ERROR",
            400,
            {"field": field},
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(str(exc.detail), "HTTP_ERROR", exc.status_code)

    app.include_router(issue_routes.create_router(), prefix="/api")
    app.include_router(user_routes.create_router(), prefix="/api")

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return app


def main(port: int | None = None, *, host: str = "127.0.0.1") -> None:
    """Start the API server for the deployment found from the cwd."""
    import uvicorn

    from issuedesk.logging import setup_logging

    global _db

    issuedesk_dir = find_issuedesk_root()
    config = read_config(issuedesk_dir)
    setup_logging(issuedesk_dir)
    _db = IssueDeskDB(issuedesk_dir / DB_FILENAME, check_same_thread=False)
    _db.initialize()
    purged = _db.purge_expired_sessions()
    if purged:
        logger.info("Purged %d expired session(s)", purged)

    port = port or resolve_port(config)
    app = create_app()

    print(f"issuedesk: http://{host}:{port}")
    try:
        uvicorn.run(app, host=host, port=port, log_level="warning")
    finally:
        with contextlib.suppress(Exception):
            _db.close()
        _db = None
