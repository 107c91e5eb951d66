"""Fixtures for HTTP API tests (FastAPI)."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

import issuedesk.dashboard as dash_module
from issuedesk.dashboard import create_app
from tests.conftest import PopulatedDB


@pytest.fixture
def tokens(populated_db: PopulatedDB) -> dict[str, str]:
    """Live session tokens for the populated users, keyed like ``populated_db.ids``."""
    db = populated_db.db
    return {who: db.create_session(populated_db.ids[who], ttl_hours=1) for who in ("admin", "user", "other")}


@pytest.fixture
async def client(populated_db: PopulatedDB) -> AsyncIterator[AsyncClient]:
    """Unauthenticated test client backed by the populated DB."""
    dash_module._db = populated_db.db
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    dash_module._db = None


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
