"""HTTP API tests for issues and comments."""

from __future__ import annotations

from httpx import AsyncClient

from tests.api.conftest import auth
from tests.conftest import PopulatedDB


class TestHealthAndIdentity:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    async def test_me_unauthenticated(self, client: AsyncClient) -> None:
        resp = await client.get("/api/me")
        assert resp.status_code == 200
        body = resp.json()
        assert body["authenticated"] is False
        assert body["capabilities"] == {"can_edit_issue": False, "can_comment": False, "can_manage_users": False}

    async def test_me_as_user(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        resp = await client.get("/api/me", headers=auth(tokens["user"]))
        body = resp.json()
        assert body["user_id"] == populated_db.ids["user"]
        assert body["role"] == "user"
        assert body["capabilities"]["can_comment"] is True

    async def test_cookie_session(self, client: AsyncClient, tokens: dict[str, str]) -> None:
        client.cookies.set("issuedesk_session", tokens["admin"])
        resp = await client.get("/api/me")
        assert resp.json()["role"] == "admin"

    async def test_unauthenticated_read_is_401(self, client: AsyncClient) -> None:
        resp = await client.get("/api/issues")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHENTICATED"

    async def test_bad_token_is_401(self, client: AsyncClient) -> None:
        resp = await client.get("/api/issues", headers=auth("forged"))
        assert resp.status_code == 401


class TestIssueReads:
    async def test_list(self, client: AsyncClient, tokens: dict[str, str]) -> None:
        resp = await client.get("/api/issues", headers=auth(tokens["user"]))
        assert resp.status_code == 200
        assert len(resp.json()) == 3

    async def test_list_filtered(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        resp = await client.get("/api/issues?status=closed", headers=auth(tokens["user"]))
        assert [i["id"] for i in resp.json()] == [populated_db.ids["closed"]]

    async def test_list_bad_status(self, client: AsyncClient, tokens: dict[str, str]) -> None:
        resp = await client.get("/api/issues?status=pending", headers=auth(tokens["user"]))
        assert resp.status_code == 400
        assert resp.json()["error"]["details"] == {"field": "status"}

    async def test_detail(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        resp = await client.get(f"/api/issue/{populated_db.ids['open']}", headers=auth(tokens["user"]))
        assert resp.status_code == 200
        body = resp.json()
        assert body["title"] == "Login broken"
        assert body["can_edit"] is False
        assert body["can_comment"] is True
        assert body["comments"][0]["author_first_name"] == "Uma"

    async def test_detail_missing(self, client: AsyncClient, tokens: dict[str, str]) -> None:
        resp = await client.get("/api/issue/999", headers=auth(tokens["user"]))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    async def test_non_integer_id(self, client: AsyncClient, tokens: dict[str, str]) -> None:
        resp = await client.get("/api/issue/abc", headers=auth(tokens["user"]))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


class TestIssueMutations:
    async def test_create(self, client: AsyncClient, tokens: dict[str, str]) -> None:
        resp = await client.post("/api/issues", json={"title": "New", "priority": "Low"}, headers=auth(tokens["admin"]))
        assert resp.status_code == 201
        body = resp.json()
        assert body["outcome"] == "created"
        assert body["data"]["priority"] == "Low"

    async def test_create_forbidden_for_user(self, client: AsyncClient, tokens: dict[str, str]) -> None:
        resp = await client.post("/api/issues", json={"title": "New"}, headers=auth(tokens["user"]))
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"

    async def test_update(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        resp = await client.patch(
            f"/api/issue/{populated_db.ids['open']}",
            json={"title": "Bug", "description": "", "priority": "High"},
            headers=auth(tokens["admin"]),
        )
        assert resp.status_code == 200
        assert resp.json()["outcome"] == "updated"
        assert resp.json()["message"] == "Issue updated successfully!"

    async def test_update_keeps_omitted_description(
        self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB
    ) -> None:
        resp = await client.patch(
            f"/api/issue/{populated_db.ids['open']}",
            json={"title": "Login broken hard", "priority": "High"},
            headers=auth(tokens["admin"]),
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["title"] == "Login broken hard"
        assert data["description"] == "500 on submit"

    async def test_update_no_op(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        resp = await client.patch(
            f"/api/issue/{populated_db.ids['open']}",
            json={"title": "Login broken", "description": "500 on submit", "priority": "High"},
            headers=auth(tokens["admin"]),
        )
        assert resp.json()["outcome"] == "no_op"

    async def test_update_closed_is_409(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        resp = await client.patch(
            f"/api/issue/{populated_db.ids['closed']}",
            json={"title": "Reopen?", "priority": "High"},
            headers=auth(tokens["admin"]),
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == {
            "message": "Cannot update a closed issue.",
            "code": "ISSUE_CLOSED",
            "details": {"issue_id": populated_db.ids["closed"]},
        }

    async def test_update_empty_title(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        resp = await client.patch(
            f"/api/issue/{populated_db.ids['open']}",
            json={"title": "", "priority": "High"},
            headers=auth(tokens["admin"]),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Issue Title cannot be empty."
        assert resp.json()["error"]["details"] == {"field": "title"}

    async def test_update_forbidden_for_user(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        resp = await client.patch(
            f"/api/issue/{populated_db.ids['open']}",
            json={"title": "Bug", "priority": "High"},
            headers=auth(tokens["user"]),
        )
        assert resp.status_code == 403

    async def test_invalid_json_body(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        resp = await client.patch(
            f"/api/issue/{populated_db.ids['open']}",
            content=b"{broken",
            headers={**auth(tokens["admin"]), "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["details"] == {"field": "body"}

    async def test_close(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        url = f"/api/issue/{populated_db.ids['typo']}/close"
        resp = await client.post(url, headers=auth(tokens["admin"]))
        assert resp.status_code == 200
        assert resp.json()["outcome"] == "closed"
        again = await client.post(url, headers=auth(tokens["admin"]))
        assert again.status_code == 409


class TestComments:
    async def test_add_and_list(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        url = f"/api/issue/{populated_db.ids['open']}/comments"
        resp = await client.post(url, json={"comment": "Works for me"}, headers=auth(tokens["user"]))
        assert resp.status_code == 201
        assert resp.json()["message"] == "Comment added successfully!"

        listed = (await client.get(url, headers=auth(tokens["user"]))).json()
        assert listed[-1]["comment"] == "Works for me"

    async def test_whitespace_comment(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        url = f"/api/issue/{populated_db.ids['open']}/comments"
        resp = await client.post(url, json={"comment": "   "}, headers=auth(tokens["user"]))
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Comment cannot be empty."

    async def test_comment_on_closed(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        url = f"/api/issue/{populated_db.ids['closed']}/comments"
        resp = await client.post(url, json={"comment": "Still broken"}, headers=auth(tokens["user"]))
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "ISSUE_CLOSED"

    async def test_comment_unauthenticated(self, client: AsyncClient, populated_db: PopulatedDB) -> None:
        url = f"/api/issue/{populated_db.ids['open']}/comments"
        resp = await client.post(url, json={"comment": "anon"})
        assert resp.status_code == 401


class TestStorageFailure:
    async def test_generic_500(self, client: AsyncClient, tokens: dict[str, str], populated_db: PopulatedDB) -> None:
        db = populated_db.db
        db.conn.execute("DROP TABLE comments")
        db.conn.execute("DROP TABLE issues")
        resp = await client.get("/api/issues", headers=auth(tokens["user"]))
        assert resp.status_code == 500
        error = resp.json()["error"]
        assert error["code"] == "STORAGE_FAILURE"
        assert "no such table" not in error["message"]
