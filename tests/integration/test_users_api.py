"""Integration tests for /api/users endpoints."""

import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient

pytestmark = pytest.mark.integration


def _user_payload(prefix: str, **overrides) -> dict:
    suffix = uuid.uuid4().hex[:12]
    payload = {
        "username": f"{prefix}_{suffix}",
        "email": f"{prefix}_{suffix}@example.com",
        "password": "Password123!",
        "first_name": prefix.title(),
        "last_name": "User",
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def auth_headers(client: AsyncClient) -> dict:
    payload = _user_payload("authuser")
    await client.post("/api/users", json=payload)
    login = await client.post(
        "/api/auth/login",
        json={"username": payload["username"], "password": payload["password"]},
    )
    return {"Authorization": f"Bearer {login.json()['token']}"}


class TestCreateUser:
    async def test_create_user(self, client: AsyncClient):
        payload = _user_payload("newuser")

        response = await client.post("/api/users", json=payload)

        assert response.status_code == 201
        user = response.json()
        assert user["username"] == payload["username"]
        assert user["email"] == payload["email"]
        assert user["first_name"] == payload["first_name"]
        assert user["last_name"] == payload["last_name"]
        assert user["is_active"] is True
        assert user["updated_at"] is None
        assert "password" not in user and "password_hash" not in user
        assert response.headers["location"] == f"/api/users/{user['id']}"

    async def test_duplicate_username(self, client: AsyncClient):
        first = _user_payload("duplicate")
        second = _user_payload("duplicate", username=first["username"])

        await client.post("/api/users", json=first)
        response = await client.post("/api/users", json=second)

        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    async def test_duplicate_email(self, client: AsyncClient):
        first = _user_payload("dupemail")
        second = _user_payload("dupemail", email=first["email"].upper())

        await client.post("/api/users", json=first)
        response = await client.post("/api/users", json=second)

        assert response.status_code == 400

    async def test_short_password(self, client: AsyncClient):
        response = await client.post("/api/users", json=_user_payload("shortpw", password="short"))

        assert response.status_code == 422

    @pytest.mark.parametrize("field", ["username", "email"])
    async def test_blank_identity_field(self, client: AsyncClient, user_store, field: str):
        response = await client.post("/api/users", json=_user_payload("blank", **{field: "   "}))

        assert response.status_code == 422
        assert user_store.rows == {}

    async def test_surrounding_whitespace_is_trimmed(self, client: AsyncClient):
        payload = _user_payload("padded")

        response = await client.post(
            "/api/users",
            json={**payload, "username": f"  {payload['username']} ", "email": f" {payload['email']}  "},
        )

        assert response.status_code == 201
        assert response.json()["username"] == payload["username"]
        assert response.json()["email"] == payload["email"]


class TestReadUsers:
    async def test_list_requires_authentication(self, client: AsyncClient):
        response = await client.get("/api/users")

        assert response.status_code == 401

    async def test_list_users(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/users", headers=auth_headers)

        assert response.status_code == 200
        users = response.json()
        assert isinstance(users, list)
        assert len(users) == 1

    async def test_get_user(self, client: AsyncClient, auth_headers: dict):
        payload = _user_payload("getuser")
        created = (await client.post("/api/users", json=payload)).json()

        response = await client.get(f"/api/users/{created['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]
        assert response.json()["username"] == payload["username"]

    async def test_get_missing_user(self, client: AsyncClient, auth_headers: dict):
        response = await client.get(f"/api/users/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    async def test_get_with_malformed_id(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/users/not-a-uuid", headers=auth_headers)

        assert response.status_code == 422


class TestUpdateUser:
    async def test_update_user(self, client: AsyncClient, auth_headers: dict):
        created = (await client.post("/api/users", json=_user_payload("updateuser"))).json()
        new_email = f"updated_{uuid.uuid4().hex[:12]}@example.com"

        response = await client.put(
            f"/api/users/{created['id']}",
            json={"email": new_email, "first_name": "Updated", "last_name": "Name", "is_active": True},
            headers=auth_headers,
        )

        assert response.status_code == 200
        user = response.json()
        assert user["email"] == new_email
        assert user["first_name"] == "Updated"
        assert user["last_name"] == "Name"
        assert user["updated_at"] is not None

    async def test_update_to_taken_email(self, client: AsyncClient, auth_headers: dict):
        first = (await client.post("/api/users", json=_user_payload("first"))).json()
        second = (await client.post("/api/users", json=_user_payload("second"))).json()

        response = await client.put(
            f"/api/users/{first['id']}",
            json={"email": second["email"]},
            headers=auth_headers,
        )

        assert response.status_code == 400

    async def test_update_to_blank_email(self, client: AsyncClient, auth_headers: dict):
        created = (await client.post("/api/users", json=_user_payload("blankemail"))).json()

        response = await client.put(f"/api/users/{created['id']}", json={"email": "   "}, headers=auth_headers)

        assert response.status_code == 422

    async def test_update_missing_user(self, client: AsyncClient, auth_headers: dict):
        response = await client.put(
            f"/api/users/{uuid.uuid4()}",
            json={"first_name": "Nobody"},
            headers=auth_headers,
        )

        assert response.status_code == 404

    async def test_update_requires_authentication(self, client: AsyncClient):
        response = await client.put(f"/api/users/{uuid.uuid4()}", json={"first_name": "x"})

        assert response.status_code == 401


class TestDeleteUser:
    async def test_delete_user(self, client: AsyncClient, auth_headers: dict):
        created = (await client.post("/api/users", json=_user_payload("deleteuser"))).json()

        response = await client.delete(f"/api/users/{created['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert response.content == b""
        missing = await client.get(f"/api/users/{created['id']}", headers=auth_headers)
        assert missing.status_code == 404

    async def test_delete_missing_user(self, client: AsyncClient, auth_headers: dict):
        response = await client.delete(f"/api/users/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    async def test_deactivated_user_token_stops_working(self, client: AsyncClient, auth_headers: dict):
        me = (await client.get("/api/auth/me", headers=auth_headers)).json()

        await client.put(f"/api/users/{me['id']}", json={"is_active": False}, headers=auth_headers)
        response = await client.get("/api/users", headers=auth_headers)

        assert response.status_code == 403
