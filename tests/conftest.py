"""
Shared fixtures.

The users repository is swapped for an in-memory store, so no database is
needed. Settings use the lowest allowed PBKDF2 work factor to keep tests fast.
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from core.settings import MIN_PBKDF2_ITERATIONS, JwtSettings, PasswordSettings, Settings, get_settings
from users import repository

TEST_SECRET = "test-signing-secret-that-is-long-enough-0123456789"


class InMemoryUserStore:
    """Dict-backed stand-in for `users.repository`."""

    def __init__(self) -> None:
        self.rows: dict[uuid.UUID, dict] = {}

    def _copy(self, row: dict | None) -> dict | None:
        return copy.deepcopy(row) if row is not None else None

    async def create_user(
        self,
        *,
        user_id: uuid.UUID,
        username: str,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        created_at: datetime,
        is_active: bool = True,
    ) -> dict:
        row = {
            "id": user_id,
            "username": repository.normalize_username(username),
            "email": repository.normalize_email(email),
            "password_hash": password_hash,
            "first_name": first_name,
            "last_name": last_name,
            "created_at": created_at,
            "updated_at": None,
            "is_active": is_active,
        }
        self.rows[user_id] = row
        return self._copy(row)

    async def get_user_by_username(self, username: str) -> dict | None:
        wanted = repository.normalize_username(username)
        return self._copy(next((r for r in self.rows.values() if r["username"] == wanted), None))

    async def get_user_by_email(self, email: str) -> dict | None:
        wanted = repository.normalize_email(email)
        return self._copy(next((r for r in self.rows.values() if r["email"] == wanted), None))

    async def get_user_by_id(self, user_id: uuid.UUID) -> dict | None:
        return self._copy(self.rows.get(user_id))

    async def list_users(self) -> list[dict]:
        rows = sorted(self.rows.values(), key=lambda r: (r["created_at"], r["username"]))
        return [self._copy(r) for r in rows]

    async def update_user(
        self,
        user_id: uuid.UUID,
        *,
        email: str,
        first_name: str,
        last_name: str,
        is_active: bool,
        updated_at: datetime,
    ) -> dict | None:
        row = self.rows.get(user_id)
        if row is None:
            return None
        row.update(
            email=repository.normalize_email(email),
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
            updated_at=updated_at,
        )
        return self._copy(row)

    async def delete_user(self, user_id: uuid.UUID) -> bool:
        return self.rows.pop(user_id, None) is not None


@pytest.fixture
def jwt_settings() -> JwtSettings:
    return JwtSettings(
        secret=TEST_SECRET,
        issuer="user-management-api",
        audience="user-management-clients",
        expire_minutes=60,
    )


@pytest.fixture
def password_settings() -> PasswordSettings:
    return PasswordSettings(pbkdf2_iterations=MIN_PBKDF2_ITERATIONS)


@pytest.fixture
def settings(jwt_settings: JwtSettings, password_settings: PasswordSettings) -> Settings:
    return Settings(jwt=jwt_settings, password=password_settings)


@pytest.fixture
def user_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryUserStore:
    store = InMemoryUserStore()
    for name in (
        "create_user",
        "get_user_by_username",
        "get_user_by_email",
        "get_user_by_id",
        "list_users",
        "update_user",
        "delete_user",
    ):
        monkeypatch.setattr(repository, name, getattr(store, name))
    return store


@pytest_asyncio.fixture
async def client(settings: Settings, user_store: InMemoryUserStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app; the lifespan (DB pool) is not started."""
    from main import app

    app.dependency_overrides[get_settings] = lambda: settings
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
