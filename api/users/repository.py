"""
User persistence helpers.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from core import db

# Unique constraint names, used to tell duplicate usernames from duplicate emails
# when an insert loses a race.
USERNAME_CONSTRAINT = "users_username_key"
EMAIL_CONSTRAINT = "users_email_key"

USER_COLUMNS = """
    id, username, email, password_hash, first_name, last_name,
    created_at, updated_at, is_active
"""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def normalize_username(username: str) -> str:
    return (username or "").strip()


def _utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


async def ensure_schema() -> None:
    await db.execute(
        f"""
        CREATE TABLE IF NOT EXISTS users (
            id            UUID PRIMARY KEY,
            username      VARCHAR(50)  NOT NULL,
            email         VARCHAR(100) NOT NULL,
            password_hash TEXT         NOT NULL,
            first_name    VARCHAR(50)  NOT NULL DEFAULT '',
            last_name     VARCHAR(50)  NOT NULL DEFAULT '',
            created_at    TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at    TIMESTAMPTZ,
            is_active     BOOLEAN      NOT NULL DEFAULT TRUE,
            CONSTRAINT {USERNAME_CONSTRAINT} UNIQUE (username),
            CONSTRAINT {EMAIL_CONSTRAINT} UNIQUE (email)
        )
        """
    )


async def create_user(
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
    row = await db.fetch_one(
        f"""
        INSERT INTO users (id, username, email, password_hash, first_name, last_name, created_at, is_active)
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
        RETURNING {USER_COLUMNS}
        """,
        user_id,
        normalize_username(username),
        normalize_email(email),
        password_hash,
        first_name,
        last_name,
        _utc(created_at),
        is_active,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_username(username: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE username = $1
        """,
        normalize_username(username),
    )


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: uuid.UUID) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE id = $1
        """,
        user_id,
    )


async def list_users() -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        ORDER BY created_at, username
        """
    )


async def update_user(
    user_id: uuid.UUID,
    *,
    email: str,
    first_name: str,
    last_name: str,
    is_active: bool,
    updated_at: datetime,
) -> dict | None:
    return await db.fetch_one(
        f"""
        UPDATE users
        SET email = $2,
            first_name = $3,
            last_name = $4,
            is_active = $5,
            updated_at = $6
        WHERE id = $1
        RETURNING {USER_COLUMNS}
        """,
        user_id,
        normalize_email(email),
        first_name,
        last_name,
        is_active,
        _utc(updated_at),
    )


async def delete_user(user_id: uuid.UUID) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM users
        WHERE id = $1
        RETURNING id
        """,
        user_id,
    )
    return row is not None
