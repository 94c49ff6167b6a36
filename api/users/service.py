"""
User lifecycle business logic.

Expected outcomes (duplicates, missing users) are returned as `UserResult`
values; routers map them to HTTP responses.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import asyncpg
from fastapi.concurrency import run_in_threadpool

from auth import security
from core.settings import PasswordSettings

from . import repository, schemas

logger = logging.getLogger(__name__)


class UserOutcome(str, Enum):
    OK = "ok"
    DUPLICATE_USERNAME = "duplicate_username"
    DUPLICATE_EMAIL = "duplicate_email"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class UserResult:
    outcome: UserOutcome
    user: schemas.UserResponse | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is UserOutcome.OK


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=user_row["id"],
        username=str(user_row["username"]),
        email=str(user_row["email"]),
        first_name=str(user_row.get("first_name") or ""),
        last_name=str(user_row.get("last_name") or ""),
        created_at=user_row["created_at"],
        updated_at=user_row.get("updated_at"),
        is_active=bool(user_row["is_active"]),
    )


async def create_user(payload: schemas.CreateUserRequest, *, settings: PasswordSettings) -> UserResult:
    username = repository.normalize_username(payload.username)
    email = repository.normalize_email(payload.email)

    if await repository.get_user_by_username(username) is not None:
        logger.info("user_create_rejected reason=duplicate_username username=%s", username)
        return UserResult(UserOutcome.DUPLICATE_USERNAME)

    if await repository.get_user_by_email(email) is not None:
        logger.info("user_create_rejected reason=duplicate_email username=%s", username)
        return UserResult(UserOutcome.DUPLICATE_EMAIL)

    # Key derivation is CPU-bound; run it off the event loop.
    password_hash = await run_in_threadpool(security.hash_password, payload.password, settings=settings)

    try:
        user_row = await repository.create_user(
            user_id=uuid.uuid4(),
            username=username,
            email=email,
            password_hash=password_hash,
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            created_at=_utc_now(),
        )
    except asyncpg.exceptions.UniqueViolationError as exc:
        # Lost a race with a concurrent insert of the same username/email.
        if getattr(exc, "constraint_name", None) == repository.EMAIL_CONSTRAINT:
            return UserResult(UserOutcome.DUPLICATE_EMAIL)
        return UserResult(UserOutcome.DUPLICATE_USERNAME)

    logger.info("user_created user_id=%s username=%s", user_row["id"], username)
    return UserResult(UserOutcome.OK, to_user_response(user_row))


async def get_user(user_id: uuid.UUID) -> schemas.UserResponse | None:
    user_row = await repository.get_user_by_id(user_id)
    return to_user_response(user_row) if user_row is not None else None


async def list_users() -> list[schemas.UserResponse]:
    return [to_user_response(row) for row in await repository.list_users()]


async def update_user(user_id: uuid.UUID, payload: schemas.UpdateUserRequest) -> UserResult:
    user_row = await repository.get_user_by_id(user_id)
    if user_row is None:
        return UserResult(UserOutcome.NOT_FOUND)

    email = str(user_row["email"])
    if payload.email is not None:
        email = repository.normalize_email(payload.email)
        existing = await repository.get_user_by_email(email)
        if existing is not None and existing["id"] != user_row["id"]:
            logger.info("user_update_rejected reason=duplicate_email user_id=%s", user_id)
            return UserResult(UserOutcome.DUPLICATE_EMAIL)

    first_name = str(user_row.get("first_name") or "")
    if payload.first_name is not None:
        first_name = payload.first_name.strip()

    last_name = str(user_row.get("last_name") or "")
    if payload.last_name is not None:
        last_name = payload.last_name.strip()

    is_active = bool(user_row["is_active"])
    if payload.is_active is not None:
        is_active = payload.is_active

    try:
        updated_row = await repository.update_user(
            user_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
            updated_at=_utc_now(),
        )
    except asyncpg.exceptions.UniqueViolationError:
        return UserResult(UserOutcome.DUPLICATE_EMAIL)

    # Deleted between the read and the write.
    if updated_row is None:
        return UserResult(UserOutcome.NOT_FOUND)

    logger.info("user_updated user_id=%s", user_id)
    return UserResult(UserOutcome.OK, to_user_response(updated_row))


async def delete_user(user_id: uuid.UUID) -> bool:
    deleted = await repository.delete_user(user_id)
    if deleted:
        logger.info("user_deleted user_id=%s", user_id)
    return deleted
