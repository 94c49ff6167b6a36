"""
Auth business logic.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool

from core.settings import JwtSettings, PasswordSettings, Settings
from users import repository
from users.service import to_user_response

from . import schemas, security

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password."


def _verify_against_dummy(plain_password: str, settings: PasswordSettings) -> None:
    security.verify_password(plain_password, security.dummy_password_hash(settings))


async def login(payload: schemas.LoginRequest, *, settings: Settings) -> schemas.AuthResponse | None:
    """
    Check credentials and issue an access token.

    Returns None for an unknown user, an inactive user and a wrong password
    alike, so callers cannot tell which check failed.
    """
    username = repository.normalize_username(payload.username)
    user_row = await repository.get_user_by_username(username)

    reason = None
    if user_row is None:
        reason = "unknown_user"
    elif not bool(user_row.get("is_active", False)):
        reason = "inactive"
    if reason is not None:
        # Still run one key derivation so the response time matches a wrong password.
        await run_in_threadpool(_verify_against_dummy, payload.password, settings.password)
        logger.info("login_rejected reason=%s username=%s", reason, username)
        return None

    is_valid = await run_in_threadpool(
        security.verify_password,
        payload.password,
        str(user_row.get("password_hash") or ""),
    )
    if not is_valid:
        logger.info("login_rejected reason=bad_password username=%s", username)
        return None

    token = security.build_access_token(
        user_id=user_row["id"],
        username=str(user_row["username"]),
        email=str(user_row["email"]),
        settings=settings.jwt,
    )
    logger.info("login_succeeded user_id=%s", user_row["id"])
    return schemas.AuthResponse(token=token, user=to_user_response(user_row))


async def get_user_from_access_token(access_token: str, *, settings: JwtSettings) -> dict:
    claims = security.decode_access_token(access_token, settings=settings)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired access token.",
        )

    user_id = claims.user_id
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token subject.",
        )

    user_row = await repository.get_user_by_id(user_id)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )
    if not bool(user_row.get("is_active", False)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive.",
        )
    return user_row
