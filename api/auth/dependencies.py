"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status

from core.settings import Settings, get_settings

from . import service


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_bearer_token(authorization: str | None) -> str:
    scheme, _, credentials = (authorization or "").strip().partition(" ")
    if not scheme:
        raise _unauthorized("Missing Authorization header.")

    # Scheme names are case-insensitive.
    token = credentials.strip()
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Authorization must be: Bearer <token>.")
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_user(
    access_token: str = Depends(get_bearer_token),
    settings: Settings = Depends(get_settings),
) -> dict:
    return await service.get_user_from_access_token(access_token, settings=settings.jwt)
