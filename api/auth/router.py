"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from core.settings import Settings, get_settings
from users.schemas import UserResponse
from users.service import to_user_response

from . import dependencies, schemas, service

router = APIRouter()


@router.post("/api/auth/login", response_model=schemas.AuthResponse)
async def login(
    request: schemas.LoginRequest,
    settings: Settings = Depends(get_settings),
) -> schemas.AuthResponse:
    result = await service.login(request, settings=settings)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=service.INVALID_CREDENTIALS,
        )
    return result


@router.get("/api/auth/me", response_model=UserResponse)
async def me(current_user: dict = Depends(dependencies.get_current_user)) -> UserResponse:
    return to_user_response(current_user)
