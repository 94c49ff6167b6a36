"""
User API endpoints.

Creating an account is open; every other route needs a bearer token.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status

from auth import dependencies as auth_dependencies
from core.settings import Settings, get_settings

from . import schemas, service
from .service import UserOutcome, UserResult

router = APIRouter()


def _unwrap(
    result: UserResult,
    *,
    user_id: uuid.UUID | None = None,
    username: str = "",
    email: str = "",
) -> schemas.UserResponse:
    if result.outcome is UserOutcome.DUPLICATE_USERNAME:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Username '{username}' already exists.",
        )
    if result.outcome is UserOutcome.DUPLICATE_EMAIL:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Email '{email}' already exists.",
        )
    if result.outcome is UserOutcome.NOT_FOUND or result.user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID '{user_id}' not found.",
        )
    return result.user


@router.post("/api/users", status_code=status.HTTP_201_CREATED, response_model=schemas.UserResponse)
async def create_user(
    request: schemas.CreateUserRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> schemas.UserResponse:
    result = await service.create_user(request, settings=settings.password)
    user = _unwrap(result, username=request.username, email=request.email)
    response.headers["Location"] = f"/api/users/{user.id}"
    return user


@router.get("/api/users", response_model=list[schemas.UserResponse])
async def list_users(
    _: dict = Depends(auth_dependencies.get_current_user),
) -> list[schemas.UserResponse]:
    return await service.list_users()


@router.get("/api/users/{user_id}", response_model=schemas.UserResponse)
async def get_user(
    user_id: uuid.UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.UserResponse:
    user = await service.get_user(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID '{user_id}' not found.",
        )
    return user


@router.put("/api/users/{user_id}", response_model=schemas.UserResponse)
async def update_user(
    user_id: uuid.UUID,
    request: schemas.UpdateUserRequest,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.UserResponse:
    result = await service.update_user(user_id, request)
    return _unwrap(result, user_id=user_id, email=request.email or "")


@router.delete("/api/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_user(
    user_id: uuid.UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> Response:
    if not await service.delete_user(user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID '{user_id}' not found.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
