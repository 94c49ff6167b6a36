"""
Auth API schemas (request/response models and token claims).
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from users.schemas import UserResponse


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class AuthResponse(BaseModel):
    token: str
    user: UserResponse
    token_type: str = "bearer"


class TokenClaims(BaseModel):
    """
    Identity claims carried by an access token.

    `sub` is the user id, `unique_name` the username. `jti` is unique per token.
    """

    sub: str
    unique_name: str
    email: str
    jti: str
    iss: str
    aud: str
    iat: int
    exp: int

    @property
    def user_id(self) -> uuid.UUID | None:
        try:
            return uuid.UUID(self.sub)
        except ValueError:
            return None
