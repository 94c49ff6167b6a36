"""
User API schemas (request/response models).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

# Surrounding whitespace is stripped before the length checks run.
Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Email = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)]
PersonName = Annotated[str, StringConstraints(strip_whitespace=True, max_length=50)]


class CreateUserRequest(BaseModel):
    username: Username
    email: Email
    password: str = Field(..., min_length=8, max_length=128)
    first_name: PersonName = ""
    last_name: PersonName = ""


class UpdateUserRequest(BaseModel):
    # Omitted (null) fields are left unchanged.
    email: Email | None = None
    first_name: PersonName | None = None
    last_name: PersonName | None = None
    is_active: bool | None = None


class UserResponse(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime | None = None
    is_active: bool
