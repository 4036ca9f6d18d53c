"""
Response DTOs for authentication endpoints.

UserResponse     — user profile (register, login, /me, api-key verify)
LoginResponse    — POST /api/auth/login  (200)
RefreshResponse  — POST /api/auth/refresh  (200)

The refresh token never appears in a body; it is set as a cookie.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.user import UserDoc

DEFAULT_TOKEN_TYPE = "Bearer"


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    email: str
    role: str
    active: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, user: UserDoc) -> "UserResponse":
        return cls(
            id=str(user.id),
            username=user.username,
            email=user.email,
            role=user.role.value,
            active=user.active,
            created_at=user.created_at,
            last_login_at=user.last_login_at,
        )


class LoginResponse(BaseModel):
    """Response body for POST /api/auth/login (200)."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    token_type: str = DEFAULT_TOKEN_TYPE
    expires_in: int  # seconds
    refresh_expires_in: int  # seconds
    client_type: str
    user: UserResponse


class RefreshResponse(BaseModel):
    """Response body for POST /api/auth/refresh (200)."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    token_type: str = DEFAULT_TOKEN_TYPE
    expires_in: int  # seconds
