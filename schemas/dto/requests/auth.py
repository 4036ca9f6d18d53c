"""
Request DTOs for authentication endpoints.

LoginRequest     — POST /api/auth/login
RegisterRequest  — POST /api/auth/register

Refresh and logout take no body: the refresh token comes from its cookie.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from schemas.models.token import ClientType

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=128)
    # CLI or WEB (case-insensitive); anything else falls back to WEB
    client_type: ClientType = ClientType.WEB

    @field_validator("client_type", mode="before")
    @classmethod
    def _parse_client_type(cls, v: object) -> ClientType:
        return ClientType.parse(v)


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("username", mode="after")
    @classmethod
    def _username_charset(cls, v: str) -> str:
        if not _USERNAME_RE.match(v):
            raise ValueError(
                "username may only contain letters, digits, '_', '.' and '-'"
            )
        return v
