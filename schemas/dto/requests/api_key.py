"""
Request DTOs for API key management endpoints.

CreateApiKeyRequest — POST /api/auth/api-keys
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.models.api_key import ApiKeyPermission

ALLOWED_EXPIRY_DAYS = frozenset({30, 60, 90})


class CreateApiKeyRequest(BaseModel):
    """Request body for POST /api/auth/api-keys."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(max_length=255)
    permission: ApiKeyPermission = ApiKeyPermission.READ_ONLY
    # Every key expires; permanent keys are not offered
    expires_in_days: int

    @field_validator("name", mode="after")
    @classmethod
    def _name_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("expires_in_days", mode="after")
    @classmethod
    def _allowed_expiry(cls, v: int) -> int:
        if v not in ALLOWED_EXPIRY_DAYS:
            raise ValueError("expires_in_days must be one of: 30, 60, 90")
        return v
