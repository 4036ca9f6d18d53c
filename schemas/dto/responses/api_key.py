"""
Response DTOs for API key management endpoints.

ApiKeyResponse        — one key entry (list / get)
ApiKeyCreatedResponse — POST /api/auth/api-keys (201) — includes ``key`` once

The plaintext key is only ever rendered by ApiKeyCreatedResponse.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.api_key import ApiKeyDoc


class ApiKeyResponse(BaseModel):
    """A single API key entry without the key value."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    active: bool
    permission: str
    created_at: datetime
    expires_at: datetime
    last_used_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: ApiKeyDoc) -> "ApiKeyResponse":
        return cls(
            id=str(doc.id),
            name=doc.name,
            active=doc.active,
            permission=doc.permission.value,
            created_at=doc.created_at,
            expires_at=doc.expires_at,
            last_used_at=doc.last_used_at,
        )


class ApiKeyCreatedResponse(ApiKeyResponse):
    """Response for POST /api/auth/api-keys (201).

    Extends ApiKeyResponse by adding the full ``key``. This is the only time
    the key is returned.
    """

    key: str

    @classmethod
    def from_created(cls, doc: ApiKeyDoc, key: str) -> "ApiKeyCreatedResponse":
        return cls(**ApiKeyResponse.from_doc(doc).model_dump(), key=key)
