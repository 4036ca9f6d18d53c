"""
API key document model.

Maps to the `api_keys` MongoDB collection.

`key` holds the opaque 32-character key and is looked up by direct equality.
It is returned to the owner once, in the creation response; it is excluded
from repr() so it never lands in logs or tracebacks. Keys are soft-revoked
(active=False) and never deleted in normal operation.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel, PyObjectId


class ApiKeyPermission(str, Enum):
    READ_ONLY = "READ_ONLY"
    READ_WRITE = "READ_WRITE"
    FULL_ACCESS = "FULL_ACCESS"


class ApiKeyDoc(MongoBaseModel):
    """Document model for the `api_keys` collection."""

    user_id: PyObjectId
    key: str = Field(repr=False)
    name: str
    active: bool = True
    permission: ApiKeyPermission = ApiKeyPermission.READ_ONLY
    created_at: datetime
    expires_at: datetime
    last_used_at: Optional[datetime] = None

    def is_usable(self, now: datetime) -> bool:
        """True while the key is active and *now* is before its expiry."""
        return self.active and now < self.expires_at
