"""
User document model.

Maps to the `users` MongoDB collection.

username and email are unique (enforced by indexes). Once created, only
role, active, password_hash, updated_at and last_login_at change.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    READ_ONLY = "READ_ONLY"


class UserDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    username: str
    email: str
    password_hash: str = Field(repr=False)
    role: UserRole = UserRole.USER
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
