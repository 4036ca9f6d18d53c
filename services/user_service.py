"""
User service — registration and profile lookup.

Registration is a public route. A duplicate username or email produces one
generic ConflictError so the endpoint cannot be used to probe which of the
two is taken.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

from pymongo.errors import DuplicateKeyError

from errors import ConflictError, NotFoundError
from repositories.user_repository import UserRepository
from schemas.models.user import UserDoc, UserRole
from services.token_codec import utc_now
from shared.crypto import hash_password
from shared.logging import get_logger

log = get_logger(__name__)

_DUPLICATE_MESSAGE = "Registration failed: username or email already exists"


class UserService:
    def __init__(
        self,
        users: UserRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._users = users
        self._clock = clock or utc_now

    async def register(self, username: str, email: str, password: str) -> UserDoc:
        email = email.strip().lower()
        if await self._users.find_by_username(username) is not None:
            log.warning("registration_failed", reason="username_exists")
            raise ConflictError(_DUPLICATE_MESSAGE)
        if await self._users.find_by_email(email) is not None:
            log.warning("registration_failed", reason="email_exists")
            raise ConflictError(_DUPLICATE_MESSAGE)

        now = self._clock()
        user = UserDoc(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.USER,
            active=True,
            created_at=now,
            updated_at=now,
        )
        try:
            user.id = await self._users.insert(user)
        except DuplicateKeyError:
            # Race condition: registered between our check and insert
            log.warning("registration_failed", reason="race_condition_duplicate")
            raise ConflictError(_DUPLICATE_MESSAGE)

        log.info("user_registered", user_id=str(user.id), auth_method="password")
        return user

    async def get_profile(self, user_id: Any) -> UserDoc:
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
