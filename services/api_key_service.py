"""
API key service — issue, verify, list and soft-revoke long-lived API keys.

Keys are 32-character opaque strings from a CSPRNG. The plaintext is handed
back exactly once, from generate(); list() and get() return documents whose
key value the response layer never renders.

verify() is what the request-time dispatcher calls. Its failures collapse to
a single InvalidApiKeyError so callers cannot tell "unknown" from "revoked"
from "expired" from "owner deactivated"; the distinction only appears in
logs (by key id, never by key value).
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from pymongo.errors import DuplicateKeyError

from errors import AppError, InvalidApiKeyError, NotFoundError, ValidationError
from repositories.api_key_repository import ApiKeyRepository
from repositories.user_repository import UserRepository
from schemas.models.api_key import ApiKeyDoc, ApiKeyPermission
from services.token_codec import utc_now
from shared.generators import API_KEY_LENGTH, generate_api_key
from shared.logging import get_logger

log = get_logger(__name__)

MAX_GENERATION_ATTEMPTS = 10


class ApiKeyService:
    def __init__(
        self,
        api_keys: ApiKeyRepository,
        users: UserRepository,
        clock: Optional[Callable[[], datetime]] = None,
        key_factory: Callable[[int], str] = generate_api_key,
    ) -> None:
        self._api_keys = api_keys
        self._users = users
        self._clock = clock or utc_now
        self._key_factory = key_factory

    async def generate(
        self,
        owner_id: Any,
        name: str,
        permission: ApiKeyPermission,
        ttl: timedelta,
    ) -> tuple[ApiKeyDoc, str]:
        """Create and persist a new key for *owner_id*.

        Returns:
            The stored document (with its id) and the plaintext key. The
            plaintext is not retrievable again after this call.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("API key name is required", field="name")
        if ttl <= timedelta(0):
            raise ValidationError("API key expiry must be in the future", field="expires_in_days")

        owner = await self._users.find_by_id(owner_id)
        if owner is None:
            raise NotFoundError("User not found")
        if not owner.active:
            log.warning("api_key_creation_blocked", reason="inactive_user", user_id=str(owner.id))
            raise ValidationError("User account is inactive")

        for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
            key = self._key_factory(API_KEY_LENGTH)
            if await self._api_keys.key_exists(key):
                log.warning("api_key_collision", attempt=attempt)
                continue

            now = self._clock()
            doc = ApiKeyDoc(
                user_id=owner.id,
                key=key,
                name=name,
                active=True,
                permission=permission,
                created_at=now,
                expires_at=now + ttl,
            )
            try:
                doc.id = await self._api_keys.insert(doc)
            except DuplicateKeyError:
                # Lost a race against a concurrent insert of the same value
                log.warning("api_key_collision", attempt=attempt, stage="insert")
                continue

            log.info(
                "api_key_created",
                user_id=str(owner.id),
                key_id=str(doc.id),
                permission=permission.value,
                expires_at=doc.expires_at.isoformat(),
            )
            return doc, key

        log.error("api_key_creation_failed", user_id=str(owner.id), reason="collisions")
        raise AppError(
            f"Failed to generate a unique API key after {MAX_GENERATION_ATTEMPTS} attempts"
        )

    async def verify(self, presented_key: str) -> ApiKeyDoc:
        """Return the key document for a usable key or raise InvalidApiKeyError."""
        if not presented_key:
            raise InvalidApiKeyError()

        doc = await self._api_keys.find_by_key(presented_key)
        if doc is None:
            log.warning("api_key_invalid", reason="not_found")
            raise InvalidApiKeyError()

        now = self._clock()
        if not doc.is_usable(now):
            if not doc.active:
                log.warning("api_key_invalid", reason="revoked", key_id=str(doc.id))
            else:
                log.warning(
                    "api_key_invalid",
                    reason="expired",
                    key_id=str(doc.id),
                    expired_at=doc.expires_at.isoformat(),
                )
            raise InvalidApiKeyError()

        # A key never outlives its owner's account
        owner = await self._users.find_by_id(doc.user_id)
        if owner is None or not owner.active:
            log.warning(
                "api_key_invalid",
                reason="inactive_owner",
                key_id=str(doc.id),
                user_id=str(doc.user_id),
            )
            raise InvalidApiKeyError()

        await self._record_last_used(doc, now)
        return doc

    async def _record_last_used(self, doc: ApiKeyDoc, now: datetime) -> None:
        # A failed timestamp write never fails the authentication decision
        try:
            await self._api_keys.touch_last_used(doc.id, now)
            doc.last_used_at = now
        except Exception as e:
            log.warning(
                "last_used_update_failed",
                key_id=str(doc.id),
                error=str(e),
                error_type=type(e).__name__,
            )

    async def revoke(self, owner_id: Any, key_id: Any) -> None:
        """Soft-revoke *key_id*; NotFoundError when it is not *owner_id*'s key."""
        if not await self._api_keys.deactivate(key_id, owner_id):
            log.warning("api_key_revoke_failed", reason="not_found_or_not_owner", key_id=str(key_id))
            raise NotFoundError("API key not found")
        log.info("api_key_revoked", user_id=str(owner_id), key_id=str(key_id))

    async def list(self, owner_id: Any) -> list[ApiKeyDoc]:
        return await self._api_keys.list_by_owner(owner_id)

    async def get(self, owner_id: Any, key_id: Any) -> ApiKeyDoc:
        doc = await self._api_keys.find_for_owner(key_id, owner_id)
        if doc is None:
            raise NotFoundError("API key not found")
        return doc
