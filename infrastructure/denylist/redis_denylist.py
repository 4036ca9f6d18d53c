"""Redis-backed refresh-token denylist.

A revoked token id is stored under ``token_denylist:<jti>`` with a TTL equal
to the time left until the token's own expiry, so entries vanish exactly when
the token would have become invalid anyway.

Redis is optional. With no client configured the denylist is disabled:
revoke() is a no-op and is_revoked() is always False, which means an old
refresh token stays usable until its expiry. Redis errors are logged and
treated the same way (fail open), matching how the rest of the service
degrades without Redis.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

import redis.asyncio as aioredis

from shared.logging import get_logger

log = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RedisTokenDenylist:
    def __init__(
        self,
        redis_client: Optional[aioredis.Redis],
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._redis = redis_client
        self._clock = clock or _utc_now

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    def _key(self, token_id: str) -> str:
        return f"token_denylist:{token_id}"

    async def revoke(self, token_id: str, expires_at: datetime) -> None:
        if self._redis is None:
            return
        ttl_seconds = int((expires_at - self._clock()).total_seconds()) + 1
        if ttl_seconds <= 0:
            # Already expired; nothing left to deny
            return
        try:
            await self._redis.setex(self._key(token_id), ttl_seconds, "1")
            log.info("refresh_token_denylisted", token_id=token_id, ttl_seconds=ttl_seconds)
        except Exception as e:
            log.error(
                "token_denylist_write_error",
                token_id=token_id,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def is_revoked(self, token_id: str) -> bool:
        if self._redis is None:
            return False
        try:
            return bool(await self._redis.exists(self._key(token_id)))
        except Exception as e:
            log.error(
                "token_denylist_read_error",
                token_id=token_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def ping(self) -> bool:
        if self._redis is None:
            return False
        await self._redis.ping()
        return True
