"""TokenDenylist protocol — services depend on this, not the concrete implementation."""

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenDenylist(Protocol):
    enabled: bool

    async def revoke(self, token_id: str, expires_at: datetime) -> None: ...

    async def is_revoked(self, token_id: str) -> bool: ...

    async def ping(self) -> bool: ...
