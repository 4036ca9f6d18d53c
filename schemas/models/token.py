"""
Signed-token value types.

Tokens are never persisted: these types describe what is embedded in, and
read back from, the signed JWT payload.

ClientType decides lifetimes:
    WEB  — access 15 minutes, refresh 7 days
    CLI  — access 1 day,      refresh 90 days
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class ClientType(str, Enum):
    CLI = "CLI"
    WEB = "WEB"

    @classmethod
    def parse(cls, value: object) -> "ClientType":
        """Case-insensitive parse; anything unrecognised falls back to WEB."""
        if isinstance(value, ClientType):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.WEB


TOKEN_LIFETIMES: dict[tuple[TokenKind, ClientType], timedelta] = {
    (TokenKind.ACCESS, ClientType.WEB): timedelta(minutes=15),
    (TokenKind.REFRESH, ClientType.WEB): timedelta(days=7),
    (TokenKind.ACCESS, ClientType.CLI): timedelta(days=1),
    (TokenKind.REFRESH, ClientType.CLI): timedelta(days=90),
}


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a signed token."""

    subject: str
    kind: TokenKind
    client_type: ClientType
    token_id: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    """An access token and refresh token issued together."""

    access_token: str
    refresh_token: str
    access_claims: TokenClaims
    refresh_claims: TokenClaims
