"""
Signed token codec — issues and verifies HS256 JWTs.

Claims:
    sub          user id
    type         "access" | "refresh"
    client_type  "CLI" | "WEB"
    jti          unique token id (fresh per token)
    iat / exp    issued-at / expiry, Unix seconds
    iss / aud    from JWTSettings

Verification is pure: it checks signature, issuer, audience, structure and
expiry, and never touches a store. A token therefore stays structurally valid
until its expiry even if its subject is deactivated; callers check the user.

Expiry has no grace window: a token is expired from the instant ``now >= exp``.
The check is done here against the injected clock rather than by PyJWT so the
boundary is exact to the sub-second.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import jwt

from config import MIN_JWT_SECRET_LENGTH, JWTSettings
from errors import (
    ConfigurationError,
    ExpiredTokenError,
    InvalidTokenError,
    MalformedTokenError,
)
from schemas.models.token import (
    TOKEN_LIFETIMES,
    ClientType,
    TokenClaims,
    TokenKind,
    TokenPair,
)
from shared.generators import generate_token_id
from shared.logging import get_logger

log = get_logger(__name__)

ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["sub", "type", "client_type", "jti", "iat", "exp"]

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    def __init__(self, settings: JWTSettings, clock: Optional[Clock] = None) -> None:
        secret = settings.jwt_secret or ""
        if len(secret) < MIN_JWT_SECRET_LENGTH:
            raise ConfigurationError(
                f"JWT secret must be at least {MIN_JWT_SECRET_LENGTH} characters "
                f"(256 bits) for {ALGORITHM}"
            )
        self._secret = secret
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._clock = clock or utc_now

    @staticmethod
    def lifetime(kind: TokenKind, client_type: ClientType) -> timedelta:
        return TOKEN_LIFETIMES[(kind, client_type)]

    def issue(self, subject: str, kind: TokenKind, client_type: ClientType) -> str:
        token, _ = self._issue(subject, kind, client_type)
        return token

    def issue_pair(self, subject: str, client_type: ClientType) -> TokenPair:
        access_token, access_claims = self._issue(subject, TokenKind.ACCESS, client_type)
        refresh_token, refresh_claims = self._issue(
            subject, TokenKind.REFRESH, client_type
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_claims=access_claims,
            refresh_claims=refresh_claims,
        )

    def _issue(
        self, subject: str, kind: TokenKind, client_type: ClientType
    ) -> tuple[str, TokenClaims]:
        if not subject:
            raise ValueError("subject must not be empty")
        issued_at = int(self._clock().timestamp())
        expires_at = issued_at + int(self.lifetime(kind, client_type).total_seconds())
        token_id = generate_token_id()
        payload = {
            "iss": self._issuer,
            "aud": self._audience,
            "sub": str(subject),
            "type": kind.value,
            "client_type": client_type.value,
            "jti": token_id,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        claims = TokenClaims(
            subject=str(subject),
            kind=kind,
            client_type=client_type,
            token_id=token_id,
            issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        )
        return token, claims

    def verify(self, token: str) -> TokenClaims:
        """Decode and validate *token*.

        Raises:
            InvalidTokenError: bad signature, algorithm, issuer or audience.
            ExpiredTokenError: the expiry instant has passed.
            MalformedTokenError: undecodable or missing/unknown claims.
        """
        if not isinstance(token, str) or not token.strip():
            raise MalformedTokenError()
        payload = self._decode(token.strip())
        claims = self._parse_claims(payload)
        if self._clock().timestamp() >= claims.expires_at.timestamp():
            log.debug("token_expired", token_id=claims.token_id, kind=claims.kind.value)
            raise ExpiredTokenError()
        return claims

    def _decode(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                options={
                    "require": _REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.InvalidSignatureError:
            log.debug("token_rejected", reason="bad_signature")
            raise InvalidTokenError()
        except jwt.MissingRequiredClaimError as e:
            log.debug("token_rejected", reason="missing_claim", claim=e.claim)
            raise MalformedTokenError()
        except jwt.DecodeError:
            log.debug("token_rejected", reason="undecodable")
            raise MalformedTokenError()
        except (jwt.InvalidAudienceError, jwt.InvalidIssuerError):
            log.debug("token_rejected", reason="wrong_issuer_or_audience")
            raise InvalidTokenError()
        except jwt.InvalidTokenError as e:
            log.debug("token_rejected", reason="invalid", error_type=type(e).__name__)
            raise InvalidTokenError()

    @staticmethod
    def _parse_claims(payload: dict[str, Any]) -> TokenClaims:
        subject = payload.get("sub")
        token_id = payload.get("jti")
        if not isinstance(subject, str) or not subject:
            raise MalformedTokenError()
        if not isinstance(token_id, str) or not token_id:
            raise MalformedTokenError()
        try:
            kind = TokenKind(payload.get("type"))
            client_type = ClientType(payload.get("client_type"))
            issued_at = datetime.fromtimestamp(float(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(float(payload["exp"]), tz=timezone.utc)
        except (ValueError, TypeError, OverflowError, OSError):
            raise MalformedTokenError()
        return TokenClaims(
            subject=subject,
            kind=kind,
            client_type=client_type,
            token_id=token_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )
