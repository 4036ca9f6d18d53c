"""
Token service — login, refresh-token rotation and logout.

login    credentials → (access, refresh) pair
refresh  refresh token → brand-new (access, refresh) pair with fresh jtis
logout   refresh token → best-effort revocation via the denylist

Refresh-token reuse: every refresh consults the denylist, and when
``revoke_rotated_refresh_tokens`` is on the presented token's jti is
denylisted until its own expiry once the new pair is issued. Without a
configured denylist backend an old refresh token remains valid until it
expires; the application logs this at startup.

Side effects that do not decide authentication (last_login_at updates,
denylist writes) never fail the caller: errors are logged and swallowed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from errors import (
    AuthenticationFailedError,
    InvalidTokenError,
)
from infrastructure.denylist.protocol import TokenDenylist
from repositories.user_repository import UserRepository
from schemas.models.token import ClientType, TokenClaims, TokenKind, TokenPair
from schemas.models.user import UserDoc
from services.token_codec import TokenCodec, utc_now
from shared.crypto import burn_password_check, verify_password
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class LoginResult:
    user: UserDoc
    tokens: TokenPair
    client_type: ClientType
    access_expires_in: timedelta
    refresh_expires_in: timedelta


class TokenService:
    def __init__(
        self,
        codec: TokenCodec,
        users: UserRepository,
        denylist: TokenDenylist,
        *,
        revoke_rotated_refresh_tokens: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._codec = codec
        self._users = users
        self._denylist = denylist
        self._revoke_rotated = revoke_rotated_refresh_tokens
        self._clock = clock or utc_now

    def _result(self, user: UserDoc, client_type: ClientType) -> LoginResult:
        return LoginResult(
            user=user,
            tokens=self._codec.issue_pair(str(user.id), client_type),
            client_type=client_type,
            access_expires_in=self._codec.lifetime(TokenKind.ACCESS, client_type),
            refresh_expires_in=self._codec.lifetime(TokenKind.REFRESH, client_type),
        )

    async def login(
        self, username: str, password: str, client_type: ClientType = ClientType.WEB
    ) -> LoginResult:
        user = await self._users.find_by_username(username)
        if user is None:
            burn_password_check(password)
            log.warning("login_failed", reason="invalid_credentials")
            raise AuthenticationFailedError()

        password_ok = verify_password(password, user.password_hash)
        if not user.active:
            log.warning("login_failed", reason="inactive_user", user_id=str(user.id))
            raise AuthenticationFailedError()
        if not password_ok:
            log.warning("login_failed", reason="invalid_password", user_id=str(user.id))
            raise AuthenticationFailedError()

        result = self._result(user, client_type)
        await self._touch_last_login(user)
        log.info(
            "login_success",
            user_id=str(user.id),
            client_type=client_type.value,
            auth_method="password",
        )
        return result

    async def refresh(self, refresh_token: str) -> LoginResult:
        claims = self._verify_refresh(refresh_token)

        if await self._denylist.is_revoked(claims.token_id):
            log.warning(
                "token_refresh_failed",
                reason="revoked",
                user_id=claims.subject,
                token_id=claims.token_id,
            )
            raise InvalidTokenError()

        user = await self._users.find_by_id(claims.subject)
        if user is None or not user.active:
            log.warning(
                "token_refresh_failed",
                reason="inactive_or_missing_user",
                user_id=claims.subject,
            )
            raise InvalidTokenError()

        result = self._result(user, claims.client_type)
        if self._revoke_rotated:
            try:
                await self._denylist.revoke(claims.token_id, claims.expires_at)
            except Exception as e:
                log.warning(
                    "rotated_token_revoke_failed",
                    user_id=str(user.id),
                    token_id=claims.token_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        await self._touch_last_login(user)
        log.info(
            "token_refreshed",
            user_id=str(user.id),
            client_type=claims.client_type.value,
            rotated_from=claims.token_id,
        )
        return result

    async def logout(self, refresh_token: Optional[str]) -> None:
        if not refresh_token:
            return
        try:
            claims = self._codec.verify(refresh_token)
        except InvalidTokenError:
            log.info("logout", outcome="token_already_invalid")
            return
        if claims.kind is not TokenKind.REFRESH:
            log.info("logout", outcome="not_a_refresh_token")
            return
        try:
            await self._denylist.revoke(claims.token_id, claims.expires_at)
        except Exception as e:
            log.warning("logout_revoke_failed", error=str(e), error_type=type(e).__name__)
        log.info("logout", user_id=claims.subject, outcome="revoked")

    async def authenticate_access_token(self, token: str) -> tuple[UserDoc, TokenClaims]:
        """Resolve an ACCESS token to its active user, or raise InvalidTokenError."""
        claims = self._codec.verify(token)
        if claims.kind is not TokenKind.ACCESS:
            log.warning("access_token_rejected", reason="wrong_kind", kind=claims.kind.value)
            raise InvalidTokenError()
        user = await self._users.find_by_id(claims.subject)
        if user is None or not user.active:
            log.warning(
                "access_token_rejected",
                reason="inactive_or_missing_user",
                user_id=claims.subject,
            )
            raise InvalidTokenError()
        return user, claims

    def _verify_refresh(self, refresh_token: str) -> TokenClaims:
        try:
            claims = self._codec.verify(refresh_token)
        except InvalidTokenError as e:
            log.warning("token_refresh_failed", reason=type(e).__name__)
            raise
        if claims.kind is not TokenKind.REFRESH:
            log.warning("token_refresh_failed", reason="wrong_kind", kind=claims.kind.value)
            raise InvalidTokenError()
        return claims

    async def _touch_last_login(self, user: UserDoc) -> None:
        now = self._clock()
        try:
            await self._users.update_last_login(user.id, now)
            user.last_login_at = now
        except Exception as e:
            log.warning(
                "last_login_update_failed",
                user_id=str(user.id),
                error=str(e),
                error_type=type(e).__name__,
            )
