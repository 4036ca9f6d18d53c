"""
Request authentication — an ordered pipeline of credential strategies.

Each strategy inspects the request headers and returns an AuthResult:

    AUTHENTICATED       credential present and valid → principal bound
    NOT_APPLICABLE      strategy's credential not present
    INVALID_CREDENTIAL  credential present but rejected

CompositeAuthenticator evaluates strategies in order and stops at the first
AUTHENTICATED result. The default order is API key first, bearer token
second, so a request that carries both a valid API key and a valid bearer
token is always evaluated under the API key's scope. A rejected credential
does not stop the pipeline; if nothing authenticates the request stays
unauthenticated and protected routes reject it downstream.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Protocol, Sequence, Union

from errors import InvalidApiKeyError, InvalidTokenError
from schemas.models.api_key import ApiKeyPermission
from schemas.models.user import UserRole
from services.api_key_service import ApiKeyService
from services.token_service import TokenService
from shared.logging import get_logger

log = get_logger(__name__)

AUTHORIZATION_HEADER = "Authorization"
BEARER_SCHEME = "bearer"


class AuthMethod(str, Enum):
    API_KEY = "api_key"
    TOKEN = "token"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller and the single scope its request runs under."""

    user_id: str
    scope: Union[UserRole, ApiKeyPermission]
    method: AuthMethod
    api_key_id: Optional[str] = None
    token_id: Optional[str] = None


class AuthStatus(str, Enum):
    AUTHENTICATED = "authenticated"
    NOT_APPLICABLE = "not_applicable"
    INVALID_CREDENTIAL = "invalid_credential"


@dataclass(frozen=True)
class AuthResult:
    status: AuthStatus
    principal: Optional[Principal] = None

    @classmethod
    def authenticated(cls, principal: Principal) -> "AuthResult":
        return cls(AuthStatus.AUTHENTICATED, principal)

    @classmethod
    def not_applicable(cls) -> "AuthResult":
        return cls(AuthStatus.NOT_APPLICABLE)

    @classmethod
    def invalid(cls) -> "AuthResult":
        return cls(AuthStatus.INVALID_CREDENTIAL)


class AuthStrategy(Protocol):
    name: str

    async def authenticate(self, headers: Mapping[str, str]) -> AuthResult: ...


def get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup that works for plain dicts too."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def extract_bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    raw = get_header(headers, AUTHORIZATION_HEADER)
    if not raw:
        return None
    scheme, _, token = raw.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME:
        return None
    token = token.strip()
    return token or None


class ApiKeyStrategy:
    name = "api_key"

    def __init__(self, api_keys: ApiKeyService, header_name: str = "X-API-Key") -> None:
        self._api_keys = api_keys
        self._header_name = header_name

    async def authenticate(self, headers: Mapping[str, str]) -> AuthResult:
        presented = (get_header(headers, self._header_name) or "").strip()
        if not presented:
            return AuthResult.not_applicable()
        try:
            doc = await self._api_keys.verify(presented)
        except InvalidApiKeyError:
            return AuthResult.invalid()
        return AuthResult.authenticated(
            Principal(
                user_id=str(doc.user_id),
                scope=doc.permission,
                method=AuthMethod.API_KEY,
                api_key_id=str(doc.id),
            )
        )


class BearerTokenStrategy:
    name = "bearer_token"

    def __init__(self, tokens: TokenService) -> None:
        self._tokens = tokens

    async def authenticate(self, headers: Mapping[str, str]) -> AuthResult:
        token = extract_bearer_token(headers)
        if token is None:
            return AuthResult.not_applicable()
        try:
            user, claims = await self._tokens.authenticate_access_token(token)
        except InvalidTokenError:
            return AuthResult.invalid()
        return AuthResult.authenticated(
            Principal(
                user_id=str(user.id),
                scope=user.role,
                method=AuthMethod.TOKEN,
                token_id=claims.token_id,
            )
        )


class CompositeAuthenticator:
    def __init__(self, strategies: Sequence[AuthStrategy]) -> None:
        self._strategies = tuple(strategies)

    @property
    def strategies(self) -> tuple[AuthStrategy, ...]:
        return self._strategies

    async def authenticate(self, headers: Mapping[str, str]) -> Optional[Principal]:
        for strategy in self._strategies:
            result = await strategy.authenticate(headers)
            if result.status is AuthStatus.AUTHENTICATED:
                log.debug(
                    "request_authenticated",
                    strategy=strategy.name,
                    user_id=result.principal.user_id,
                )
                return result.principal
            if result.status is AuthStatus.INVALID_CREDENTIAL:
                log.info("credential_rejected", strategy=strategy.name)
        return None


def build_authenticator(
    api_keys: ApiKeyService,
    tokens: TokenService,
    api_key_header: str = "X-API-Key",
) -> CompositeAuthenticator:
    """API key first, bearer token second."""
    return CompositeAuthenticator(
        [ApiKeyStrategy(api_keys, api_key_header), BearerTokenStrategy(tokens)]
    )
