"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Services live on app.state (wired in app.py).

Authentication runs once per request through resolve_principal(); routes
that need a caller depend on get_current_principal() or, more commonly, on
require_capability(<Capability>), which authenticates and then checks the
capability table before the handler body runs.
"""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends, Request

from config import AppSettings
from errors import UnauthenticatedError
from services.api_key_service import ApiKeyService
from services.authentication import CompositeAuthenticator, Principal
from services.token_service import TokenService
from services.user_service import UserService
from shared.permissions import (
    Capability,
    require_capability as check_capability,
    require_key_management as check_key_management,
)

_UNRESOLVED = object()


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_api_key_service(request: Request) -> ApiKeyService:
    return request.app.state.api_key_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_authenticator(request: Request) -> CompositeAuthenticator:
    return request.app.state.authenticator


async def resolve_principal(request: Request) -> Optional[Principal]:
    """Run the authentication pipeline once and cache the result on the request."""
    cached = getattr(request.state, "principal", _UNRESOLVED)
    if cached is not _UNRESOLVED:
        return cached
    authenticator: CompositeAuthenticator = request.app.state.authenticator
    principal = await authenticator.authenticate(request.headers)
    request.state.principal = principal
    return principal


async def get_current_principal(
    principal: Optional[Principal] = Depends(resolve_principal),
) -> Principal:
    if principal is None:
        raise UnauthenticatedError()
    return principal


def require_capability(capability: Capability) -> Callable[..., Principal]:
    """Dependency factory: authenticated principal holding *capability*."""

    async def _dependency(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        check_capability(principal, capability)
        return principal

    return _dependency


def require_key_management(capability: Capability) -> Callable[..., Principal]:
    """Dependency factory for routes that operate on the caller's own API keys."""

    async def _dependency(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        check_key_management(principal, capability)
        return principal

    return _dependency
