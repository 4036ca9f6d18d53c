"""
Authentication routes.

POST /api/auth/register  — create a USER account
POST /api/auth/login     — username/password → access token + refresh cookie
POST /api/auth/refresh   — rotate the refresh cookie, return a new access token
POST /api/auth/logout    — revoke the refresh cookie (best effort) and clear it
GET  /api/auth/me        — the authenticated user's profile (READ)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from config import AppSettings
from dependencies import (
    get_settings,
    get_token_service,
    get_user_service,
    require_capability,
)
from errors import InvalidTokenError
from schemas.dto.requests.auth import LoginRequest, RegisterRequest
from schemas.dto.responses.auth import LoginResponse, RefreshResponse, UserResponse
from schemas.dto.responses.common import AUTH_ERROR_RESPONSES, ErrorResponse
from services.authentication import Principal
from services.token_service import TokenService
from services.user_service import UserService
from shared.cookies import clear_refresh_cookie, get_refresh_cookie, set_refresh_cookie
from shared.permissions import Capability

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=UserResponse,
    responses={409: {"model": ErrorResponse, "description": "Username or email taken"}},
)
async def register(
    body: RegisterRequest,
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.register(body.username, body.email, body.password)
    return UserResponse.from_doc(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
async def login(
    body: LoginRequest,
    response: Response,
    tokens: TokenService = Depends(get_token_service),
    settings: AppSettings = Depends(get_settings),
) -> LoginResponse:
    result = await tokens.login(body.username, body.password, body.client_type)
    set_refresh_cookie(
        response,
        result.tokens.refresh_token,
        result.refresh_expires_in,
        settings.cookies,
    )
    return LoginResponse(
        access_token=result.tokens.access_token,
        expires_in=int(result.access_expires_in.total_seconds()),
        refresh_expires_in=int(result.refresh_expires_in.total_seconds()),
        client_type=result.client_type.value,
        user=UserResponse.from_doc(result.user),
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid refresh token"}},
)
async def refresh(
    request: Request,
    response: Response,
    tokens: TokenService = Depends(get_token_service),
    settings: AppSettings = Depends(get_settings),
) -> RefreshResponse:
    refresh_token = get_refresh_cookie(request, settings.cookies)
    if refresh_token is None:
        raise InvalidTokenError()
    result = await tokens.refresh(refresh_token)
    set_refresh_cookie(
        response,
        result.tokens.refresh_token,
        result.refresh_expires_in,
        settings.cookies,
    )
    return RefreshResponse(
        access_token=result.tokens.access_token,
        expires_in=int(result.access_expires_in.total_seconds()),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
    settings: AppSettings = Depends(get_settings),
) -> Response:
    await tokens.logout(get_refresh_cookie(request, settings.cookies))
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    return clear_refresh_cookie(response, settings.cookies)


@router.get("/me", response_model=UserResponse, responses=AUTH_ERROR_RESPONSES)
async def me(
    principal: Principal = Depends(require_capability(Capability.READ)),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.get_profile(principal.user_id)
    return UserResponse.from_doc(user)
