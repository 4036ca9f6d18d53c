"""
Refresh-token cookie helpers.

The refresh token travels only in an HttpOnly cookie scoped to the auth
routes; it is never accepted from a request body or query string.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from fastapi import Request, Response

from config import CookieSettings


def set_refresh_cookie(
    response: Response, token: str, max_age: timedelta, settings: CookieSettings
) -> Response:
    if not token:
        raise ValueError("refresh token cannot be empty")
    response.set_cookie(
        settings.refresh_cookie_name,
        value=token,
        max_age=int(max_age.total_seconds()),
        path=settings.refresh_cookie_path,
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.cookie_same_site,
    )
    return response


def clear_refresh_cookie(response: Response, settings: CookieSettings) -> Response:
    response.delete_cookie(
        settings.refresh_cookie_name,
        path=settings.refresh_cookie_path,
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.cookie_same_site,
    )
    return response


def get_refresh_cookie(request: Request, settings: CookieSettings) -> Optional[str]:
    value = request.cookies.get(settings.refresh_cookie_name)
    return value or None
