"""
Integration test configuration.

Builds the real routers and error handlers on a FastAPI app whose lifespan
wires the services onto in-memory repositories. No network connections are
made. TestClient talks HTTPS so the Secure refresh cookie round-trips.
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app import include_routers, wire_services
from config import (
    ApiKeySettings,
    AppSettings,
    CookieSettings,
    DatabaseSettings,
    LoggingSettings,
    RedisSettings,
    SentrySettings,
)
from errors import register_error_handlers


@pytest.fixture
def settings(jwt_settings):
    return AppSettings(
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        redis=RedisSettings(redis_uri=None),
        jwt=jwt_settings,
        cookies=CookieSettings(cookie_secure=True, cookie_same_site="Strict"),
        api_keys=ApiKeySettings(api_key_header_name="X-API-Key"),
        logging=LoggingSettings(),
        sentry=SentrySettings(sentry_dsn=""),
    )


@pytest.fixture
def mock_db():
    db = MagicMock()
    db.client.admin.command = AsyncMock(return_value={"ok": 1})
    return db


@pytest.fixture
def app(settings, user_repo, api_key_repo, denylist, mock_db, clock):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db = mock_db
        wire_services(
            app.state,
            settings,
            users=user_repo,
            api_keys=api_key_repo,
            denylist=denylist,
            clock=clock,
        )
        yield

    app = FastAPI(lifespan=lifespan)
    register_error_handlers(app)
    include_routers(app)
    return app


@pytest.fixture
def client(app):
    with TestClient(app, base_url="https://testserver") as c:
        yield c


@pytest.fixture
def login(client, password):
    """Log *username* in and return the parsed LoginResponse body."""

    def _login(username: str, client_type: str = "WEB") -> dict:
        resp = client.post(
            "/api/auth/login",
            json={"username": username, "password": password, "client_type": client_type},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _login
