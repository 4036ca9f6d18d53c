"""
FastAPI application factory.
create_app() is the single entry point for building the app.

wire_services() builds the codec, services and authentication pipeline from
already-constructed repositories and denylist; the lifespan calls it with the
MongoDB/Redis-backed implementations, tests call it with in-memory fakes.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

import redis.asyncio as aioredis
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.denylist.protocol import TokenDenylist
from infrastructure.denylist.redis_denylist import RedisTokenDenylist
from repositories.api_key_repository import ApiKeyRepository
from repositories.user_repository import UserRepository
from routes.api_key_routes import router as api_key_router
from routes.api_key_routes import verify_router as api_key_verify_router
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from services.api_key_service import ApiKeyService
from services.authentication import build_authenticator
from services.token_codec import TokenCodec
from services.token_service import TokenService
from services.user_service import UserService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def wire_services(
    state,
    settings: AppSettings,
    *,
    users: UserRepository,
    api_keys: ApiKeyRepository,
    denylist: TokenDenylist,
    clock: Optional[Callable[[], datetime]] = None,
) -> None:
    """Attach settings, services and the authenticator to *state* (app.state)."""
    codec = TokenCodec(settings.jwt, clock=clock)
    token_service = TokenService(
        codec,
        users,
        denylist,
        revoke_rotated_refresh_tokens=settings.jwt.revoke_rotated_refresh_tokens,
        clock=clock,
    )
    api_key_service = ApiKeyService(api_keys, users, clock=clock)

    state.settings = settings
    state.token_denylist = denylist
    state.token_codec = codec
    state.token_service = token_service
    state.api_key_service = api_key_service
    state.user_service = UserService(users, clock=clock)
    state.authenticator = build_authenticator(
        api_key_service,
        token_service,
        api_key_header=settings.api_keys.api_key_header_name,
    )

    if not denylist.enabled:
        log.warning(
            "refresh_token_denylist_disabled",
            detail="REDIS_URI not set; rotated and logged-out refresh tokens "
            "remain valid until they expire",
        )


def include_routers(app: FastAPI) -> None:
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(api_key_router)
    app.include_router(api_key_verify_router)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
        sentry_dsn=settings.sentry.sentry_dsn or None,
    )

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    # Fail on a bad signing key here, not on the first login
    TokenCodec(settings.jwt)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]

        # Redis is optional; without it the refresh-token denylist is disabled
        redis_client = None
        if settings.redis.redis_uri:
            redis_client = aioredis.from_url(
                settings.redis.redis_uri,
                encoding="utf-8",
                decode_responses=True,
            )
        app.state.redis = redis_client

        users = UserRepository(app.state.db)
        api_keys = ApiKeyRepository(app.state.db)
        await users.ensure_indexes()
        await api_keys.ensure_indexes()

        wire_services(
            app.state,
            settings,
            users=users,
            api_keys=api_keys,
            denylist=RedisTokenDenylist(redis_client),
        )
        log.info("app_started", env=settings.env, db_name=settings.db.db_name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    include_routers(app)

    return app
