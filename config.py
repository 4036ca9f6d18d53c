"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Security-relevant values are validated here so that a misconfigured deployment
fails at startup instead of on the first request:
- JWT_SECRET must be at least 32 characters (256 bits for HS256)
- COOKIE_SAME_SITE must be Strict, Lax or None (case-insensitive)
- COOKIE_SAME_SITE=None is only accepted together with COOKIE_SECURE=true
"""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_JWT_SECRET_LENGTH = 32
ALLOWED_SAME_SITE_VALUES = ("Strict", "Lax", "None")


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "cloud-storage"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; without Redis the refresh-token denylist is disabled
    redis_uri: Optional[str] = None


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_secret: str
    jwt_issuer: str = "cloud-storage-api"
    jwt_audience: str = "cloud-storage-api.clients"

    # Push the previous refresh token's jti to the denylist on every refresh
    revoke_rotated_refresh_tokens: bool = True

    @field_validator("jwt_secret", mode="after")
    @classmethod
    def _secret_long_enough(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_SECRET must not be empty")
        if len(v) < MIN_JWT_SECRET_LENGTH:
            raise ValueError(
                f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters "
                f"(256 bits) for HS256, got {len(v)}"
            )
        return v


class CookieSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    cookie_secure: bool = True
    cookie_same_site: str = "Strict"
    refresh_cookie_name: str = "refresh_token"
    refresh_cookie_path: str = "/api/auth"

    @field_validator("cookie_same_site", mode="after")
    @classmethod
    def _normalise_same_site(cls, v: str) -> str:
        value = (v or "").strip()
        for allowed in ALLOWED_SAME_SITE_VALUES:
            if value.lower() == allowed.lower():
                return allowed
        raise ValueError(
            f"Invalid COOKIE_SAME_SITE value {v!r}: must be one of "
            "Strict, Lax or None (case-insensitive)"
        )

    @model_validator(mode="after")
    def _same_site_none_requires_secure(self) -> "CookieSettings":
        # SameSite=None cookies must also be Secure
        if self.cookie_same_site == "None" and not self.cookie_secure:
            raise ValueError("COOKIE_SAME_SITE=None requires COOKIE_SECURE=true")
        return self


class ApiKeySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    api_key_header_name: str = "X-API-Key"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "cloud-storage-api"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    jwt: Optional[JWTSettings] = None
    cookies: Optional[CookieSettings] = None
    api_keys: Optional[ApiKeySettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.cookies is None:
            self.cookies = CookieSettings()
        if self.api_keys is None:
            self.api_keys = ApiKeySettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
