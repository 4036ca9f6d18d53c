"""Unit tests for AppError hierarchy and the error handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from errors import (
    AppError,
    AuthenticationError,
    AuthenticationFailedError,
    ConflictError,
    ExpiredTokenError,
    ForbiddenError,
    InvalidApiKeyError,
    InvalidTokenError,
    MalformedTokenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
    register_error_handlers,
)


class TestAppErrorSubclasses:
    def test_validation_error(self):
        e = ValidationError("bad input")
        assert e.status_code == 400
        assert e.error_code == "validation_error"
        assert e.message == "bad input"

    def test_authentication_error(self):
        e = AuthenticationError("not authenticated")
        assert e.status_code == 401
        assert e.error_code == "authentication_error"

    def test_forbidden_error(self):
        e = ForbiddenError("not allowed")
        assert e.status_code == 403
        assert e.error_code == "forbidden"

    def test_not_found_error(self):
        e = NotFoundError("resource missing")
        assert e.status_code == 404
        assert e.error_code == "not_found"

    def test_conflict_error(self):
        e = ConflictError("already exists")
        assert e.status_code == 409
        assert e.error_code == "conflict"


class TestAuthenticationErrors:
    @pytest.mark.parametrize(
        "cls, code, message",
        [
            (AuthenticationFailedError, "authentication_failed", "Invalid username or password"),
            (InvalidTokenError, "invalid_token", "Invalid or expired token"),
            (InvalidApiKeyError, "invalid_api_key", "Invalid API key"),
            (UnauthenticatedError, "unauthenticated", "Authentication required"),
        ],
        ids=["login", "token", "api_key", "unauthenticated"],
    )
    def test_defaults(self, cls, code, message):
        e = cls()
        assert e.status_code == 401
        assert e.error_code == code
        assert e.message == message
        assert isinstance(e, AuthenticationError)

    @pytest.mark.parametrize("cls", [ExpiredTokenError, MalformedTokenError])
    def test_token_failures_are_indistinguishable(self, cls):
        e = cls()
        assert isinstance(e, InvalidTokenError)
        assert e.to_dict() == InvalidTokenError().to_dict()


class TestAppErrorToDict:
    def test_basic(self):
        e = NotFoundError("API key not found")
        assert e.to_dict() == {"error": "API key not found", "code": "not_found"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "name"}, "field", "name"),
            ({"details": {"allowed": [30, 60, 90]}}, "details", {"allowed": [30, 60, 90]}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = ValidationError("invalid", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = NotFoundError("missing").to_dict()
        assert "field" not in d
        assert "details" not in d


# ── Handlers ──────────────────────────────────────────────────────────────────


def _app_raising(exc: Exception) -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/boom")
    async def boom():
        raise exc

    return app


class TestErrorHandlers:
    def test_app_error_rendered(self):
        client = TestClient(_app_raising(ConflictError("taken")))
        resp = client.get("/boom")
        assert resp.status_code == 409
        assert resp.json() == {"error": "taken", "code": "conflict"}
        assert "www-authenticate" not in resp.headers

    def test_authentication_error_sets_challenge_header(self):
        client = TestClient(_app_raising(ExpiredTokenError()))
        resp = client.get("/boom")
        assert resp.status_code == 401
        assert resp.json()["code"] == "invalid_token"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_unhandled_exception_is_generic_500(self):
        client = TestClient(
            _app_raising(RuntimeError("secret detail")), raise_server_exceptions=False
        )
        resp = client.get("/boom")
        assert resp.status_code == 500
        assert resp.json()["code"] == "internal_error"
        assert "secret detail" not in resp.text

    def test_base_app_error_defaults_to_500(self):
        client = TestClient(_app_raising(AppError("collision limit reached")))
        resp = client.get("/boom")
        assert resp.status_code == 500
        assert resp.json()["code"] == "internal_error"
