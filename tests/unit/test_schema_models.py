"""Unit tests for MongoDB document models and token value types."""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from schemas.models.api_key import ApiKeyDoc, ApiKeyPermission
from schemas.models.base import MongoBaseModel, PyObjectId, to_object_id
from schemas.models.token import TOKEN_LIFETIMES, ClientType, TokenKind
from schemas.models.user import UserDoc, UserRole


# ── Helpers ───────────────────────────────────────────────────────────────────

def now():
    return datetime.now(timezone.utc)


def oid():
    return ObjectId()


# ── PyObjectId ────────────────────────────────────────────────────────────────

class TestPyObjectId:
    def test_accepts_objectid_instance(self):
        o = oid()
        assert PyObjectId._validate(o) == o

    def test_accepts_valid_string(self):
        s = str(oid())
        result = PyObjectId._validate(s)
        assert isinstance(result, ObjectId)
        assert str(result) == s

    def test_rejects_invalid_string(self):
        with pytest.raises(ValueError):
            PyObjectId._validate("not-an-objectid")

    def test_rejects_none(self):
        with pytest.raises((ValueError, TypeError)):
            PyObjectId._validate(None)


@pytest.mark.parametrize(
    "value, valid",
    [("507f1f77bcf86cd799439011", True), ("nope", False), (None, False), (42, False)],
)
def test_to_object_id(value, valid):
    result = to_object_id(value)
    assert (result is not None) is valid


# ── MongoBaseModel ─────────────────────────────────────────────────────────────

class TestMongoBaseModel:
    def test_from_mongo_returns_none_for_none(self):
        assert MongoBaseModel.from_mongo(None) is None

    def test_id_alias(self):
        o = oid()
        m = MongoBaseModel.model_validate({"_id": o})
        assert m.id == o

    def test_to_mongo_drops_none_id(self):
        assert "_id" not in MongoBaseModel().to_mongo()


# ── UserDoc ───────────────────────────────────────────────────────────────────

class TestUserDoc:
    def test_defaults(self):
        user = UserDoc(username="alice", email="alice@example.com", password_hash="h")
        assert user.role is UserRole.USER
        assert user.active is True
        assert user.last_login_at is None

    def test_password_hash_not_in_repr(self):
        user = UserDoc(username="alice", email="a@example.com", password_hash="$argon2id$secret")
        assert "$argon2id$secret" not in repr(user)

    def test_round_trip_through_mongo_dict(self):
        o = oid()
        user = UserDoc(
            _id=o,
            username="alice",
            email="a@example.com",
            password_hash="h",
            role=UserRole.ADMIN,
            created_at=now(),
        )
        data = user.to_mongo()
        assert data["_id"] == o
        assert data["role"] == "ADMIN"
        assert UserDoc.from_mongo(data).role is UserRole.ADMIN


# ── ApiKeyDoc ─────────────────────────────────────────────────────────────────

class TestApiKeyDoc:
    def _doc(self, **overrides) -> ApiKeyDoc:
        t = now()
        base = dict(
            user_id=oid(),
            key="k" * 32,
            name="ci",
            created_at=t,
            expires_at=t + timedelta(days=30),
        )
        base.update(overrides)
        return ApiKeyDoc(**base)

    def test_defaults(self):
        doc = self._doc()
        assert doc.active is True
        assert doc.permission is ApiKeyPermission.READ_ONLY
        assert doc.last_used_at is None

    def test_expiry_is_required(self):
        with pytest.raises(Exception):
            ApiKeyDoc(user_id=oid(), key="k", name="ci", created_at=now())

    def test_key_not_in_repr(self):
        assert "k" * 32 not in repr(self._doc())

    def test_user_id_accepts_string(self):
        o = oid()
        assert self._doc(user_id=str(o)).user_id == o

    @pytest.mark.parametrize(
        "active, offset, usable",
        [
            (True, timedelta(seconds=-1), True),
            (True, timedelta(0), False),
            (False, timedelta(days=-1), False),
        ],
        ids=["before_expiry", "at_expiry", "revoked"],
    )
    def test_is_usable(self, active, offset, usable):
        doc = self._doc(active=active)
        assert doc.is_usable(doc.expires_at + offset) is usable


# ── Token types ───────────────────────────────────────────────────────────────

class TestClientType:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("CLI", ClientType.CLI),
            ("cli", ClientType.CLI),
            (" web ", ClientType.WEB),
            ("mobile", ClientType.WEB),
            (None, ClientType.WEB),
            (ClientType.CLI, ClientType.CLI),
        ],
    )
    def test_parse(self, raw, expected):
        assert ClientType.parse(raw) is expected


def test_every_kind_and_client_type_has_a_lifetime():
    for kind in TokenKind:
        for client_type in ClientType:
            assert TOKEN_LIFETIMES[(kind, client_type)] > timedelta(0)
