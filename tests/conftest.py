"""
Shared test fixtures.

In-memory stand-ins for the MongoDB repositories and the Redis denylist, plus
a controllable clock. They implement the same async methods the services
call, so services and routes run unchanged on top of them.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from config import JWTSettings
from schemas.models.api_key import ApiKeyDoc, ApiKeyPermission
from schemas.models.base import to_object_id
from schemas.models.user import UserDoc, UserRole
from shared.crypto import hash_password

TEST_JWT_SECRET = "test-secret-that-is-long-enough-for-hs256!"
TEST_PASSWORD = "correct-horse-battery"
EPOCH = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = EPOCH) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FakeUserRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, dict] = {}
        self.fail_last_login = False

    def add(
        self,
        username: str,
        *,
        password: str = TEST_PASSWORD,
        role: UserRole = UserRole.USER,
        active: bool = True,
        email: Optional[str] = None,
    ) -> UserDoc:
        oid = ObjectId()
        user = UserDoc(
            _id=oid,
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(password),
            role=role,
            active=active,
            created_at=EPOCH,
            updated_at=EPOCH,
        )
        self.docs[oid] = user.to_mongo()
        return user

    def _find(self, **query) -> Optional[UserDoc]:
        for data in self.docs.values():
            if all(data.get(k) == v for k, v in query.items()):
                return UserDoc.from_mongo(dict(data))
        return None

    async def find_by_id(self, user_id) -> Optional[UserDoc]:
        oid = to_object_id(user_id)
        if oid is None or oid not in self.docs:
            return None
        return UserDoc.from_mongo(dict(self.docs[oid]))

    async def find_by_username(self, username: str) -> Optional[UserDoc]:
        return self._find(username=username)

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return self._find(email=email)

    async def insert(self, user: UserDoc) -> ObjectId:
        if self._find(username=user.username) or self._find(email=user.email):
            raise DuplicateKeyError("E11000 duplicate key error")
        oid = ObjectId()
        data = user.to_mongo()
        data["_id"] = oid
        self.docs[oid] = data
        return oid

    async def update_last_login(self, user_id, when: datetime) -> None:
        if self.fail_last_login:
            raise RuntimeError("mongo unavailable")
        self.docs[user_id]["last_login_at"] = when
        self.docs[user_id]["updated_at"] = when

    async def ensure_indexes(self) -> None:
        return None


class FakeApiKeyRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, dict] = {}
        self.fail_touch = False

    def add(
        self,
        owner: UserDoc,
        key: str,
        *,
        permission: ApiKeyPermission = ApiKeyPermission.READ_ONLY,
        active: bool = True,
        created_at: datetime = EPOCH,
        expires_at: Optional[datetime] = None,
        name: str = "test key",
    ) -> ApiKeyDoc:
        oid = ObjectId()
        doc = ApiKeyDoc(
            _id=oid,
            user_id=owner.id,
            key=key,
            name=name,
            active=active,
            permission=permission,
            created_at=created_at,
            expires_at=expires_at or created_at + timedelta(days=30),
        )
        self.docs[oid] = doc.to_mongo()
        return doc

    async def find_by_key(self, key: str) -> Optional[ApiKeyDoc]:
        for data in self.docs.values():
            if data["key"] == key:
                return ApiKeyDoc.from_mongo(dict(data))
        return None

    async def key_exists(self, key: str) -> bool:
        return await self.find_by_key(key) is not None

    async def find_for_owner(self, key_id, owner_id) -> Optional[ApiKeyDoc]:
        kid, uid = to_object_id(key_id), to_object_id(owner_id)
        data = self.docs.get(kid)
        if data is None or data["user_id"] != uid:
            return None
        return ApiKeyDoc.from_mongo(dict(data))

    async def list_by_owner(self, owner_id) -> list[ApiKeyDoc]:
        uid = to_object_id(owner_id)
        owned = [d for d in self.docs.values() if d["user_id"] == uid]
        owned.sort(key=lambda d: d["created_at"])
        return [ApiKeyDoc.from_mongo(dict(d)) for d in owned]

    async def insert(self, api_key: ApiKeyDoc) -> ObjectId:
        if await self.key_exists(api_key.key):
            raise DuplicateKeyError("E11000 duplicate key error")
        oid = ObjectId()
        data = api_key.to_mongo()
        data["_id"] = oid
        self.docs[oid] = data
        return oid

    async def deactivate(self, key_id, owner_id) -> bool:
        kid, uid = to_object_id(key_id), to_object_id(owner_id)
        data = self.docs.get(kid)
        if data is None or data["user_id"] != uid:
            return False
        data["active"] = False
        return True

    async def touch_last_used(self, key_id, when: datetime) -> None:
        if self.fail_touch:
            raise RuntimeError("mongo unavailable")
        self.docs[key_id]["last_used_at"] = when

    async def ensure_indexes(self) -> None:
        return None


class FakeDenylist:
    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.revoked: dict[str, datetime] = {}

    async def revoke(self, token_id: str, expires_at: datetime) -> None:
        if self.enabled:
            self.revoked[token_id] = expires_at

    async def is_revoked(self, token_id: str) -> bool:
        return token_id in self.revoked

    async def ping(self) -> bool:
        return True


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def jwt_settings():
    return JWTSettings(jwt_secret=TEST_JWT_SECRET)


@pytest.fixture
def user_repo():
    return FakeUserRepository()


@pytest.fixture
def api_key_repo():
    return FakeApiKeyRepository()


@pytest.fixture
def denylist():
    return FakeDenylist()


@pytest.fixture
def disabled_denylist():
    return FakeDenylist(enabled=False)


@pytest.fixture
def password():
    """Plaintext password of every user created through FakeUserRepository.add()."""
    return TEST_PASSWORD
