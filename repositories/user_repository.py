"""
User repository — async MongoDB access for the `users` collection.

Thin CRUD only: no authentication decisions are made here. Driver errors
propagate to the caller; DuplicateKeyError on insert signals a username or
email that already exists.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pymongo import ASCENDING

from schemas.models.base import to_object_id
from schemas.models.user import UserDoc

USERS_COLLECTION = "users"


class UserRepository:
    def __init__(self, db: Any) -> None:
        self._collection = db[USERS_COLLECTION]

    async def find_by_id(self, user_id: Any) -> Optional[UserDoc]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        doc = await self._collection.find_one({"_id": oid})
        return UserDoc.from_mongo(doc)

    async def find_by_username(self, username: str) -> Optional[UserDoc]:
        doc = await self._collection.find_one({"username": username})
        return UserDoc.from_mongo(doc)

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        doc = await self._collection.find_one({"email": email})
        return UserDoc.from_mongo(doc)

    async def insert(self, user: UserDoc) -> ObjectId:
        result = await self._collection.insert_one(user.to_mongo())
        return result.inserted_id

    async def update_last_login(self, user_id: ObjectId, when: datetime) -> None:
        await self._collection.update_one(
            {"_id": user_id},
            {"$set": {"last_login_at": when, "updated_at": when}},
        )

    async def ensure_indexes(self) -> None:
        await self._collection.create_index([("username", ASCENDING)], unique=True)
        await self._collection.create_index([("email", ASCENDING)], unique=True)
        await self._collection.create_index([("role", ASCENDING)])
        await self._collection.create_index([("active", ASCENDING)])
