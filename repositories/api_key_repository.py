"""
API key repository — async MongoDB access for the `api_keys` collection.

Lookups by key value are direct equality matches on a unique index. Ownership
is always part of the query for owner-scoped operations, so a key belonging
to someone else is simply "not found".
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pymongo import ASCENDING

from schemas.models.api_key import ApiKeyDoc
from schemas.models.base import to_object_id

API_KEYS_COLLECTION = "api_keys"


class ApiKeyRepository:
    def __init__(self, db: Any) -> None:
        self._collection = db[API_KEYS_COLLECTION]

    async def find_by_key(self, key: str) -> Optional[ApiKeyDoc]:
        doc = await self._collection.find_one({"key": key})
        return ApiKeyDoc.from_mongo(doc)

    async def key_exists(self, key: str) -> bool:
        doc = await self._collection.find_one({"key": key}, {"_id": 1})
        return doc is not None

    async def find_for_owner(self, key_id: Any, owner_id: Any) -> Optional[ApiKeyDoc]:
        kid, uid = to_object_id(key_id), to_object_id(owner_id)
        if kid is None or uid is None:
            return None
        doc = await self._collection.find_one({"_id": kid, "user_id": uid})
        return ApiKeyDoc.from_mongo(doc)

    async def list_by_owner(self, owner_id: Any) -> list[ApiKeyDoc]:
        uid = to_object_id(owner_id)
        if uid is None:
            return []
        cursor = self._collection.find({"user_id": uid}).sort("created_at", ASCENDING)
        return [ApiKeyDoc.from_mongo(doc) async for doc in cursor]

    async def insert(self, api_key: ApiKeyDoc) -> ObjectId:
        result = await self._collection.insert_one(api_key.to_mongo())
        return result.inserted_id

    async def deactivate(self, key_id: Any, owner_id: Any) -> bool:
        """Soft-revoke; True when a key owned by *owner_id* matched."""
        kid, uid = to_object_id(key_id), to_object_id(owner_id)
        if kid is None or uid is None:
            return False
        result = await self._collection.update_one(
            {"_id": kid, "user_id": uid}, {"$set": {"active": False}}
        )
        return result.matched_count == 1

    async def touch_last_used(self, key_id: ObjectId, when: datetime) -> None:
        await self._collection.update_one(
            {"_id": key_id}, {"$set": {"last_used_at": when}}
        )

    async def ensure_indexes(self) -> None:
        await self._collection.create_index([("key", ASCENDING)], unique=True)
        await self._collection.create_index(
            [("user_id", ASCENDING), ("created_at", ASCENDING)]
        )
        await self._collection.create_index([("active", ASCENDING)])
