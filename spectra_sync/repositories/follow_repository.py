from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from spectra_sync.errors import surface_store_errors
from spectra_sync.models.follow import FollowDocument


class FollowRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db.get_collection("follows")

    async def ensure_indexes(self) -> None:
        await self._collection.create_index([("follower", ASCENDING)])
        await self._collection.create_index([("followed", ASCENDING)])

    @surface_store_errors
    async def follow(self, follower: str, followed: str, now_ms: int) -> bool:
        fields: FollowDocument = {"follower": follower, "followed": followed, "followed_at": now_ms}
        result = await self._collection.update_one(
            {"_id": f"{follower}/{followed}"},
            {"$setOnInsert": fields},
            upsert=True,
        )
        return result.upserted_id is not None

    @surface_store_errors
    async def unfollow(self, follower: str, followed: str) -> bool:
        result = await self._collection.delete_one({"_id": f"{follower}/{followed}"})
        return result.deleted_count > 0

    @surface_store_errors
    async def exists(self, follower: str, followed: str) -> bool:
        doc = await self._collection.find_one({"_id": f"{follower}/{followed}"}, {"_id": 1})
        return doc is not None

    @surface_store_errors
    async def list_following(self, user_id: str) -> List[str]:
        cursor = self._collection.find({"follower": user_id}).sort("followed", ASCENDING)
        return [doc["followed"] async for doc in cursor]

    @surface_store_errors
    async def list_followers(self, user_id: str) -> List[str]:
        cursor = self._collection.find({"followed": user_id}).sort("follower", ASCENDING)
        return [doc["follower"] async for doc in cursor]
