from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument

from spectra_sync.errors import surface_store_errors
from spectra_sync.models.story import StoryDocument


class StoryRepository:
    """Stories are active while ``created_at >= cutoff`` (cutoff = now - ttl)."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["stories"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("created_at", ASCENDING)])

    @surface_store_errors
    async def create(self, story_id: str, owner_id: str, payload: Dict[str, Any], now_ms: int, cutoff_ms: int) -> Tuple[StoryDocument, bool]:
        # an expired story under the same id is gone for good
        await self.collection.delete_one({"_id": story_id, "created_at": {"$lt": cutoff_ms}})
        result = await self.collection.update_one(
            {"_id": story_id},
            {"$setOnInsert": {"owner_id": owner_id, "created_at": now_ms, "viewers": [], "payload": payload}},
            upsert=True,
        )
        doc = await self.collection.find_one({"_id": story_id})
        return doc, result.upserted_id is not None

    @surface_store_errors
    async def get(self, story_id: str) -> Optional[StoryDocument]:
        return await self.collection.find_one({"_id": story_id})

    @surface_store_errors
    async def add_viewer_if_active(self, story_id: str, viewer_id: str, cutoff_ms: int) -> Optional[StoryDocument]:
        return await self.collection.find_one_and_update(
            {"_id": story_id, "created_at": {"$gte": cutoff_ms}},
            {"$addToSet": {"viewers": viewer_id}},
            return_document=ReturnDocument.AFTER,
        )

    @surface_store_errors
    async def delete_if_expired(self, story_id: str, cutoff_ms: int) -> bool:
        result = await self.collection.delete_one({"_id": story_id, "created_at": {"$lt": cutoff_ms}})
        return result.deleted_count > 0

    @surface_store_errors
    async def delete(self, story_id: str) -> bool:
        result = await self.collection.delete_one({"_id": story_id})
        return result.deleted_count > 0

    @surface_store_errors
    async def list_all(self) -> List[StoryDocument]:
        cur = self.collection.find({}).sort([("created_at", ASCENDING), ("_id", ASCENDING)])
        return await cur.to_list(length=None)

    @surface_store_errors
    async def delete_expired(self, cutoff_ms: int) -> int:
        result = await self.collection.delete_many({"created_at": {"$lt": cutoff_ms}})
        return result.deleted_count or 0
