from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument

from spectra_sync.errors import surface_store_errors
from spectra_sync.models.engagement import CommentDocument, EngagementTargetDocument


# kind -> (membership array, counter)
KIND_FIELDS = {
    "like": ("liked_by", "like_num"),
    "dislike": ("disliked_by", "dislike_num"),
    "view": ("viewed_by", "view_count"),
}


class EngagementRepository:
    """Posts with their counters and membership sets in the same document.

    Every toggle touches one document, so the counter and the set it counts
    change together or not at all.
    """

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["posts"]

    @property
    def comments(self):
        return self._db["comments"]

    async def ensure_indexes(self) -> None:
        await self.comments.create_index([("target_id", ASCENDING), ("created_at", ASCENDING)])

    @surface_store_errors
    async def create(self, target_id: str, owner_id: str, payload: Dict[str, Any], now_ms: int) -> Tuple[EngagementTargetDocument, bool]:
        result = await self.collection.update_one(
            {"_id": target_id},
            {
                "$setOnInsert": {
                    "owner_id": owner_id,
                    "created_at": now_ms,
                    "payload": payload,
                    "like_num": 0,
                    "dislike_num": 0,
                    "view_count": 0,
                    "comment_num": 0,
                    "liked_by": [],
                    "disliked_by": [],
                    "viewed_by": [],
                }
            },
            upsert=True,
        )
        doc = await self.collection.find_one({"_id": target_id})
        return doc, result.upserted_id is not None

    @surface_store_errors
    async def get(self, target_id: str) -> Optional[EngagementTargetDocument]:
        return await self.collection.find_one({"_id": target_id})

    @surface_store_errors
    async def add_member(self, target_id: str, user_id: str, kind: str) -> Optional[EngagementTargetDocument]:
        members, counter = KIND_FIELDS[kind]
        return await self.collection.find_one_and_update(
            {"_id": target_id, members: {"$ne": user_id}},
            {"$addToSet": {members: user_id}, "$inc": {counter: 1}},
            return_document=ReturnDocument.AFTER,
        )

    @surface_store_errors
    async def remove_member(self, target_id: str, user_id: str, kind: str) -> Optional[EngagementTargetDocument]:
        members, counter = KIND_FIELDS[kind]
        return await self.collection.find_one_and_update(
            {"_id": target_id, members: user_id},
            {"$pull": {members: user_id}, "$inc": {counter: -1}},
            return_document=ReturnDocument.AFTER,
        )

    @surface_store_errors
    async def is_member(self, target_id: str, user_id: str, kind: str) -> bool:
        members, _ = KIND_FIELDS[kind]
        doc = await self.collection.find_one({"_id": target_id, members: user_id}, {"_id": 1})
        return doc is not None

    @surface_store_errors
    async def add_comment(self, target_id: str, username: str, comment: str, time: Any, now_ms: int) -> Optional[CommentDocument]:
        counted = await self.collection.update_one({"_id": target_id}, {"$inc": {"comment_num": 1}})
        if counted.matched_count == 0:
            return None
        doc: CommentDocument = {
            "target_id": target_id,
            "username": username,
            "comment": comment,
            "time": time,
            "created_at": now_ms,
        }
        result = await self.comments.insert_one(doc)
        # delete() removes the post before its comments, so a post that is
        # gone now may have been swept before this comment landed
        if await self.collection.find_one({"_id": target_id}, {"_id": 1}) is None:
            await self.comments.delete_one({"_id": result.inserted_id})
            return None
        doc["_id"] = str(result.inserted_id)
        return doc

    @surface_store_errors
    async def list_comments(self, target_id: str, limit: int = 500) -> List[CommentDocument]:
        cur = self.comments.find({"target_id": target_id}).sort([("created_at", ASCENDING), ("_id", ASCENDING)]).limit(limit)
        items = await cur.to_list(length=limit)
        for it in items:
            it["_id"] = str(it.get("_id"))
        return items

    @surface_store_errors
    async def delete(self, target_id: str) -> bool:
        # counters and membership go with the document itself
        result = await self.collection.delete_one({"_id": target_id})
        await self.comments.delete_many({"target_id": target_id})
        return result.deleted_count > 0
