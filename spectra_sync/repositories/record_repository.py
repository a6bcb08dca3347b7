from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from spectra_sync.errors import surface_store_errors
from spectra_sync.models.record import ContainerDocument, SyncRecordDocument


def scope_key(collection: str, container_id: Optional[str]) -> str:
    if container_id:
        return f"{collection}/{container_id}"
    return collection


def record_key(scope: str, record_id: str) -> str:
    return f"{scope}/{record_id}"


class RecordRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["sync_records"]

    @property
    def containers(self):
        return self._db["sync_containers"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("scope", ASCENDING), ("seq", ASCENDING)])

    @surface_store_errors
    async def get(self, key: str) -> Optional[SyncRecordDocument]:
        return await self.collection.find_one({"_id": key})

    @surface_store_errors
    async def insert(self, doc: SyncRecordDocument) -> bool:
        """Insert a new record; False if the id was taken meanwhile."""
        try:
            await self.collection.insert_one(doc)
        except DuplicateKeyError:
            return False
        return True

    @surface_store_errors
    async def compare_and_set(self, key: str, expected_updated_at: int, fields: Dict[str, Any]) -> bool:
        result = await self.collection.update_one(
            {"_id": key, "updated_at": expected_updated_at},
            {"$set": fields},
        )
        return result.matched_count == 1

    @surface_store_errors
    async def bump_stats(self, key: str, increments: Dict[str, Any], seq: int) -> Optional[SyncRecordDocument]:
        """Apply server-owned counters and move the record to ``seq``. None if absent."""
        return await self.collection.find_one_and_update(
            {"_id": key},
            {"$inc": {f"stats.{name}": amount for name, amount in increments.items()}, "$set": {"seq": seq}},
            return_document=ReturnDocument.AFTER,
        )

    @surface_store_errors
    async def resequence(self, key: str, old_seq: int, new_seq: int) -> bool:
        result = await self.collection.update_one({"_id": key, "seq": old_seq}, {"$set": {"seq": new_seq}})
        return result.matched_count == 1

    @surface_store_errors
    async def list_since(
        self, scope: str, cursor: int, upto: int, limit: Optional[int] = None
    ) -> List[SyncRecordDocument]:
        # strictly greater: the boundary record was already delivered
        query = self.collection.find({"scope": scope, "seq": {"$gt": cursor, "$lte": upto}}).sort("seq", ASCENDING)
        if limit:
            query = query.limit(limit)
        return await query.to_list(length=limit)

    @surface_store_errors
    async def ensure_container(self, collection: str, container_id: str, now_ms: int) -> bool:
        """Create the container if missing. True only for the call that created it."""
        fields: ContainerDocument = {"collection": collection, "container_id": container_id, "created_at": now_ms}
        result = await self.containers.update_one(
            {"_id": scope_key(collection, container_id)},
            {"$setOnInsert": fields},
            upsert=True,
        )
        return result.upserted_id is not None

    @surface_store_errors
    async def container_exists(self, collection: str, container_id: str) -> bool:
        doc = await self.containers.find_one({"_id": scope_key(collection, container_id)})
        return doc is not None
