import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from spectra_sync.errors import surface_store_errors
from spectra_sync.models.record import CounterDocument


logger = logging.getLogger("spectra_sync.counters")


class CounterRepository:
    """Named integer counters updated with a single atomic ``$inc``.

    Sequence counters also carry a commit watermark. ``reserve`` hands out a
    number, ``release`` reports it finished, and ``settle`` moves
    ``committed`` over every contiguous finished number. Readers that stop
    at ``committed`` never pass a number whose write is still in flight.
    """

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["counters"]

    @surface_store_errors
    async def increment(self, name: str, delta: int = 1) -> int:
        doc: CounterDocument = await self.collection.find_one_and_update(
            {"_id": name},
            {"$inc": {"value": delta}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["value"])

    async def next_value(self, name: str) -> int:
        return await self.increment(name, 1)

    @surface_store_errors
    async def get(self, name: str) -> int:
        doc: Optional[CounterDocument] = await self.collection.find_one({"_id": name})
        return int(doc["value"]) if doc else 0

    @surface_store_errors
    async def reserve(self, name: str) -> int:
        doc: CounterDocument = await self.collection.find_one_and_update(
            {"_id": name},
            {"$inc": {"value": 1, "committed": 0}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["value"])

    @surface_store_errors
    async def release(self, name: str, value: int) -> bool:
        """Mark a reserved number finished. False if the watermark already
        passed it, i.e. it was given up as abandoned."""
        result = await self.collection.update_one(
            {"_id": name, "committed": {"$lt": value}},
            {"$addToSet": {"done": value}},
        )
        return result.matched_count == 1

    @surface_store_errors
    async def settle(self, name: str, now_ms: int, lease_ms: int) -> int:
        """Advance and return the watermark.

        A number that holds the watermark back for ``lease_ms`` is treated
        as abandoned and skipped.
        """
        while True:
            doc: Optional[CounterDocument] = await self.collection.find_one({"_id": name})
            if doc is None:
                return 0
            committed = int(doc.get("committed", 0))
            value = int(doc.get("value", 0))
            done = list(doc.get("done") or [])
            finished = set(done)

            mark = committed
            stall = {}
            while mark < value:
                if mark + 1 in finished:
                    mark += 1
                    continue
                gap = mark + 1
                if doc.get("stall_seq") != gap:
                    stall = {"stall_seq": gap, "stall_since": now_ms}
                    break
                if now_ms - int(doc.get("stall_since", now_ms)) < lease_ms:
                    break
                logger.warning("giving up on %s #%d after %d ms", name, gap, lease_ms)
                mark = gap

            if mark == committed and not stall:
                return committed
            result = await self.collection.update_one(
                {
                    "_id": name,
                    "committed": committed,
                    "done": done if "done" in doc else {"$exists": False},
                },
                {"$set": {"committed": mark, "done": [v for v in done if v > mark], **stall}},
            )
            if result.matched_count == 1:
                return mark
