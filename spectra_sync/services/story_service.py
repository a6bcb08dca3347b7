import logging
from typing import Any, Dict, List, Optional

from spectra_sync.errors import NotFound
from spectra_sync.repositories.story_repository import StoryRepository
from spectra_sync.schemas.story import StoryCreated, StoryOut, ViewResult


logger = logging.getLogger("spectra_sync.stories")


class StoryService:
    """Stories that vanish ``ttl_ms`` after creation.

    Expiry is a function of time only. Nothing runs in the background by
    default: expired stories are hidden on every read and deleted when they
    are next touched.
    """

    def __init__(self, story_repo: StoryRepository, clock, ttl_ms: int) -> None:
        self._repo = story_repo
        self._clock = clock
        self._ttl_ms = ttl_ms

    def _cutoff(self, now_ms: int) -> int:
        return now_ms - self._ttl_ms

    def _to_out(self, doc: Dict[str, Any]) -> StoryOut:
        return StoryOut(
            id=doc["_id"],
            owner_id=doc["owner_id"],
            created_at=doc["created_at"],
            expires_at=doc["created_at"] + self._ttl_ms,
            viewers=list(doc.get("viewers") or []),
            payload=doc.get("payload") or {},
        )

    async def create(self, story_id: str, owner_id: str, payload: Dict[str, Any]) -> StoryCreated:
        now = self._clock.now_ms()
        doc, created = await self._repo.create(story_id, owner_id, payload, now, self._cutoff(now))
        return StoryCreated(
            id=story_id,
            created_at=doc["created_at"],
            expires_at=doc["created_at"] + self._ttl_ms,
            created=created,
        )

    async def get(self, story_id: str) -> Optional[StoryOut]:
        """The story, or None if it has expired. Raises NotFound if absent."""
        now = self._clock.now_ms()
        doc = await self._repo.get(story_id)
        if doc is None:
            raise NotFound("story", story_id)
        if doc["created_at"] < self._cutoff(now):
            await self._collect(story_id, now)
            return None
        return self._to_out(doc)

    async def record_view(self, story_id: str, viewer_id: str) -> ViewResult:
        now = self._clock.now_ms()
        cutoff = self._cutoff(now)
        doc = await self._repo.add_viewer_if_active(story_id, viewer_id, cutoff)
        if doc is None:
            current = await self._repo.get(story_id)
            if current is None:
                raise NotFound("story", story_id)
            if current["created_at"] < cutoff:
                await self._collect(story_id, now)
                return ViewResult(id=story_id, viewers=[], expired=True)
            # recreated between the two reads
            doc = await self._repo.add_viewer_if_active(story_id, viewer_id, cutoff)
            if doc is None:
                raise NotFound("story", story_id)
        return ViewResult(id=story_id, viewers=list(doc.get("viewers") or []), expired=False)

    async def list_active(self) -> List[StoryOut]:
        now = self._clock.now_ms()
        cutoff = self._cutoff(now)
        docs = await self._repo.list_all()
        active = [d for d in docs if d["created_at"] >= cutoff]
        if len(active) < len(docs):
            removed = await self._repo.delete_expired(cutoff)
            logger.info("collected %d expired stories", removed)
        return [self._to_out(d) for d in active]

    async def delete(self, story_id: str) -> None:
        if not await self._repo.delete(story_id):
            raise NotFound("story", story_id)

    async def sweep_expired(self) -> int:
        removed = await self._repo.delete_expired(self._cutoff(self._clock.now_ms()))
        if removed:
            logger.info("sweep removed %d expired stories", removed)
        return removed

    async def _collect(self, story_id: str, now_ms: int) -> None:
        if await self._repo.delete_if_expired(story_id, self._cutoff(now_ms)):
            logger.info("collected expired story %s", story_id)
