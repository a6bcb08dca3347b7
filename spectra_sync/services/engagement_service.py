import logging
from typing import Any, Dict, List

from spectra_sync.errors import NotFound
from spectra_sync.repositories.engagement_repository import KIND_FIELDS, EngagementRepository
from spectra_sync.schemas.engagement import CommentOut, EngagementKind, TargetOut, ToggleResult


logger = logging.getLogger("spectra_sync.engagement")


def to_target_out(doc: Dict[str, Any]) -> TargetOut:
    return TargetOut(
        id=doc["_id"],
        owner_id=doc["owner_id"],
        created_at=doc["created_at"],
        like_num=doc.get("like_num", 0),
        dislike_num=doc.get("dislike_num", 0),
        view_count=doc.get("view_count", 0),
        comment_num=doc.get("comment_num", 0),
        payload=doc.get("payload") or {},
    )


class EngagementService:
    """Like/dislike/view toggles and comments on posts."""

    def __init__(self, engagement_repo: EngagementRepository, clock) -> None:
        self._repo = engagement_repo
        self._clock = clock

    async def create_target(self, target_id: str, owner_id: str, payload: Dict[str, Any]) -> TargetOut:
        doc, created = await self._repo.create(target_id, owner_id, payload, self._clock.now_ms())
        if created:
            logger.debug("created post %s", target_id)
        return to_target_out(doc)

    async def get_target(self, target_id: str) -> TargetOut:
        doc = await self._repo.get(target_id)
        if doc is None:
            raise NotFound("post", target_id)
        return to_target_out(doc)

    async def toggle(self, target_id: str, user_id: str, kind: EngagementKind) -> ToggleResult:
        """Flip the user's membership and the matching counter together.

        Views only ever switch on: repeat views leave the count alone.
        """
        kind = EngagementKind(kind)
        members, counter = KIND_FIELDS[kind.value]

        doc = await self._repo.add_member(target_id, user_id, kind.value)
        if doc is not None:
            return self._result(target_id, user_id, kind, True, doc[counter])

        if kind is not EngagementKind.VIEW:
            doc = await self._repo.remove_member(target_id, user_id, kind.value)
            if doc is not None:
                return self._result(target_id, user_id, kind, False, doc[counter])

        doc = await self._repo.get(target_id)
        if doc is None:
            raise NotFound("post", target_id)
        # view already recorded, or a concurrent toggle by the same user landed in between
        return self._result(target_id, user_id, kind, user_id in doc.get(members, []), doc.get(counter, 0))

    async def has_acted(self, target_id: str, user_id: str, kind: EngagementKind) -> bool:
        return await self._repo.is_member(target_id, user_id, EngagementKind(kind).value)

    async def add_comment(self, target_id: str, username: str, comment: str, time: Any = None) -> CommentOut:
        doc = await self._repo.add_comment(target_id, username, comment, time, self._clock.now_ms())
        if doc is None:
            raise NotFound("post", target_id)
        return self._comment_out(doc)

    async def list_comments(self, target_id: str) -> List[CommentOut]:
        if await self._repo.get(target_id) is None:
            raise NotFound("post", target_id)
        return [self._comment_out(d) for d in await self._repo.list_comments(target_id)]

    async def delete_target(self, target_id: str) -> None:
        if not await self._repo.delete(target_id):
            raise NotFound("post", target_id)
        logger.info("deleted post %s with its engagement and comments", target_id)

    def _result(self, target_id: str, user_id: str, kind: EngagementKind, active: bool, count: int) -> ToggleResult:
        return ToggleResult(target_id=target_id, user_id=user_id, kind=kind, active=active, count=count)

    def _comment_out(self, doc: Dict[str, Any]) -> CommentOut:
        return CommentOut(
            id=str(doc["_id"]),
            target_id=doc["target_id"],
            username=doc["username"],
            comment=doc["comment"],
            time=doc.get("time"),
            created_at=doc["created_at"],
        )
