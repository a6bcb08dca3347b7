import asyncio
from typing import List

from spectra_sync.errors import InvalidInput
from spectra_sync.repositories.follow_repository import FollowRepository


class FollowService:
    def __init__(self, follow_repo: FollowRepository, clock):
        self.follow_repo = follow_repo
        self.clock = clock

    async def follow(self, follower: str, followed: str) -> bool:
        if follower == followed:
            raise InvalidInput("Cannot follow yourself")
        await self.follow_repo.follow(follower, followed, self.clock.now_ms())
        return True

    async def unfollow(self, follower: str, followed: str) -> bool:
        await self.follow_repo.unfollow(follower, followed)
        return False

    async def is_following(self, follower: str, followed: str) -> bool:
        return await self.follow_repo.exists(follower, followed)

    async def following(self, user_id: str) -> List[str]:
        return await self.follow_repo.list_following(user_id)

    async def followers(self, user_id: str) -> List[str]:
        return await self.follow_repo.list_followers(user_id)

    async def mutual(self, user_id: str) -> List[str]:
        following = await self.follow_repo.list_following(user_id)
        # one reverse-edge lookup per followed user, all in flight together
        follows_back = await asyncio.gather(
            *(self.follow_repo.exists(other, user_id) for other in following)
        )
        return [other for other, back in zip(following, follows_back) if back]

    async def suggestions(self, user_id: str) -> List[str]:
        following = await self.follow_repo.list_following(user_id)
        their_following = await asyncio.gather(
            *(self.follow_repo.list_following(other) for other in following)
        )
        already = set(following)
        candidates = set()
        for users in their_following:
            candidates.update(u for u in users if u != user_id and u not in already)
        return sorted(candidates)
