import asyncio

import pytest

from spectra_sync.errors import InvalidInput
from spectra_sync.repositories.follow_repository import FollowRepository
from spectra_sync.services.follow_service import FollowService


def _seed(service, edges):
    async def scenario():
        for follower, followed in edges:
            await service.follow(follower, followed)
    asyncio.run(scenario())


def test_follow_is_idempotent_and_reversible(db, clock):
    service = FollowService(FollowRepository(db), clock)
    _seed(service, [("john", "mary"), ("john", "mary")])

    assert asyncio.run(service.following("john")) == ["mary"]
    assert asyncio.run(service.followers("mary")) == ["john"]
    assert asyncio.run(service.is_following("john", "mary")) is True

    asyncio.run(service.unfollow("john", "mary"))
    assert asyncio.run(service.is_following("john", "mary")) is False


def test_cannot_follow_yourself(db, clock):
    service = FollowService(FollowRepository(db), clock)
    with pytest.raises(InvalidInput):
        asyncio.run(service.follow("john", "john"))


def test_mutual_contacts(db, clock):
    service = FollowService(FollowRepository(db), clock)
    _seed(service, [("me", "a"), ("me", "b"), ("me", "c"), ("a", "me"), ("c", "me"), ("d", "me")])

    assert asyncio.run(service.mutual("me")) == ["a", "c"]


def test_friends_of_friends_suggestions(db, clock):
    service = FollowService(FollowRepository(db), clock)
    _seed(service, [("me", "a"), ("me", "b"), ("a", "x"), ("a", "b"), ("b", "me"), ("b", "y"), ("b", "x")])

    assert asyncio.run(service.suggestions("me")) == ["x", "y"]


def test_no_following_means_no_suggestions(db, clock):
    service = FollowService(FollowRepository(db), clock)
    assert asyncio.run(service.suggestions("loner")) == []
    assert asyncio.run(service.mutual("loner")) == []
