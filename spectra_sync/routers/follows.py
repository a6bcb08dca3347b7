from fastapi import APIRouter, Depends

from spectra_sync.database.connection import clock_dependency, mongo_db_dependency
from spectra_sync.repositories.follow_repository import FollowRepository
from spectra_sync.schemas.common import PathId
from spectra_sync.schemas.follow import FollowRequest, FollowResult, UserList
from spectra_sync.services.follow_service import FollowService

router = APIRouter(prefix="/follows", tags=["follow"])

def get_follow_service(db = Depends(mongo_db_dependency), clock = Depends(clock_dependency)):
    return FollowService(FollowRepository(db), clock)

@router.post("", response_model=FollowResult)
async def follow(body: FollowRequest, service: FollowService = Depends(get_follow_service)):
    following = await service.follow(body.follower, body.followed)
    return FollowResult(follower=body.follower, followed=body.followed, following=following)

@router.delete("", response_model=FollowResult)
async def unfollow(body: FollowRequest, service: FollowService = Depends(get_follow_service)):
    following = await service.unfollow(body.follower, body.followed)
    return FollowResult(follower=body.follower, followed=body.followed, following=following)

@router.get("/{user_id}/is-following/{target}", response_model=FollowResult)
async def is_following(user_id: PathId, target: PathId, service: FollowService = Depends(get_follow_service)):
    following = await service.is_following(user_id, target)
    return FollowResult(follower=user_id, followed=target, following=following)

@router.get("/{user_id}/following", response_model=UserList)
async def following(user_id: PathId, service: FollowService = Depends(get_follow_service)):
    return UserList(user_id=user_id, users=await service.following(user_id))

@router.get("/{user_id}/followers", response_model=UserList)
async def followers(user_id: PathId, service: FollowService = Depends(get_follow_service)):
    return UserList(user_id=user_id, users=await service.followers(user_id))

@router.get("/{user_id}/mutual", response_model=UserList)
async def mutual(user_id: PathId, service: FollowService = Depends(get_follow_service)):
    return UserList(user_id=user_id, users=await service.mutual(user_id))

@router.get("/{user_id}/suggestions", response_model=UserList)
async def suggestions(user_id: PathId, service: FollowService = Depends(get_follow_service)):
    return UserList(user_id=user_id, users=await service.suggestions(user_id))
