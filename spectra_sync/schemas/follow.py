from typing import List

from pydantic import BaseModel

from spectra_sync.schemas.common import Identifier


class FollowRequest(BaseModel):

    follower: Identifier
    followed: Identifier


class FollowResult(BaseModel):

    follower: str
    followed: str
    following: bool


class UserList(BaseModel):

    user_id: str
    users: List[str]
