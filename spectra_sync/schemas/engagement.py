from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from spectra_sync.schemas.common import Identifier


class EngagementKind(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"
    VIEW = "view"


class PostPayload(BaseModel):
    """What the client shows for a post. Counters live beside it, not in it."""

    model_config = ConfigDict(extra="ignore")

    username: Optional[str] = None
    profPic: Optional[str] = None
    caption: Optional[str] = None
    imagePosted: Optional[str] = None
    videoPosted: Optional[str] = None
    time: Optional[Any] = None


class TargetCreate(BaseModel):

    id: Identifier
    owner_id: Identifier
    payload: PostPayload = Field(default_factory=PostPayload)


class TargetOut(BaseModel):

    id: str
    owner_id: str
    created_at: int
    like_num: int = 0
    dislike_num: int = 0
    view_count: int = 0
    comment_num: int = 0
    payload: Dict[str, Any] = Field(default_factory=dict)


class ToggleRequest(BaseModel):

    user_id: Identifier
    kind: EngagementKind


class ToggleResult(BaseModel):

    target_id: str
    user_id: str
    kind: EngagementKind
    active: bool
    count: int


class CommentCreate(BaseModel):

    username: Identifier
    comment: str = Field(min_length=1, max_length=5000)
    time: Optional[Any] = None


class CommentOut(BaseModel):

    id: str
    target_id: str
    username: str
    comment: str
    time: Optional[Any] = None
    created_at: int
