from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from spectra_sync.schemas.common import Identifier


class StoryPayload(BaseModel):

    model_config = ConfigDict(extra="ignore")

    username: Optional[str] = None
    profPic: Optional[str] = None
    videoPosted: Optional[str] = None
    imagePosted: Optional[str] = None
    songPosted: Optional[str] = None
    caption: Optional[str] = None
    time: Optional[Any] = None
    songPlayed: Optional[str] = None


class StoryCreate(BaseModel):

    id: Identifier
    owner_id: Identifier
    payload: StoryPayload = Field(default_factory=StoryPayload)


class StoryCreated(BaseModel):

    id: str
    created_at: int
    expires_at: int
    # false when the id already held an active story
    created: bool


class StoryOut(BaseModel):

    id: str
    owner_id: str
    created_at: int
    expires_at: int
    viewers: List[str] = Field(default_factory=list)
    payload: Dict[str, Any] = Field(default_factory=dict)


class ViewRequest(BaseModel):

    viewer_id: Identifier


class ViewResult(BaseModel):

    id: str
    viewers: List[str] = Field(default_factory=list)
    expired: bool = False
