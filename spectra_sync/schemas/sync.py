from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, model_validator

from spectra_sync.schemas.common import Identifier


class ChatMessagePayload(BaseModel):
    """One row of the client's local chat table."""

    model_config = ConfigDict(extra="ignore")

    senderName: Optional[str] = None
    recName: Optional[str] = None
    username: Optional[str] = None
    sentText: Optional[str] = None
    receivedText: Optional[str] = None
    timeSent: Optional[Any] = None
    timeReceived: Optional[Any] = None
    imageSent: Optional[str] = None
    imageRec: Optional[str] = None
    videoSent: Optional[str] = None
    videoRec: Optional[str] = None
    audioSent: Optional[str] = None
    audioRec: Optional[str] = None
    senderPic: Optional[str] = None
    recProfPic: Optional[str] = None
    eventSend: Optional[str] = None
    eventRec: Optional[str] = None
    descriptionSend: Optional[str] = None
    descriptionRec: Optional[str] = None
    eventDateSent: Optional[str] = None
    eventDateRec: Optional[str] = None
    eventTmSend: Optional[str] = None
    eventTmRec: Optional[str] = None


class ProviderPayload(BaseModel):
    """Service provider profile. Counters are server-owned and not accepted here."""

    model_config = ConfigDict(extra="ignore")

    username: Optional[str] = None
    businessName: Optional[str] = None
    bio: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    servicesJson: Optional[str] = None
    priceRange: Optional[str] = None
    availabilityJson: Optional[str] = None
    profileImagePath: Optional[str] = None
    coverImagePath: Optional[str] = None
    isVerified: bool = False
    isActive: bool = True
    createdAt: Optional[int] = None


@dataclass(frozen=True)
class CollectionSpec:

    name: str
    # scoped collections hold records under a container (e.g. one chat)
    scoped: bool
    payload_model: Type[BaseModel]


# largest integer the store can hold
MAX_INT64 = 2**63 - 1

COLLECTIONS: Dict[str, CollectionSpec] = {
    "chats": CollectionSpec(name="chats", scoped=True, payload_model=ChatMessagePayload),
    "providers": CollectionSpec(name="providers", scoped=False, payload_model=ProviderPayload),
}


class SyncRecordIn(BaseModel):

    # client-chosen, so a retried batch lands on the same records
    id: Identifier
    # the server updated_at the client last saw for this record
    updated_at: Optional[int] = Field(default=None, ge=0, le=MAX_INT64)
    payload: Dict[str, Any] = Field(default_factory=dict)


class ProviderStats(BaseModel):
    """Server-owned engagement on a provider, outside its synced payload."""

    views: int = 0
    likes: int = 0
    rating: float = 0.0
    rating_count: int = 0


class SyncRecordOut(BaseModel):

    id: str
    seq: int
    updated_at: int
    client_updated_at: Optional[int] = None
    payload: Dict[str, Any]
    stats: Optional[ProviderStats] = None


class PullRequest(BaseModel):

    collection: str
    container_id: Optional[Identifier] = None
    # last seen seq; anything non-numeric counts as 0
    cursor: Any = None
    limit: Optional[int] = Field(default=None, ge=1)


class PullResponse(BaseModel):

    collection: str
    container_id: Optional[str] = None
    records: List[SyncRecordOut]
    server_time: int
    cursor: int
    has_more: bool = False


class PushRequest(BaseModel):

    collection: str
    container_id: Optional[Identifier] = None
    records: List[SyncRecordIn]


class RecordOutcome(BaseModel):

    id: str
    status: Literal["accepted", "conflict"]
    seq: Optional[int] = None
    updated_at: Optional[int] = None
    server_version: Optional[SyncRecordOut] = None


class PushResponse(BaseModel):

    collection: str
    container_id: Optional[str] = None
    created: bool
    accepted: int = 0
    rejected: int = 0
    results: List[RecordOutcome] = Field(default_factory=list)


class ProviderAction(str, Enum):
    VIEW = "view"
    LIKE = "like"
    RATING = "rating"


class ProviderActionRequest(BaseModel):

    action: ProviderAction
    # star rating, only read for action="rating"
    value: Optional[float] = Field(default=None, ge=0, le=5)

    @model_validator(mode="after")
    def rating_needs_value(self) -> "ProviderActionRequest":
        if self.action is ProviderAction.RATING and self.value is None:
            raise ValueError("rating requires a value")
        return self


class UpsertRequest(BaseModel):

    container_id: Optional[Identifier] = None
    updated_at: Optional[int] = Field(default=None, ge=0, le=MAX_INT64)
    payload: Dict[str, Any] = Field(default_factory=dict)
