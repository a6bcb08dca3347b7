from typing import Any, Dict, List, TypedDict


class StoryDocument(TypedDict, total=False):
    _id: str
    owner_id: str
    # server time, immutable once set
    created_at: int
    viewers: List[str]
    payload: Dict[str, Any]
