from typing import Any, Dict, List, TypedDict


class EngagementTargetDocument(TypedDict, total=False):
    _id: str
    owner_id: str
    created_at: int
    payload: Dict[str, Any]
    # counters always equal len() of the matching membership array
    like_num: int
    dislike_num: int
    view_count: int
    comment_num: int
    liked_by: List[str]
    disliked_by: List[str]
    viewed_by: List[str]


class CommentDocument(TypedDict, total=False):
    _id: str
    target_id: str
    username: str
    comment: str
    time: Any
    created_at: int
