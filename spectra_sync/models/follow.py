from typing import TypedDict


class FollowDocument(TypedDict, total=False):
    # "<follower>/<followed>"
    _id: str
    follower: str
    followed: str
    followed_at: int
