from typing import Any, Dict, List, Optional, TypedDict


class SyncRecordDocument(TypedDict, total=False):
    # "<collection>/<container>/<record_id>" or "<collection>/<record_id>"
    _id: str
    collection: str
    container_id: Optional[str]
    scope: str
    record_id: str
    # per-scope ordering key, reallocated on every accepted write
    seq: int
    # server-authoritative epoch millis
    updated_at: int
    # what the client claimed, kept for reference only
    client_updated_at: Optional[int]
    payload: Dict[str, Any]
    # providers only: views, likes, rating_sum, rating_count; never part of payload
    stats: Dict[str, Any]


class ContainerDocument(TypedDict, total=False):
    _id: str
    collection: str
    container_id: str
    created_at: int


class CounterDocument(TypedDict, total=False):
    _id: str
    value: int
    # sequence counters only: every number <= committed has finished
    committed: int
    done: List[int]
    stall_seq: int
    stall_since: int
