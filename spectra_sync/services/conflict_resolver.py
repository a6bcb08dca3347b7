"""Whole-record last-write-wins resolution for synchronized records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Resolution:
    """Verdict for one incoming write.

    ``updated_at`` is the fresh server stamp when accepted, or the server's
    current stamp when rejected.
    """

    accepted: bool
    updated_at: int
    server_version: Optional[Dict[str, Any]] = None


class ConflictResolver:
    """Decides between the stored version of a record and an incoming one.

    Fields are never merged: the winner replaces the record wholesale. The
    incoming ``updated_at`` is the server stamp the client last saw; it only
    takes part in the comparison and is never used as the new stamp.
    """

    def __init__(self, clock) -> None:
        self._clock = clock

    def resolve(self, existing: Optional[Dict[str, Any]], incoming_updated_at: Optional[int]) -> Resolution:
        if existing is None:
            return Resolution(accepted=True, updated_at=self._clock.now_ms())

        server_updated_at = int(existing.get("updated_at") or 0)
        claimed = incoming_updated_at or 0
        if server_updated_at > claimed:
            return Resolution(accepted=False, updated_at=server_updated_at, server_version=existing)

        # stamps never go backwards for the same id
        return Resolution(accepted=True, updated_at=max(self._clock.now_ms(), server_updated_at))
