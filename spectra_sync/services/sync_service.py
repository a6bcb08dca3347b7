import logging
import math
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from spectra_sync.errors import InvalidInput, NotFound
from spectra_sync.repositories.counter_repository import CounterRepository
from spectra_sync.repositories.record_repository import RecordRepository, record_key, scope_key
from spectra_sync.schemas.sync import (
    COLLECTIONS,
    MAX_INT64,
    CollectionSpec,
    ProviderAction,
    ProviderStats,
    PullResponse,
    PushResponse,
    RecordOutcome,
    SyncRecordIn,
    SyncRecordOut,
)
from spectra_sync.services.conflict_resolver import ConflictResolver
from spectra_sync.utils.realtime_bus import NoopBus, notify_scope_changed


logger = logging.getLogger("spectra_sync.sync")


def parse_cursor(value: Any) -> int:
    """Numeric cursor, or 0 for anything malformed so nothing is skipped."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return _in_range(value)
    if isinstance(value, float):
        number = value
    else:
        text = str(value).strip()
        try:
            return _in_range(int(text))
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return 0
    if not math.isfinite(number):
        return 0
    return _in_range(int(number))


def _in_range(cursor: int) -> int:
    # the store only holds int64; nothing past that was ever handed out
    if cursor <= 0 or cursor > MAX_INT64:
        return 0
    return cursor


def _seq_name(scope: str) -> str:
    return f"seq:{scope}"


def to_provider_stats(stats: Optional[Dict[str, Any]]) -> ProviderStats:
    stats = stats or {}
    count = int(stats.get("rating_count", 0))
    return ProviderStats(
        views=int(stats.get("views", 0)),
        likes=int(stats.get("likes", 0)),
        # mean of every rating received, kept as a sum so updates are a plain $inc
        rating=stats.get("rating_sum", 0) / count if count else 0.0,
        rating_count=count,
    )


def to_record_out(doc: Dict[str, Any]) -> SyncRecordOut:
    return SyncRecordOut(
        id=doc["record_id"],
        seq=doc["seq"],
        updated_at=doc["updated_at"],
        client_updated_at=doc.get("client_updated_at"),
        payload=doc.get("payload") or {},
        stats=to_provider_stats(doc["stats"]) if doc.get("stats") else None,
    )


class SyncService:

    def __init__(
        self,
        record_repo: RecordRepository,
        counter_repo: CounterRepository,
        clock,
        bus=None,
        max_pull: int = 1000,
        seq_lease_ms: int = 30_000,
    ) -> None:
        self._records = record_repo
        self._counters = counter_repo
        self._clock = clock
        self._bus = bus or NoopBus()
        self._max_pull = max_pull
        self._seq_lease_ms = seq_lease_ms
        self._resolver = ConflictResolver(clock)

    def _collection(self, name: str, container_id: Optional[str]) -> CollectionSpec:
        spec = COLLECTIONS.get(name)
        if spec is None:
            raise InvalidInput(f"Unknown collection {name!r}")
        if spec.scoped and not container_id:
            raise InvalidInput(f"Collection {name!r} requires a container_id")
        if not spec.scoped and container_id:
            raise InvalidInput(f"Collection {name!r} does not take a container_id")
        return spec

    def _validate_payload(self, spec: CollectionSpec, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return spec.payload_model.model_validate(payload).model_dump()
        except ValidationError as exc:
            raise InvalidInput(f"Invalid {spec.name} payload: {exc.errors()[0]['msg']}") from None

    async def pull(self, collection: str, container_id: Optional[str] = None, cursor: Any = None, limit: Optional[int] = None) -> PullResponse:
        self._collection(collection, container_id)
        since = parse_cursor(cursor)
        page = min(limit or self._max_pull, self._max_pull)
        server_time = self._clock.now_ms()
        scope = scope_key(collection, container_id)
        # a record stays hidden until every lower seq has finished writing
        upto = await self._counters.settle(_seq_name(scope), server_time, self._seq_lease_ms)
        docs = await self._records.list_since(scope, since, upto, limit=page + 1)
        has_more = len(docs) > page
        docs = docs[:page]
        records = [to_record_out(d) for d in docs]
        return PullResponse(
            collection=collection,
            container_id=container_id,
            records=records,
            server_time=server_time,
            cursor=records[-1].seq if records else since,
            has_more=has_more,
        )

    async def push(self, collection: str, container_id: Optional[str], records: List[SyncRecordIn]) -> PushResponse:
        spec = self._collection(collection, container_id)
        # reject the whole batch before anything is written
        payloads = [self._validate_payload(spec, r.payload) for r in records]

        if spec.scoped:
            created = await self._records.ensure_container(collection, container_id, self._clock.now_ms())
            if created:
                logger.info("created container %s/%s on first contact", collection, container_id)
                return PushResponse(collection=collection, container_id=container_id, created=True)

        scope = scope_key(collection, container_id)
        results: List[RecordOutcome] = []
        for record, payload in zip(records, payloads):
            results.append(await self._write(spec, container_id, scope, record.id, payload, record.updated_at))

        accepted = sum(1 for r in results if r.status == "accepted")
        if accepted:
            await self._notify(collection, container_id, scope, max(r.seq for r in results if r.status == "accepted"))
        logger.debug("push to %s: %d accepted, %d rejected", scope, accepted, len(results) - accepted)
        return PushResponse(
            collection=collection,
            container_id=container_id,
            created=False,
            accepted=accepted,
            rejected=len(results) - accepted,
            results=results,
        )

    async def upsert(
        self,
        collection: str,
        container_id: Optional[str],
        record_id: str,
        payload: Dict[str, Any],
        updated_at: Optional[int],
    ) -> RecordOutcome:
        spec = self._collection(collection, container_id)
        clean = self._validate_payload(spec, payload)
        if spec.scoped and not await self._records.container_exists(collection, container_id):
            raise NotFound("container", scope_key(collection, container_id))
        scope = scope_key(collection, container_id)
        outcome = await self._write(spec, container_id, scope, record_id, clean, updated_at)
        if outcome.status == "accepted":
            await self._notify(collection, container_id, scope, outcome.seq)
        return outcome

    async def get_record(self, collection: str, container_id: Optional[str], record_id: str) -> SyncRecordOut:
        self._collection(collection, container_id)
        key = record_key(scope_key(collection, container_id), record_id)
        doc = await self._records.get(key)
        if doc is None:
            raise NotFound("record", key)
        return to_record_out(doc)

    async def apply_provider_action(self, provider_id: str, action: ProviderAction, value: Optional[float] = None) -> ProviderStats:
        """Bump a provider's view, like or rating totals.

        The profile payload and its updated_at are untouched, so this never
        conflicts with profile edits. The record gets a fresh seq so pulls
        pick up the new totals.
        """
        action = ProviderAction(action)
        if action is ProviderAction.VIEW:
            increments = {"views": 1}
        elif action is ProviderAction.LIKE:
            increments = {"likes": 1}
        else:
            if value is None:
                raise InvalidInput("rating requires a value")
            increments = {"rating_sum": value, "rating_count": 1}

        scope = scope_key("providers", None)
        key = record_key(scope, provider_id)
        seq = await self._counters.reserve(_seq_name(scope))
        doc = None
        try:
            doc = await self._records.bump_stats(key, increments, seq)
        finally:
            seq = await self._finish(scope, key, seq, doc is not None)
        if doc is None:
            raise NotFound("provider", provider_id)
        await self._notify("providers", None, scope, seq)
        return to_provider_stats(doc.get("stats"))

    async def _write(
        self,
        spec: CollectionSpec,
        container_id: Optional[str],
        scope: str,
        record_id: str,
        payload: Dict[str, Any],
        updated_at: Optional[int],
    ) -> RecordOutcome:
        key = record_key(scope, record_id)
        existing = await self._records.get(key)
        resolution = self._resolver.resolve(existing, updated_at)
        if not resolution.accepted:
            logger.debug("rejected stale write to %s (server %s > client %s)", key, resolution.updated_at, updated_at)
            return self._conflict(record_id, resolution.server_version)

        seq = await self._counters.reserve(_seq_name(scope))
        written = False
        try:
            fields = {
                "payload": payload,
                "seq": seq,
                "updated_at": resolution.updated_at,
                "client_updated_at": updated_at,
            }
            if existing is None:
                written = await self._records.insert({
                    "_id": key,
                    "collection": spec.name,
                    "container_id": container_id,
                    "scope": scope,
                    "record_id": record_id,
                    **fields,
                })
            else:
                written = await self._records.compare_and_set(key, existing["updated_at"], fields)
        finally:
            seq = await self._finish(scope, key, seq, written)

        if not written:
            # someone else wrote this id between our read and our write
            logger.info("lost write race on %s", key)
            return self._conflict(record_id, await self._records.get(key))
        return RecordOutcome(id=record_id, status="accepted", seq=seq, updated_at=resolution.updated_at)

    async def _finish(self, scope: str, key: str, seq: int, written: bool) -> int:
        """Release ``seq`` and return the seq the record ends up with.

        When the watermark has already given ``seq`` up, a record written
        under it would sit below every client cursor, so it moves to a
        fresh seq.
        """
        name = _seq_name(scope)
        while not await self._counters.release(name, seq):
            if not written:
                break
            fresh = await self._counters.reserve(name)
            logger.warning("%s outlived the lease on #%d, moving it to #%d", key, seq, fresh)
            if not await self._records.resequence(key, seq, fresh):
                # overwritten meanwhile; the newer write has its own seq
                written = False
            seq = fresh
        await self._counters.settle(name, self._clock.now_ms(), self._seq_lease_ms)
        return seq

    def _conflict(self, record_id: str, server_doc: Optional[Dict[str, Any]]) -> RecordOutcome:
        server_version = to_record_out(server_doc) if server_doc else None
        return RecordOutcome(
            id=record_id,
            status="conflict",
            updated_at=server_version.updated_at if server_version else None,
            server_version=server_version,
        )

    async def _notify(self, collection: str, container_id: Optional[str], scope: str, cursor: int) -> None:
        await notify_scope_changed(
            self._bus,
            scope,
            {"type": "sync", "collection": collection, "container_id": container_id, "cursor": cursor},
        )
