from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from spectra_sync.database.connection import bus_dependency, clock_dependency, mongo_db_dependency, settings_dependency
from spectra_sync.repositories.counter_repository import CounterRepository
from spectra_sync.repositories.record_repository import RecordRepository
from spectra_sync.schemas.common import PathId, QueryId
from spectra_sync.schemas.sync import PullRequest, PullResponse, PushRequest, PushResponse, RecordOutcome, SyncRecordOut, UpsertRequest
from spectra_sync.services.sync_service import SyncService


router = APIRouter(prefix="/sync", tags=["sync"])


def get_sync_service(
    db = Depends(mongo_db_dependency),
    clock = Depends(clock_dependency),
    bus = Depends(bus_dependency),
    settings = Depends(settings_dependency),
) -> SyncService:
    return SyncService(
        RecordRepository(db),
        CounterRepository(db),
        clock,
        bus=bus,
        max_pull=settings.sync_max_pull,
        seq_lease_ms=settings.sync_seq_lease_ms,
    )


@router.post("/pull", response_model=PullResponse)
async def pull(body: PullRequest, service: SyncService = Depends(get_sync_service)):
    return await service.pull(body.collection, body.container_id, body.cursor, body.limit)


@router.post("/push", response_model=PushResponse)
async def push(body: PushRequest, service: SyncService = Depends(get_sync_service)):
    return await service.push(body.collection, body.container_id, body.records)


@router.put("/{collection}/records/{record_id}", response_model=RecordOutcome, responses={409: {"model": RecordOutcome}})
async def upsert_record(collection: str, record_id: PathId, body: UpsertRequest, service: SyncService = Depends(get_sync_service)):
    outcome = await service.upsert(collection, body.container_id, record_id, body.payload, body.updated_at)
    if outcome.status == "conflict":
        return JSONResponse(status_code=409, content=outcome.model_dump())
    return outcome


@router.get("/{collection}/records/{record_id}", response_model=SyncRecordOut)
async def get_record(collection: str, record_id: PathId, container_id: QueryId = None, service: SyncService = Depends(get_sync_service)):
    return await service.get_record(collection, container_id, record_id)
