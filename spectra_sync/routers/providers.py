from fastapi import APIRouter, Depends

from spectra_sync.routers.sync import get_sync_service
from spectra_sync.schemas.common import PathId
from spectra_sync.schemas.sync import ProviderActionRequest, ProviderStats
from spectra_sync.services.sync_service import SyncService


router = APIRouter(prefix="/providers", tags=["providers"])


@router.post("/{provider_id}/action", response_model=ProviderStats)
async def provider_action(provider_id: PathId, body: ProviderActionRequest, service: SyncService = Depends(get_sync_service)):
    return await service.apply_provider_action(provider_id, body.action, body.value)
