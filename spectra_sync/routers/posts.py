from typing import List

from fastapi import APIRouter, Depends, status

from spectra_sync.database.connection import clock_dependency, mongo_db_dependency
from spectra_sync.repositories.engagement_repository import EngagementRepository
from spectra_sync.schemas.common import PathId
from spectra_sync.schemas.engagement import CommentCreate, CommentOut, TargetCreate, TargetOut, ToggleRequest, ToggleResult
from spectra_sync.services.engagement_service import EngagementService


router = APIRouter(prefix="/posts", tags=["engagement"])


def get_engagement_service(db = Depends(mongo_db_dependency), clock = Depends(clock_dependency)) -> EngagementService:
    return EngagementService(EngagementRepository(db), clock)


@router.post("", response_model=TargetOut)
async def create_post(body: TargetCreate, service: EngagementService = Depends(get_engagement_service)):
    return await service.create_target(body.id, body.owner_id, body.payload.model_dump())


@router.get("/{post_id}", response_model=TargetOut)
async def get_post(post_id: PathId, service: EngagementService = Depends(get_engagement_service)):
    return await service.get_target(post_id)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: PathId, service: EngagementService = Depends(get_engagement_service)):
    await service.delete_target(post_id)


@router.post("/{post_id}/toggle", response_model=ToggleResult)
async def toggle(post_id: PathId, body: ToggleRequest, service: EngagementService = Depends(get_engagement_service)):
    return await service.toggle(post_id, body.user_id, body.kind)


@router.post("/{post_id}/comments", response_model=CommentOut)
async def add_comment(post_id: PathId, body: CommentCreate, service: EngagementService = Depends(get_engagement_service)):
    return await service.add_comment(post_id, body.username, body.comment, body.time)


@router.get("/{post_id}/comments", response_model=List[CommentOut])
async def list_comments(post_id: PathId, service: EngagementService = Depends(get_engagement_service)):
    return await service.list_comments(post_id)
