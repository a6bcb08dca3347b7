from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from spectra_sync.database.connection import clock_dependency, mongo_db_dependency, settings_dependency
from spectra_sync.repositories.story_repository import StoryRepository
from spectra_sync.schemas.common import PathId
from spectra_sync.schemas.story import StoryCreate, StoryCreated, StoryOut, ViewRequest, ViewResult
from spectra_sync.services.story_service import StoryService


router = APIRouter(prefix="/stories", tags=["stories"])


def get_story_service(db = Depends(mongo_db_dependency), clock = Depends(clock_dependency), settings = Depends(settings_dependency)) -> StoryService:
    return StoryService(StoryRepository(db), clock, settings.story_ttl_ms)


def _gone(story_id: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_410_GONE, content=ViewResult(id=story_id, expired=True).model_dump())


@router.post("", response_model=StoryCreated)
async def create_story(body: StoryCreate, service: StoryService = Depends(get_story_service)):
    return await service.create(body.id, body.owner_id, body.payload.model_dump())


@router.get("", response_model=List[StoryOut])
async def list_stories(service: StoryService = Depends(get_story_service)):
    return await service.list_active()


@router.get("/{story_id}", response_model=StoryOut, responses={410: {"model": ViewResult}})
async def get_story(story_id: PathId, service: StoryService = Depends(get_story_service)):
    story = await service.get(story_id)
    if story is None:
        return _gone(story_id)
    return story


@router.post("/{story_id}/view", response_model=ViewResult, responses={410: {"model": ViewResult}})
async def view_story(story_id: PathId, body: ViewRequest, service: StoryService = Depends(get_story_service)):
    result = await service.record_view(story_id, body.viewer_id)
    if result.expired:
        return _gone(story_id)
    return result


@router.delete("/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_story(story_id: PathId, service: StoryService = Depends(get_story_service)):
    await service.delete(story_id)
