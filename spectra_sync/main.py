import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from spectra_sync.config import Settings
from spectra_sync.database.connection import close_mongo_connection, connect_to_mongo
from spectra_sync.errors import InvalidInput, NotFound, StoreUnavailable
from spectra_sync.logging_utils import setup_logging
from spectra_sync.repositories.engagement_repository import EngagementRepository
from spectra_sync.repositories.follow_repository import FollowRepository
from spectra_sync.repositories.record_repository import RecordRepository
from spectra_sync.repositories.story_repository import StoryRepository
from spectra_sync.routers.follows import router as follows_router
from spectra_sync.routers.posts import router as posts_router
from spectra_sync.routers.providers import router as providers_router
from spectra_sync.routers.stories import router as stories_router
from spectra_sync.routers.sync import router as sync_router
from spectra_sync.services.story_service import StoryService
from spectra_sync.utils.clock import SystemClock
from spectra_sync.utils.realtime_bus import create_bus


logger = logging.getLogger("spectra_sync.main")


async def _sweep_stories(service: StoryService, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await service.sweep_expired()
        except StoreUnavailable as exc:
            logger.warning("story sweep skipped: %s", exc)


def create_app(settings: Optional[Settings] = None, database=None, clock=None, bus=None) -> FastAPI:
    """Build the app. ``database`` is opened from settings when not given."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, structured=settings.log_json)
        client = None
        db = database
        if db is None:
            client = connect_to_mongo(settings)
            db = client[settings.mongo_db]
        app.state.settings = settings
        app.state.database = db
        app.state.clock = clock or SystemClock()
        app.state.bus = bus or create_bus(settings.redis_url)

        await RecordRepository(db).ensure_indexes()
        await EngagementRepository(db).ensure_indexes()
        await StoryRepository(db).ensure_indexes()
        await FollowRepository(db).ensure_indexes()

        sweeper = None
        if settings.story_sweep_interval_seconds > 0:
            stories = StoryService(StoryRepository(db), app.state.clock, settings.story_ttl_ms)
            sweeper = asyncio.create_task(_sweep_stories(stories, settings.story_sweep_interval_seconds))
        try:
            yield
        finally:
            if sweeper:
                sweeper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper
            await app.state.bus.close()
            if client is not None:
                close_mongo_connection(client)

    app = FastAPI(title="Spectra sync server", lifespan=lifespan)

    app.include_router(sync_router)
    app.include_router(providers_router)
    app.include_router(posts_router)
    app.include_router(stories_router)
    app.include_router(follows_router)

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(request: Request, exc: InvalidInput):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        return JSONResponse(status_code=503, content={"error": "store unavailable"})

    @app.get("/")
    async def root(request: Request):
        collections = await request.app.state.database.list_collection_names()
        return {"message": "Spectra sync server", "collections": sorted(collections)}

    return app


app = create_app()
