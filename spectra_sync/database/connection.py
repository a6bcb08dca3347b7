import logging

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from spectra_sync.config import Settings


logger = logging.getLogger("spectra_sync.database")


def connect_to_mongo(settings: Settings) -> AsyncIOMotorClient:
    logger.info("connecting to MongoDB database %s", settings.mongo_db)
    return AsyncIOMotorClient(settings.mongo_url, serverSelectionTimeoutMS=5000)


def close_mongo_connection(client: AsyncIOMotorClient) -> None:
    client.close()
    logger.info("MongoDB connection closed")


def mongo_db_dependency(request: Request) -> AsyncIOMotorDatabase:
    return request.app.state.database


def clock_dependency(request: Request):
    return request.app.state.clock


def bus_dependency(request: Request):
    return request.app.state.bus


def settings_dependency(request: Request) -> Settings:
    return request.app.state.settings
