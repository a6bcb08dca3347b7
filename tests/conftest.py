import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from spectra_sync.config import Settings
from spectra_sync.main import create_app
from spectra_sync.utils.clock import ManualClock


START_MS = 1_700_000_000_000
HOUR_MS = 3_600_000


class RecordingBus:

    enabled = True

    def __init__(self) -> None:
        self.messages = []

    async def publish(self, channel: str, message: str) -> None:
        self.messages.append((channel, message))

    async def close(self) -> None:
        return


@pytest.fixture
def db():
    return AsyncMongoMockClient()["spectra_test"]


@pytest.fixture
def clock():
    return ManualClock(START_MS)


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def settings():
    return Settings(story_ttl_seconds=24 * 60 * 60, sync_max_pull=50)


@pytest.fixture
def client(db, clock, bus, settings):
    app = create_app(settings=settings, database=db, clock=clock, bus=bus)
    with TestClient(app) as test_client:
        yield test_client
