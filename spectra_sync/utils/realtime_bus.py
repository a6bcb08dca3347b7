import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis


logger = logging.getLogger("spectra_sync.bus")


class NoopBus:

    enabled = False

    async def publish(self, channel: str, message: str) -> None:
        return

    async def close(self) -> None:
        return


class RedisBus:

    enabled = True

    def __init__(self, url: str) -> None:
        self._redis = redis.from_url(url)

    async def publish(self, channel: str, message: str) -> None:
        await self._redis.publish(channel, message)

    async def close(self) -> None:
        await self._redis.aclose()


def create_bus(redis_url: Optional[str]):
    if not redis_url:
        return NoopBus()
    return RedisBus(redis_url)


async def notify_scope_changed(bus, scope: str, event: Dict[str, Any]) -> None:
    """Tell subscribers of ``sync:<scope>`` to pull. Best effort."""
    if not getattr(bus, "enabled", False):
        return
    try:
        await bus.publish(f"sync:{scope}", json.dumps(event))
    except (redis.RedisError, OSError) as exc:
        logger.warning("change notification for %s dropped: %s", scope, exc)
