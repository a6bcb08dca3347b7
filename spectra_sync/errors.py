import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

from bson.errors import InvalidDocument
from pymongo.errors import ConnectionFailure, ExecutionTimeout


logger = logging.getLogger("spectra_sync.errors")

T = TypeVar("T")


class SyncEngineError(Exception):
    """Base class for failures scoped to a single request."""


class NotFound(SyncEngineError):

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} {key!r} not found")
        self.kind = kind
        self.key = key


class InvalidInput(SyncEngineError):
    pass


class StoreUnavailable(SyncEngineError):
    pass


def surface_store_errors(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Re-raise transient pymongo failures as ``StoreUnavailable``. No retries.

    Values BSON cannot encode (integers past int64, for one) come back as
    ``InvalidInput``.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except (ConnectionFailure, ExecutionTimeout) as exc:
            logger.warning("store call %s failed: %s", func.__qualname__, exc)
            raise StoreUnavailable(str(exc)) from exc
        except (OverflowError, InvalidDocument) as exc:
            raise InvalidInput(f"Value cannot be stored: {exc}") from exc

    return wrapper
