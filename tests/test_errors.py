import asyncio

import pytest
from pymongo.errors import AutoReconnect

from spectra_sync.errors import InvalidInput, StoreUnavailable, surface_store_errors


@surface_store_errors
async def _raise(exc):
    raise exc


def test_connection_loss_is_store_unavailable():
    with pytest.raises(StoreUnavailable):
        asyncio.run(_raise(AutoReconnect("primary stepped down")))


def test_unencodable_integer_is_invalid_input():
    with pytest.raises(InvalidInput):
        asyncio.run(_raise(OverflowError("MongoDB can only handle up to 8-byte ints")))


def test_other_errors_pass_through():
    with pytest.raises(KeyError):
        asyncio.run(_raise(KeyError("seq")))
