"""Tests for last-write-wins resolution."""

from spectra_sync.services.conflict_resolver import ConflictResolver
from spectra_sync.utils.clock import ManualClock


def test_absent_record_is_accepted_with_server_time():
    resolver = ConflictResolver(ManualClock(5_000))

    resolution = resolver.resolve(None, incoming_updated_at=99_999)

    assert resolution.accepted
    assert resolution.updated_at == 5_000


def test_newer_server_version_rejects_and_returns_it():
    resolver = ConflictResolver(ManualClock(5_000))
    existing = {"_id": "providers/p1", "updated_at": 4_000, "payload": {"bio": "server"}}

    resolution = resolver.resolve(existing, incoming_updated_at=3_999)

    assert not resolution.accepted
    assert resolution.updated_at == 4_000
    assert resolution.server_version is existing


def test_equal_timestamp_is_accepted():
    resolver = ConflictResolver(ManualClock(5_000))

    resolution = resolver.resolve({"updated_at": 4_000}, incoming_updated_at=4_000)

    assert resolution.accepted
    assert resolution.updated_at == 5_000


def test_missing_incoming_timestamp_loses_to_existing_record():
    resolver = ConflictResolver(ManualClock(5_000))

    assert not resolver.resolve({"updated_at": 1}, incoming_updated_at=None).accepted


def test_stamp_never_goes_below_stored_value():
    # server clock behind the stored stamp (e.g. another node wrote it)
    resolver = ConflictResolver(ManualClock(1_000))

    resolution = resolver.resolve({"updated_at": 4_000}, incoming_updated_at=4_000)

    assert resolution.accepted
    assert resolution.updated_at == 4_000
