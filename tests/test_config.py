import pytest

from spectra_sync.config import Settings


def test_defaults_without_environment():
    settings = Settings.from_env({})

    assert settings.mongo_url == "mongodb://localhost:27017"
    assert settings.mongo_db == "spectra"
    assert settings.redis_url is None
    assert settings.story_ttl_seconds == 86400
    assert settings.story_ttl_ms == 86_400_000
    assert settings.sync_seq_lease_seconds == 30
    assert settings.log_json is False


def test_environment_overrides():
    settings = Settings.from_env({
        "MONGO_URL": "mongodb://db:27017",
        "MONGO_DB": "spectra_prod",
        "REDIS_URL": "redis://cache:6379/0",
        "STORY_TTL_SECONDS": "60",
        "STORY_SWEEP_INTERVAL_SECONDS": "30",
        "SYNC_MAX_PULL": "200",
        "SYNC_SEQ_LEASE_SECONDS": "5",
        "LOG_LEVEL": "debug",
        "LOG_JSON": "true",
    })

    assert settings.mongo_db == "spectra_prod"
    assert settings.redis_url == "redis://cache:6379/0"
    assert settings.story_ttl_ms == 60_000
    assert settings.story_sweep_interval_seconds == 30
    assert settings.sync_max_pull == 200
    assert settings.sync_seq_lease_ms == 5_000
    assert settings.log_level == "DEBUG"
    assert settings.log_json is True


@pytest.mark.parametrize(
    "env",
    [{"STORY_TTL_SECONDS": "soon"}, {"STORY_TTL_SECONDS": "0"}, {"SYNC_MAX_PULL": "-1"}, {"SYNC_SEQ_LEASE_SECONDS": "0"}],
)
def test_bad_numbers_are_rejected(env):
    with pytest.raises(ValueError):
        Settings.from_env(env)
