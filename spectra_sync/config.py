import os
from dataclasses import dataclass
from typing import Mapping, Optional


_TRUTHY = {"1", "true", "yes", "on"}


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass(frozen=True)
class Settings:

    mongo_url: str = "mongodb://localhost:27017"
    mongo_db: str = "spectra"
    redis_url: Optional[str] = None
    story_ttl_seconds: int = 24 * 60 * 60
    story_sweep_interval_seconds: int = 0
    sync_max_pull: int = 1000
    sync_seq_lease_seconds: int = 30
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        ttl = _int_env(env, "STORY_TTL_SECONDS", cls.story_ttl_seconds)
        if ttl == 0:
            raise ValueError("STORY_TTL_SECONDS must be positive")
        max_pull = _int_env(env, "SYNC_MAX_PULL", cls.sync_max_pull)
        if max_pull == 0:
            raise ValueError("SYNC_MAX_PULL must be positive")
        lease = _int_env(env, "SYNC_SEQ_LEASE_SECONDS", cls.sync_seq_lease_seconds)
        if lease == 0:
            raise ValueError("SYNC_SEQ_LEASE_SECONDS must be positive")
        return cls(
            mongo_url=env.get("MONGO_URL") or cls.mongo_url,
            mongo_db=env.get("MONGO_DB") or cls.mongo_db,
            redis_url=env.get("REDIS_URL") or None,
            story_ttl_seconds=ttl,
            story_sweep_interval_seconds=_int_env(env, "STORY_SWEEP_INTERVAL_SECONDS", 0),
            sync_max_pull=max_pull,
            sync_seq_lease_seconds=lease,
            log_level=(env.get("LOG_LEVEL") or cls.log_level).upper(),
            log_json=(env.get("LOG_JSON") or "").strip().lower() in _TRUTHY,
        )

    @property
    def story_ttl_ms(self) -> int:
        return self.story_ttl_seconds * 1000

    @property
    def sync_seq_lease_ms(self) -> int:
        return self.sync_seq_lease_seconds * 1000
