from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class WagerSettings:
    redis_url: str
    lock_ttl_ms: int
    vault_seed: str
    log_level: str


def settings_from_env() -> WagerSettings:
    return WagerSettings(
        redis_url=os.environ.get("REDIS_URL", "redis://localhost:6379/0"),
        lock_ttl_ms=int(os.environ.get("WAGER_LOCK_TTL_MS", "5000")),
        # Salt for vault identity derivation; changing it orphans existing vaults.
        vault_seed=os.environ.get("WAGER_VAULT_SEED", "wager-vault"),
        log_level=os.environ.get("WAGER_LOG_LEVEL", "INFO").upper(),
    )
