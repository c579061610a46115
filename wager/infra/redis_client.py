from __future__ import annotations

import redis

from wager.settings import WagerSettings, settings_from_env


def create_redis(settings: WagerSettings | None = None) -> redis.Redis:
    s = settings or settings_from_env()
    # decode_responses=True => strings in/out; records and asset keys are all text.
    return redis.Redis.from_url(s.redis_url, decode_responses=True)
