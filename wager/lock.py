from __future__ import annotations

import logging
from contextlib import contextmanager

import redis
from redis.exceptions import LockNotOwnedError

from wager.errors import RecordBusy

logger = logging.getLogger(__name__)


@contextmanager
def record_lock(*, r: redis.Redis, identity: str, ttl_ms: int = 5_000):
    """Exclusive per-record lock around the guard-then-mutate sequence.

    No retries: contention is reported to the caller as RecordBusy.
    The TTL only bounds how long a crashed holder can block the record.
    """

    lock = r.lock(f"lock:wager:{identity}", timeout=ttl_ms / 1000, blocking=False)
    if not lock.acquire():
        raise RecordBusy()
    try:
        yield
    finally:
        # redis-py releases atomically, and only while the token is still ours.
        try:
            lock.release()
        except LockNotOwnedError:
            logger.warning("lock for %s expired before release", identity)
