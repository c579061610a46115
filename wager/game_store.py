from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

import redis
from redis.client import Pipeline

from wager import guards, registry, vault
from wager.api.models import AssetId, AssetSpec, Outcome, WagerRecord
from wager.fsm import WagerFSM
from wager.lock import record_lock
from wager.registry import Transfer
from wager.settings import WagerSettings, settings_from_env

logger = logging.getLogger(__name__)

WAGERS_SET_KEY = "wager:wagers"
WAGER_KEY_PREFIX = "wager:record:"  # + {creator identity}


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _wager_key(identity: str) -> str:
    return f"{WAGER_KEY_PREFIX}{identity}"


def _settings(settings: WagerSettings | None) -> WagerSettings:
    return settings or settings_from_env()


def get_wager(*, r: redis.Redis, identity: str) -> WagerRecord | None:
    raw = r.get(_wager_key(identity))
    if not raw:
        return None
    return WagerRecord.model_validate_json(raw)


def require_wager(*, r: redis.Redis, identity: str) -> WagerRecord:
    return guards.exists(get_wager(r=r, identity=identity), identity=identity)


def list_wagers(*, r: redis.Redis) -> list[WagerRecord]:
    out: list[WagerRecord] = []
    for identity in sorted(r.smembers(WAGERS_SET_KEY)):
        record = get_wager(r=r, identity=identity)
        if record is not None:
            out.append(record)
    out.sort(key=lambda w: w.created_at, reverse=True)
    return out


def vault_holdings(*, r: redis.Redis, identity: str) -> list[AssetId]:
    record = require_wager(r=r, identity=identity)
    return vault.vault_assets(r=r, vault_address=record.vault.address)


def _commit(*, r: redis.Redis, record: WagerRecord, transfers: Sequence[Transfer], new: bool = False) -> None:
    """Write the record and every asset movement of one operation together."""

    record.last_updated_at = _now()
    key = _wager_key(record.creator)

    def _stage(pipe: Pipeline) -> None:
        pipe.set(key, record.model_dump_json())
        if new:
            pipe.sadd(WAGERS_SET_KEY, record.creator)
            vault.stage_vault(pipe=pipe, cap=record.vault)

    registry.apply_atomically(r=r, transfers=transfers, watch=[key], stage=_stage)


def initialize(
    *,
    r: redis.Redis,
    creator: str,
    asset: AssetSpec,
    join_requirement: int,
    settings: WagerSettings | None = None,
) -> WagerRecord:
    s = _settings(settings)
    if join_requirement < 0:
        raise ValueError("join_requirement must be >= 0")

    with record_lock(r=r, identity=creator, ttl_ms=s.lock_ttl_ms):
        guards.does_not_exist(get_wager(r=r, identity=creator), identity=creator)

        asset_id = registry.resolve_asset_id(
            owner=creator, collection=asset.collection, name=asset.name, version=asset.version
        )
        cap = vault.create_vault(owner=creator, seed=s.vault_seed)

        now = _now()
        record = WagerRecord(
            creator=creator,
            creator_asset=asset_id,
            join_requirement=join_requirement,
            vault=cap,
            created_at=now,
            last_updated_at=now,
        )

        _commit(r=r, record=record, transfers=[vault.deposit(cap=cap, sender=creator, asset=asset_id)], new=True)

    logger.info("wager initialized creator=%s asset=%s requirement=%d", creator, asset_id.label, join_requirement)
    return record


def cancel(*, r: redis.Redis, creator: str, settings: WagerSettings | None = None) -> WagerRecord:
    s = _settings(settings)

    with record_lock(r=r, identity=creator, ttl_ms=s.lock_ttl_ms):
        record = require_wager(r=r, identity=creator)
        guards.is_active(record)
        guards.has_no_opponent(record)

        fsm = WagerFSM(record)
        refund = vault.release(r=r, cap=record.vault, asset=record.creator_asset, recipient=creator)

        fsm.cancel()
        record.active = False
        fsm.check_synced()

        _commit(r=r, record=record, transfers=[refund])

    logger.info("wager cancelled creator=%s", creator)
    return record


def join(
    *,
    r: redis.Redis,
    opponent: str,
    game_address: str,
    owners: Sequence[str],
    collections: Sequence[str],
    names: Sequence[str],
    versions: Sequence[int],
    settings: WagerSettings | None = None,
) -> WagerRecord:
    """Stake the opponent's assets into the vault of the wager at `game_address`.

    The batch shape is checked before the record is read; every other guard and
    every ownership check runs before the single commit, so a rejected join
    leaves the vault and the record untouched.
    """

    s = _settings(settings)
    staked_count = guards.equal_length_batches(owners, collections, names, versions)

    with record_lock(r=r, identity=game_address, ttl_ms=s.lock_ttl_ms):
        record = require_wager(r=r, identity=game_address)
        guards.is_active(record)
        guards.has_no_opponent(record)
        guards.join_requirement_met(record, staked_count=staked_count)

        fsm = WagerFSM(record)

        staked: list[AssetId] = []
        transfers: list[Transfer] = []
        for owner, collection, name, version in zip(owners, collections, names, versions):
            asset_id = registry.resolve_asset_id(owner=owner, collection=collection, name=name, version=version)
            staked.append(asset_id)
            transfers.append(vault.deposit(cap=record.vault, sender=opponent, asset=asset_id))

        fsm.join()
        record.opponent = opponent
        record.opponent_assets = staked
        fsm.check_synced()

        _commit(r=r, record=record, transfers=transfers)

    logger.info("wager joined game=%s opponent=%s staked=%d", game_address, opponent, staked_count)
    return record


def play(*, r: redis.Redis, creator: str, did_creator_win: bool, settings: WagerSettings | None = None) -> WagerRecord:
    s = _settings(settings)

    with record_lock(r=r, identity=creator, ttl_ms=s.lock_ttl_ms):
        record = require_wager(r=r, identity=creator)
        guards.is_active(record)
        guards.has_opponent(record)

        fsm = WagerFSM(record)
        fsm.play()
        record.outcome = Outcome.creator_won if did_creator_win else Outcome.creator_lost
        record.active = False
        fsm.check_synced()

        _commit(r=r, record=record, transfers=[])

    logger.info("wager resolved creator=%s outcome=%s", creator, record.outcome.value)
    return record


def claim(*, r: redis.Redis, caller: str, game_address: str, settings: WagerSettings | None = None) -> WagerRecord:
    """Settle a finished wager.

    Only a creator_won outcome moves assets: the opponent's stake goes back to
    the opponent. Lost and cancelled wagers are marked claimed with no movement.
    """

    s = _settings(settings)

    with record_lock(r=r, identity=game_address, ttl_ms=s.lock_ttl_ms):
        record = require_wager(r=r, identity=game_address)
        guards.is_not_active(record)
        guards.not_yet_claimed(record)
        guards.caller_is_participant(caller, record)

        fsm = WagerFSM(record)

        transfers: list[Transfer] = []
        if record.outcome == Outcome.creator_won and record.opponent is not None:
            for asset_id in record.opponent_assets:
                transfers.append(vault.release(r=r, cap=record.vault, asset=asset_id, recipient=record.opponent))

        fsm.claim()
        record.claimed = True
        fsm.check_synced()

        _commit(r=r, record=record, transfers=transfers)

    logger.info("wager claimed game=%s caller=%s released=%d", game_address, caller, len(transfers))
    return record
