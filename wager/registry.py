from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import redis
from redis.client import Pipeline

from wager.api.models import AssetId
from wager.errors import AssetAlreadyExists, AssetContention, AssetNotFound, AssetNotOwned

logger = logging.getLogger(__name__)

ASSET_KEY_PREFIX = "wager:asset:"  # + {asset digest} -> owner identity
HOLDINGS_KEY_PREFIX = "wager:holdings:"  # + {identity} -> set of AssetId json
ASSETS_SET_KEY = "wager:assets"


@dataclass(frozen=True, slots=True)
class Transfer:
    sender: str
    recipient: str
    asset: AssetId


def resolve_asset_id(*, owner: str, collection: str, name: str, version: int = 0) -> AssetId:
    """Build the identifier of the collectible minted by `owner` as collection/name/version.

    Pure construction: existence is only checked when the asset is moved.
    """

    return AssetId(creator=owner, collection=collection, name=name, version=version)


def asset_key(asset: AssetId) -> str:
    return f"{ASSET_KEY_PREFIX}{asset.key}"


def holdings_key(identity: str) -> str:
    return f"{HOLDINGS_KEY_PREFIX}{identity}"


def _member(asset: AssetId) -> str:
    return asset.model_dump_json()


def owner_of(*, r: redis.Redis, asset: AssetId) -> str | None:
    return r.get(asset_key(asset))


def holdings(*, r: redis.Redis, identity: str) -> list[AssetId]:
    out = [AssetId.model_validate_json(raw) for raw in r.smembers(holdings_key(identity))]
    out.sort(key=lambda a: (a.creator, a.collection, a.name, a.version))
    return out


def mint(
    *,
    r: redis.Redis,
    creator: str,
    collection: str,
    name: str,
    version: int = 0,
    owner: str | None = None,
) -> AssetId:
    asset = resolve_asset_id(owner=creator, collection=collection, name=name, version=version)
    holder = owner or creator

    key = asset_key(asset)
    with r.pipeline() as pipe:
        try:
            pipe.watch(key)
            if pipe.exists(key):
                raise AssetAlreadyExists(f"Asset already minted: {asset.label}")
            pipe.multi()
            pipe.set(key, holder)
            pipe.sadd(holdings_key(holder), _member(asset))
            pipe.sadd(ASSETS_SET_KEY, _member(asset))
            pipe.execute()
        except redis.WatchError as e:
            raise AssetAlreadyExists(f"Asset already minted: {asset.label}") from e

    logger.info("minted %s to %s", asset.label, holder)
    return asset


def check_transfers(*, r: redis.Redis | Pipeline, transfers: Sequence[Transfer]) -> None:
    """Validate a batch of transfers in order, without writing anything.

    Ownership is tracked across the batch, so staking the same asset twice
    fails on the second occurrence.
    """

    pending: dict[str, str] = {}
    for t in transfers:
        key = asset_key(t.asset)
        current = pending[key] if key in pending else r.get(key)
        if current is None:
            raise AssetNotFound(f"Asset not found: {t.asset.label}")
        if current != t.sender:
            raise AssetNotOwned(f"{t.sender} does not hold {t.asset.label}")
        pending[key] = t.recipient


def stage_transfer(*, pipe: Pipeline, transfer: Transfer) -> None:
    member = _member(transfer.asset)
    pipe.set(asset_key(transfer.asset), transfer.recipient)
    pipe.srem(holdings_key(transfer.sender), member)
    pipe.sadd(holdings_key(transfer.recipient), member)


def apply_atomically(
    *,
    r: redis.Redis,
    transfers: Sequence[Transfer],
    watch: Sequence[str] = (),
    stage: Callable[[Pipeline], None] | None = None,
) -> None:
    """Check then commit `transfers` plus any extra writes in one MULTI/EXEC.

    Touched asset keys (and `watch`) are WATCHed, so a concurrent change between
    check and commit aborts the whole batch with AssetContention.
    """

    keys = [*watch, *(asset_key(t.asset) for t in transfers)]
    with r.pipeline() as pipe:
        try:
            if keys:
                pipe.watch(*keys)
            check_transfers(r=pipe, transfers=transfers)
            pipe.multi()
            for t in transfers:
                stage_transfer(pipe=pipe, transfer=t)
            if stage is not None:
                stage(pipe)
            pipe.execute()
        except redis.WatchError as e:
            raise AssetContention() from e


def transfer(*, r: redis.Redis, sender: str, recipient: str, asset: AssetId) -> None:
    apply_atomically(r=r, transfers=[Transfer(sender=sender, recipient=recipient, asset=asset)])
    logger.info("transferred %s from %s to %s", asset.label, sender, recipient)
