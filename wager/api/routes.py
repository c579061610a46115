from __future__ import annotations

import logging

import redis
from fastapi import APIRouter, Depends, HTTPException, status

from wager import game_store, registry, vault
from wager.api.deps import get_redis
from wager.api.models import (
    AssetId,
    AssetListResponse,
    CallerRequest,
    JoinRequest,
    MintRequest,
    PlayRequest,
    WagerCreateRequest,
    WagerListResponse,
    WagerView,
)
from wager.errors import AssetContention, NotFound, RecordBusy, WagerError

logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(e: ValueError) -> HTTPException:
    logger.debug("rejected: %s", e)
    if isinstance(e, WagerError):
        if isinstance(e, NotFound):
            code = status.HTTP_404_NOT_FOUND
        elif isinstance(e, (RecordBusy, AssetContention)):
            code = status.HTTP_409_CONFLICT
        else:
            code = status.HTTP_422_UNPROCESSABLE_ENTITY
        return HTTPException(status_code=code, detail={"code": e.code, "message": e.message})
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/wagers", response_model=WagerView, status_code=status.HTTP_201_CREATED)
async def initialize_route(payload: WagerCreateRequest, r: redis.Redis = Depends(get_redis)) -> WagerView:
    try:
        record = game_store.initialize(
            r=r,
            creator=payload.creator,
            asset=payload.asset,
            join_requirement=payload.join_requirement,
        )
    except ValueError as e:
        raise _http_error(e) from e
    return WagerView.from_record(record)


@router.get("/wagers", response_model=WagerListResponse)
async def list_wagers_route(r: redis.Redis = Depends(get_redis)) -> WagerListResponse:
    return WagerListResponse(wagers=[WagerView.from_record(w) for w in game_store.list_wagers(r=r)])


@router.get("/wagers/{creator}", response_model=WagerView)
async def get_wager_route(creator: str, r: redis.Redis = Depends(get_redis)) -> WagerView:
    try:
        record = game_store.require_wager(r=r, identity=creator)
    except ValueError as e:
        raise _http_error(e) from e
    return WagerView.from_record(record)


@router.get("/wagers/{creator}/vault", response_model=AssetListResponse)
async def vault_holdings_route(creator: str, r: redis.Redis = Depends(get_redis)) -> AssetListResponse:
    try:
        record = game_store.require_wager(r=r, identity=creator)
        assets = vault.vault_assets(r=r, vault_address=record.vault.address)
    except ValueError as e:
        raise _http_error(e) from e
    return AssetListResponse(identity=record.vault.address, assets=assets)


@router.post("/wagers/{creator}/cancel", response_model=WagerView)
async def cancel_route(creator: str, r: redis.Redis = Depends(get_redis)) -> WagerView:
    try:
        record = game_store.cancel(r=r, creator=creator)
    except ValueError as e:
        raise _http_error(e) from e
    return WagerView.from_record(record)


@router.post("/wagers/{game_address}/join", response_model=WagerView)
async def join_route(game_address: str, payload: JoinRequest, r: redis.Redis = Depends(get_redis)) -> WagerView:
    try:
        record = game_store.join(
            r=r,
            opponent=payload.opponent,
            game_address=game_address,
            owners=payload.owners,
            collections=payload.collections,
            names=payload.names,
            versions=payload.versions,
        )
    except ValueError as e:
        raise _http_error(e) from e
    return WagerView.from_record(record)


@router.post("/wagers/{creator}/play", response_model=WagerView)
async def play_route(creator: str, payload: PlayRequest, r: redis.Redis = Depends(get_redis)) -> WagerView:
    try:
        record = game_store.play(r=r, creator=creator, did_creator_win=payload.did_creator_win)
    except ValueError as e:
        raise _http_error(e) from e
    return WagerView.from_record(record)


@router.post("/wagers/{game_address}/claim", response_model=WagerView)
async def claim_route(game_address: str, payload: CallerRequest, r: redis.Redis = Depends(get_redis)) -> WagerView:
    try:
        record = game_store.claim(r=r, caller=payload.caller, game_address=game_address)
    except ValueError as e:
        raise _http_error(e) from e
    return WagerView.from_record(record)


@router.post("/assets", response_model=AssetId, status_code=status.HTTP_201_CREATED)
async def mint_route(payload: MintRequest, r: redis.Redis = Depends(get_redis)) -> AssetId:
    """Dev endpoint: mint a collectible so wagers can be exercised without a ledger."""

    try:
        return registry.mint(
            r=r,
            creator=payload.creator,
            collection=payload.collection,
            name=payload.name,
            version=payload.version,
            owner=payload.owner,
        )
    except ValueError as e:
        raise _http_error(e) from e


@router.get("/accounts/{identity}/assets", response_model=AssetListResponse)
async def holdings_route(identity: str, r: redis.Redis = Depends(get_redis)) -> AssetListResponse:
    return AssetListResponse(identity=identity, assets=registry.holdings(r=r, identity=identity))
