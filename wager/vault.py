from __future__ import annotations

import hashlib
import hmac
import secrets

import redis
from redis.client import Pipeline

from wager.api.models import AssetId, VaultCapability
from wager.errors import VaultUnauthorized
from wager.registry import Transfer, holdings, owner_of

VAULT_KEY_PREFIX = "wager:vault:"  # + {vault address} -> capability token


def _vault_key(address: str) -> str:
    return f"{VAULT_KEY_PREFIX}{address}"


def vault_address_for(*, owner: str, seed: str) -> str:
    """Derive the custody identity bound to `owner`.

    Deterministic per (owner, seed); the trailing 0xff keeps the derived
    address space disjoint from plain account hashes.
    """

    digest = hashlib.sha3_256(owner.encode() + seed.encode() + b"\xff").hexdigest()
    return f"0x{digest}"


def create_vault(*, owner: str, seed: str) -> VaultCapability:
    """Mint a fresh capability for the vault bound to `owner`.

    Nothing is persisted until `stage_vault` runs inside the caller's transaction.
    """

    return VaultCapability(address=vault_address_for(owner=owner, seed=seed), token=secrets.token_hex(16))


def stage_vault(*, pipe: Pipeline, cap: VaultCapability) -> None:
    pipe.set(_vault_key(cap.address), cap.token.get_secret_value())


def authorize(*, r: redis.Redis, cap: VaultCapability) -> None:
    stored = r.get(_vault_key(cap.address))
    if stored is None or not hmac.compare_digest(stored, cap.token.get_secret_value()):
        raise VaultUnauthorized()


def deposit(*, cap: VaultCapability, sender: str, asset: AssetId) -> Transfer:
    return Transfer(sender=sender, recipient=cap.address, asset=asset)


def release(*, r: redis.Redis, cap: VaultCapability, asset: AssetId, recipient: str) -> Transfer:
    """Build a vault -> recipient transfer; only a matching capability may do so."""

    authorize(r=r, cap=cap)
    return Transfer(sender=cap.address, recipient=recipient, asset=asset)


def holds_asset(*, r: redis.Redis, vault_address: str, asset: AssetId) -> bool:
    return owner_of(r=r, asset=asset) == vault_address


def vault_assets(*, r: redis.Redis, vault_address: str) -> list[AssetId]:
    return holdings(r=r, identity=vault_address)
