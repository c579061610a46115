from __future__ import annotations

import copy

import fakeredis
import pytest

from wager import registry, vault
from wager.api.models import AssetId
from wager.errors import AssetAlreadyExists, AssetNotFound, AssetNotOwned, VaultUnauthorized


def test_resolve_asset_id_is_pure_construction(r: fakeredis.FakeRedis) -> None:
    asset = registry.resolve_asset_id(owner="studio", collection="Apes", name="B", version=2)
    assert asset == AssetId(creator="studio", collection="Apes", name="B", version=2)
    assert registry.owner_of(r=r, asset=asset) is None


def test_mint_assigns_owner_and_holdings(r: fakeredis.FakeRedis) -> None:
    a = registry.mint(r=r, creator="alice", collection="Punks", name="A")
    b = registry.mint(r=r, creator="studio", collection="Apes", name="B", owner="bob")

    assert registry.owner_of(r=r, asset=a) == "alice"
    assert registry.owner_of(r=r, asset=b) == "bob"
    assert registry.holdings(r=r, identity="bob") == [b]
    assert registry.holdings(r=r, identity="studio") == []


def test_mint_twice_fails(r: fakeredis.FakeRedis) -> None:
    registry.mint(r=r, creator="alice", collection="Punks", name="A")
    with pytest.raises(AssetAlreadyExists):
        registry.mint(r=r, creator="alice", collection="Punks", name="A", owner="bob")


def test_transfer_moves_ownership(r: fakeredis.FakeRedis) -> None:
    a = registry.mint(r=r, creator="alice", collection="Punks", name="A")
    registry.transfer(r=r, sender="alice", recipient="carol", asset=a)

    assert registry.owner_of(r=r, asset=a) == "carol"
    assert registry.holdings(r=r, identity="alice") == []
    assert registry.holdings(r=r, identity="carol") == [a]


def test_transfer_rejects_non_owner_and_unknown(r: fakeredis.FakeRedis) -> None:
    a = registry.mint(r=r, creator="alice", collection="Punks", name="A")
    with pytest.raises(AssetNotOwned):
        registry.transfer(r=r, sender="mallory", recipient="mallory", asset=a)
    assert registry.owner_of(r=r, asset=a) == "alice"

    ghost = registry.resolve_asset_id(owner="alice", collection="Punks", name="ghost")
    with pytest.raises(AssetNotFound):
        registry.transfer(r=r, sender="alice", recipient="bob", asset=ghost)


def test_batch_with_duplicate_asset_is_rejected_before_any_write(r: fakeredis.FakeRedis) -> None:
    b = registry.mint(r=r, creator="studio", collection="Apes", name="B", owner="bob")
    c = registry.mint(r=r, creator="studio", collection="Apes", name="C", owner="bob")
    batch = [
        registry.Transfer(sender="bob", recipient="0xvault", asset=c),
        registry.Transfer(sender="bob", recipient="0xvault", asset=b),
        registry.Transfer(sender="bob", recipient="0xvault", asset=b),
    ]

    with pytest.raises(AssetNotOwned):
        registry.apply_atomically(r=r, transfers=batch)

    assert registry.owner_of(r=r, asset=b) == "bob"
    assert registry.owner_of(r=r, asset=c) == "bob"


def test_vault_address_is_deterministic_per_owner() -> None:
    a1 = vault.vault_address_for(owner="alice", seed="s")
    a2 = vault.vault_address_for(owner="alice", seed="s")
    b = vault.vault_address_for(owner="bob", seed="s")
    assert a1 == a2
    assert a1 != b
    assert a1.startswith("0x")


def test_vault_capability_release_requires_registered_token(r: fakeredis.FakeRedis) -> None:
    cap = vault.create_vault(owner="alice", seed="s")
    a = registry.mint(r=r, creator="alice", collection="Punks", name="A")

    # Not registered yet.
    with pytest.raises(VaultUnauthorized):
        vault.release(r=r, cap=cap, asset=a, recipient="alice")

    with r.pipeline() as pipe:
        vault.stage_vault(pipe=pipe, cap=cap)
        pipe.execute()

    registry.apply_atomically(r=r, transfers=[vault.deposit(cap=cap, sender="alice", asset=a)])
    assert vault.holds_asset(r=r, vault_address=cap.address, asset=a)
    assert vault.vault_assets(r=r, vault_address=cap.address) == [a]

    forged = vault.create_vault(owner="alice", seed="s")
    assert forged.address == cap.address
    with pytest.raises(VaultUnauthorized):
        vault.release(r=r, cap=forged, asset=a, recipient="mallory")

    t = vault.release(r=r, cap=cap, asset=a, recipient="alice")
    registry.apply_atomically(r=r, transfers=[t])
    assert not vault.holds_asset(r=r, vault_address=cap.address, asset=a)
    assert registry.owner_of(r=r, asset=a) == "alice"


def test_vault_capability_cannot_be_copied() -> None:
    cap = vault.create_vault(owner="alice", seed="s")
    with pytest.raises(TypeError):
        copy.copy(cap)
    with pytest.raises(TypeError):
        copy.deepcopy(cap)
    assert cap.token.get_secret_value() not in repr(cap)


def test_asset_keys_do_not_alias_across_field_boundaries(r: fakeredis.FakeRedis) -> None:
    real = registry.mint(r=r, creator="a", collection="b::c", name="n")
    alias = AssetId(creator="a::b", collection="c", name="n")
    assert registry.asset_key(real) != registry.asset_key(alias)

    with pytest.raises(AssetNotFound):
        registry.transfer(r=r, sender="a", recipient="zed", asset=alias)

    assert registry.owner_of(r=r, asset=real) == "a"
    assert registry.holdings(r=r, identity="a") == [real]
    assert registry.holdings(r=r, identity="zed") == []


def test_duplicate_mint_leaves_holdings_untouched(r: fakeredis.FakeRedis) -> None:
    a = registry.mint(r=r, creator="alice", collection="Punks", name="A")
    with pytest.raises(AssetAlreadyExists):
        registry.mint(r=r, creator="alice", collection="Punks", name="A", owner="bob")

    assert registry.owner_of(r=r, asset=a) == "alice"
    assert registry.holdings(r=r, identity="alice") == [a]
    assert registry.holdings(r=r, identity="bob") == []
    assert r.scard(registry.ASSETS_SET_KEY) == 1
