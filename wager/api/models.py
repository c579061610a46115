from __future__ import annotations

import hashlib
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_serializer


class AssetSpec(BaseModel):
    """Human-readable description of a collectible (collection, name, version)."""

    collection: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    version: int = Field(0, ge=0)


class AssetId(BaseModel):
    model_config = ConfigDict(frozen=True)

    creator: str
    collection: str
    name: str
    version: int = 0

    @property
    def key(self) -> str:
        # Digest of the canonical JSON, so no combination of field values can alias another asset.
        return hashlib.sha256(self.model_dump_json().encode()).hexdigest()

    @property
    def label(self) -> str:
        """Display form for logs and messages; not unique."""
        return f"{self.creator}/{self.collection}/{self.name}@{self.version}"


class Outcome(StrEnum):
    not_resolved = "not_resolved"
    creator_won = "creator_won"
    creator_lost = "creator_lost"


class WagerPhase(StrEnum):
    open = "open"
    matched = "matched"
    cancelled = "cancelled"
    resolved = "resolved"
    claimed = "claimed"


class VaultCapability(BaseModel):
    """Opaque custody handle for one record's vault.

    Only the vault module interprets it. It is persisted alongside the record
    but never duplicated and never handed out by the HTTP layer.
    """

    model_config = ConfigDict(frozen=True)

    address: str
    token: SecretStr

    @field_serializer("token", when_used="json")
    def dump_token(self, token: SecretStr) -> str:
        return token.get_secret_value()

    def __copy__(self) -> VaultCapability:
        raise TypeError("vault capabilities cannot be duplicated")

    def __deepcopy__(self, memo: dict) -> VaultCapability:
        raise TypeError("vault capabilities cannot be duplicated")


class WagerRecord(BaseModel):
    creator: str
    creator_asset: AssetId
    join_requirement: int = Field(..., ge=0)

    opponent: str | None = None
    opponent_assets: list[AssetId] = Field(default_factory=list)

    active: bool = True
    outcome: Outcome = Outcome.not_resolved
    claimed: bool = False

    vault: VaultCapability

    created_at: datetime
    last_updated_at: datetime

    @property
    def resolved(self) -> bool | None:
        """Creator-won flag in its literal optional form (None until play)."""
        if self.outcome == Outcome.not_resolved:
            return None
        return self.outcome == Outcome.creator_won

    @property
    def phase(self) -> WagerPhase:
        if self.claimed:
            return WagerPhase.claimed
        if self.active:
            return WagerPhase.matched if self.opponent is not None else WagerPhase.open
        if self.outcome == Outcome.not_resolved:
            return WagerPhase.cancelled
        return WagerPhase.resolved


class WagerView(BaseModel):
    """Public projection of a record (no custody handle)."""

    creator: str
    creator_asset: AssetId
    join_requirement: int
    opponent: str | None
    opponent_assets: list[AssetId]
    active: bool
    outcome: Outcome
    resolved: bool | None
    claimed: bool
    phase: WagerPhase
    vault_address: str
    created_at: datetime
    last_updated_at: datetime

    @classmethod
    def from_record(cls, record: WagerRecord) -> WagerView:
        return cls(
            creator=record.creator,
            creator_asset=record.creator_asset,
            join_requirement=record.join_requirement,
            opponent=record.opponent,
            opponent_assets=list(record.opponent_assets),
            active=record.active,
            outcome=record.outcome,
            resolved=record.resolved,
            claimed=record.claimed,
            phase=record.phase,
            vault_address=record.vault.address,
            created_at=record.created_at,
            last_updated_at=record.last_updated_at,
        )


class WagerCreateRequest(BaseModel):
    creator: str = Field(..., min_length=1)
    asset: AssetSpec
    join_requirement: int = Field(..., ge=0)


class CallerRequest(BaseModel):
    caller: str = Field(..., min_length=1)


class JoinRequest(BaseModel):
    # Four parallel sequences, one entry per staked asset.
    opponent: str = Field(..., min_length=1)
    owners: list[str]
    collections: list[str]
    names: list[str]
    versions: list[int]


class PlayRequest(BaseModel):
    did_creator_win: bool


class MintRequest(BaseModel):
    creator: str = Field(..., min_length=1)
    collection: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    version: int = Field(0, ge=0)
    owner: str | None = None


class WagerListResponse(BaseModel):
    wagers: list[WagerView]


class AssetListResponse(BaseModel):
    identity: str
    assets: list[AssetId]
