"""Precondition guards for wager operations.

Each guard inspects a record (or the raw request) and raises the matching
WagerError when unmet. Guards never mutate state; operations compose them and
run all of them before any asset moves.
"""

from __future__ import annotations

from collections.abc import Sequence

from wager.api.models import Outcome, WagerRecord
from wager.errors import (
    AlreadyClaimed,
    AlreadyExists,
    HasOpponent,
    JoinRequirementNotMet,
    LengthMismatch,
    NoOpponent,
    NoOutcome,
    NotActive,
    NotFound,
    NotParticipant,
    StillActive,
)


def exists(record: WagerRecord | None, *, identity: str = "") -> WagerRecord:
    if record is None:
        raise NotFound(f"Wager not found: {identity}" if identity else None)
    return record


def does_not_exist(record: WagerRecord | None, *, identity: str = "") -> None:
    if record is not None:
        raise AlreadyExists(f"Wager already exists for {identity}" if identity else None)


def is_active(record: WagerRecord) -> None:
    if not record.active:
        raise NotActive()


def is_not_active(record: WagerRecord) -> None:
    if record.active:
        raise StillActive()


def has_opponent(record: WagerRecord) -> None:
    if record.opponent is None:
        raise NoOpponent()


def has_no_opponent(record: WagerRecord) -> None:
    if record.opponent is not None:
        raise HasOpponent()


def join_requirement_met(record: WagerRecord, *, staked_count: int) -> None:
    # An opponent always stakes at least one asset, even when the requirement is 0.
    required = max(record.join_requirement, 1)
    if staked_count < required:
        raise JoinRequirementNotMet(f"Join requires at least {required} assets, got {staked_count}")


def has_outcome(record: WagerRecord) -> None:
    if record.outcome == Outcome.not_resolved:
        raise NoOutcome()


def not_yet_claimed(record: WagerRecord) -> None:
    if record.claimed:
        raise AlreadyClaimed()


def caller_is_participant(caller: str, record: WagerRecord) -> None:
    if caller != record.creator and (record.opponent is None or caller != record.opponent):
        raise NotParticipant()


def equal_length_batches(*batches: Sequence[object]) -> int:
    """Check that parallel stake sequences line up; returns the common length."""

    lengths = {len(b) for b in batches}
    if len(lengths) > 1:
        raise LengthMismatch(f"Stake batches have different lengths: {[len(b) for b in batches]}")
    return lengths.pop() if lengths else 0
