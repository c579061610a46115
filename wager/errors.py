from __future__ import annotations


class WagerError(ValueError):
    """Base class for rejected operations.

    Subclasses ValueError so the HTTP layer's existing `except ValueError`
    mapping keeps working; `code` identifies the violated invariant.
    """

    code = "wager_error"
    default_message = "Wager operation rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class AlreadyExists(WagerError):
    code = "already_exists"
    default_message = "Wager already exists for this creator"


class NotFound(WagerError):
    code = "not_found"
    default_message = "Wager not found"


class NotActive(WagerError):
    code = "not_active"
    default_message = "Wager is not active"


class StillActive(WagerError):
    code = "still_active"
    default_message = "Wager is still active"


class HasOpponent(WagerError):
    code = "has_opponent"
    default_message = "Wager already has an opponent"


class NoOpponent(WagerError):
    code = "no_opponent"
    default_message = "Wager has no opponent"


class JoinRequirementNotMet(WagerError):
    code = "join_requirement_not_met"
    default_message = "Not enough assets staked to join"


class NoOutcome(WagerError):
    code = "no_outcome"
    default_message = "Wager has no recorded outcome"


class AlreadyClaimed(WagerError):
    code = "already_claimed"
    default_message = "Wager has already been claimed"


class NotParticipant(WagerError):
    code = "not_participant"
    default_message = "Caller is neither the creator nor the opponent"


class LengthMismatch(WagerError):
    code = "length_mismatch"
    default_message = "Stake batches must all have the same length"


# Collaborator / infrastructure failures.


class AssetNotFound(WagerError):
    code = "asset_not_found"
    default_message = "Asset does not exist"


class AssetNotOwned(WagerError):
    code = "asset_not_owned"
    default_message = "Asset is not held by the sender"


class AssetAlreadyExists(WagerError):
    code = "asset_already_exists"
    default_message = "Asset has already been minted"


class VaultUnauthorized(WagerError):
    code = "vault_unauthorized"
    default_message = "Vault capability does not match the vault"


class RecordBusy(WagerError):
    code = "record_busy"
    default_message = "Wager is busy"


class AssetContention(WagerError):
    code = "asset_contention"
    default_message = "A staked asset changed hands during the operation"
