from __future__ import annotations

from statemachine import State, StateMachine

from wager.api.models import WagerPhase, WagerRecord


class WagerFSM(StateMachine):
    """Legal phase transitions of a wager record.

    open -> cancelled | matched; matched -> resolved; resolved | cancelled -> claimed.
    Guards raise the domain errors first; the FSM then refuses anything the
    guards let through by mistake (TransitionNotAllowed).
    """

    open = State(WagerPhase.open.value, value=WagerPhase.open.value, initial=True)
    matched = State(WagerPhase.matched.value, value=WagerPhase.matched.value)
    cancelled = State(WagerPhase.cancelled.value, value=WagerPhase.cancelled.value)
    resolved = State(WagerPhase.resolved.value, value=WagerPhase.resolved.value)
    claimed = State(WagerPhase.claimed.value, value=WagerPhase.claimed.value, final=True)

    cancel = open.to(cancelled)
    join = open.to(matched)
    play = matched.to(resolved)
    claim = resolved.to(claimed) | cancelled.to(claimed)

    def __init__(self, record: WagerRecord):
        self.record = record
        super().__init__(start_value=record.phase.value)

    def check_synced(self) -> None:
        """Assert the record's derived phase matches the machine after a mutation."""

        if self.record.phase.value != self.current_state.value:
            raise RuntimeError(
                f"Wager phase {self.record.phase.value} out of sync with FSM state {self.current_state.value}"
            )
