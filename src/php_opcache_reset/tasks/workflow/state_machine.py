from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TriggerState(str, Enum):
    INIT = "init"
    WAITING = "waiting"
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[TriggerState, set[TriggerState]] = {
    TriggerState.INIT: {TriggerState.WAITING, TriggerState.ATTEMPTING, TriggerState.CANCELLED},
    TriggerState.WAITING: {TriggerState.ATTEMPTING, TriggerState.CANCELLED},
    TriggerState.ATTEMPTING: {
        TriggerState.SUCCESS,
        TriggerState.WAITING,
        TriggerState.EXHAUSTED,
        TriggerState.CANCELLED,
    },
    TriggerState.SUCCESS: set(),
    TriggerState.EXHAUSTED: set(),
    TriggerState.CANCELLED: set(),
}

TERMINAL_STATES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)


class IllegalTransitionError(ValueError):
    pass


@dataclass(slots=True)
class TriggerStateMachine:
    """Tracks the state of one reset run and records every visited state."""

    state: TriggerState = TriggerState.INIT
    history: list[TriggerState] = field(default_factory=lambda: [TriggerState.INIT])

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, to: TriggerState) -> TriggerState:
        allowed = ALLOWED_TRANSITIONS.get(self.state, set())
        if to not in allowed:
            raise IllegalTransitionError(f"Illegal transition: {self.state.value} -> {to.value}")
        self.state = to
        self.history.append(to)
        return to
