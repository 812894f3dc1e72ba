"""Swap orchestration state machine with an explicit transition table."""

from __future__ import annotations

from typing import Dict, Set

from stableswap.logging import log
from stableswap.models.swap import SwapExecution, SwapState


class InvalidTransitionError(Exception):
    def __init__(self, from_state: SwapState, to_state: SwapState) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition from {from_state.value} to {to_state.value}")


TRANSITIONS: Dict[SwapState, Set[SwapState]] = {
    SwapState.IDLE: {
        SwapState.CHECKING_ALLOWANCE,
        SwapState.FAILED,
        SwapState.CANCELLED,
    },
    SwapState.CHECKING_ALLOWANCE: {
        SwapState.APPROVING,
        SwapState.QUOTING,
        SwapState.FAILED,
        SwapState.CANCELLED,
    },
    SwapState.APPROVING: {
        SwapState.QUOTING,
        SwapState.FAILED,
    },
    SwapState.QUOTING: {
        SwapState.SUBMITTING,
        SwapState.FAILED,
    },
    SwapState.SUBMITTING: {
        SwapState.CONFIRMED,
        SwapState.FAILED,
    },
    SwapState.CONFIRMED: set(),
    SwapState.FAILED: set(),
    SwapState.CANCELLED: set(),
}

CANCELLABLE_STATES = frozenset({SwapState.IDLE, SwapState.CHECKING_ALLOWANCE})


class SwapStateMachine:
    """Validates and records state changes on a single execution."""

    def __init__(self, execution: SwapExecution) -> None:
        self.execution = execution

    @property
    def current_state(self) -> SwapState:
        return self.execution.state

    @property
    def is_terminal(self) -> bool:
        return self.execution.state.is_terminal

    @property
    def is_cancellable(self) -> bool:
        return self.execution.state in CANCELLABLE_STATES

    def can_transition_to(self, to_state: SwapState) -> bool:
        return to_state in TRANSITIONS.get(self.current_state, set())

    def transition_to(self, to_state: SwapState) -> None:
        from_state = self.current_state
        if not self.can_transition_to(to_state):
            raise InvalidTransitionError(from_state, to_state)
        self.execution.state = to_state
        self.execution.history.append(to_state)
        log.debug(f"Swap state {from_state.value} -> {to_state.value} caller={self.execution.request.caller}")
