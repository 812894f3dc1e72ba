"""Swap orchestration."""

from stableswap.orchestrator.state_machine import (
    CANCELLABLE_STATES,
    TRANSITIONS,
    InvalidTransitionError,
    SwapStateMachine,
)
from stableswap.orchestrator.swap_orchestrator import SwapOrchestrator

__all__ = [
    "CANCELLABLE_STATES",
    "TRANSITIONS",
    "InvalidTransitionError",
    "SwapStateMachine",
    "SwapOrchestrator",
]
