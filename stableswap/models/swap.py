"""Swap request and execution models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stableswap.errors import ErrorCode


class SwapState(str, Enum):
    IDLE = "idle"
    CHECKING_ALLOWANCE = "checking_allowance"
    APPROVING = "approving"
    QUOTING = "quoting"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in {SwapState.CONFIRMED, SwapState.FAILED, SwapState.CANCELLED}


class QuoteSource(str, Enum):
    ON_CHAIN = "on_chain"
    CACHE_FALLBACK = "cache_fallback"


class SwapRequest(BaseModel):
    """Caller intent. Semantic checks run inside the orchestrator so a bad request ends as a failed execution."""

    model_config = ConfigDict(frozen=True)

    caller: str
    input_token: str
    input_amount: int
    candidate_paths: List[List[str]] = Field(default_factory=list)
    slippage_tolerance_bps: Optional[int] = None
    deadline_offset_seconds: Optional[int] = None


@dataclass(frozen=True)
class Quote:
    path: tuple[str, ...]
    amount_in: int
    amount_out: int
    source: QuoteSource

    @property
    def is_estimate(self) -> bool:
        return self.source == QuoteSource.CACHE_FALLBACK


@dataclass(frozen=True)
class SwapFailure:
    code: ErrorCode
    message: str


@dataclass
class SwapExecution:
    """State owned by exactly one orchestration attempt."""

    request: SwapRequest
    state: SwapState = SwapState.IDLE
    history: list[SwapState] = field(default_factory=lambda: [SwapState.IDLE])
    selected_path: list[str] | None = None
    quote: Quote | None = None
    applied_slippage_bps: int | None = None
    amount_out_min: int | None = None
    deadline: int | None = None
    approval_tx_hash: str | None = None
    swap_tx_hash: str | None = None
    realized_amount_out: int | None = None
    failure: SwapFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.state == SwapState.CONFIRMED

    def summary(self) -> dict[str, Any]:
        return {
            "caller": self.request.caller,
            "input_token": self.request.input_token,
            "input_amount": self.request.input_amount,
            "state": self.state.value,
            "history": [state.value for state in self.history],
            "selected_path": self.selected_path,
            "quote_source": self.quote.source.value if self.quote else None,
            "amount_out": self.quote.amount_out if self.quote else None,
            "amount_out_min": self.amount_out_min,
            "slippage_bps": self.applied_slippage_bps,
            "deadline": self.deadline,
            "approval_tx_hash": self.approval_tx_hash,
            "swap_tx_hash": self.swap_tx_hash,
            "realized_amount_out": self.realized_amount_out,
            "failure_code": self.failure.code.value if self.failure else None,
            "failure_message": self.failure.message if self.failure else None,
        }
