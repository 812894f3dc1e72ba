"""
Error taxonomy shared by pricing and swap orchestration.

Read-side errors (RPC_FAILURE, NO_LIQUIDITY_POOL, UNSUPPORTED) are recovered by
falling back one tier before surfacing. Swap-call errors are terminal for the
orchestration that raised them.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_REQUEST = "invalid_request"
    RPC_FAILURE = "rpc_failure"
    NO_QUOTE_AVAILABLE = "no_quote_available"
    APPROVAL_INCOMPLETE = "approval_incomplete"
    EXECUTION_REVERTED = "execution_reverted"
    BUSY = "busy"
    UNSUPPORTED = "unsupported"
    NO_LIQUIDITY_POOL = "no_liquidity_pool"
    CONTRACT_NOT_DEPLOYED = "contract_not_deployed"
    SUBMISSION_REJECTED = "submission_rejected"


class StableSwapError(Exception):
    """Base error carrying a taxonomy code and a human-readable message."""

    code: ErrorCode = ErrorCode.RPC_FAILURE

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidRequestError(StableSwapError):
    code = ErrorCode.INVALID_REQUEST


class RpcFailureError(StableSwapError):
    code = ErrorCode.RPC_FAILURE


class NoQuoteAvailableError(StableSwapError):
    code = ErrorCode.NO_QUOTE_AVAILABLE


class ApprovalIncompleteError(StableSwapError):
    code = ErrorCode.APPROVAL_INCOMPLETE


class ExecutionRevertedError(StableSwapError):
    code = ErrorCode.EXECUTION_REVERTED


class OrchestratorBusyError(StableSwapError):
    code = ErrorCode.BUSY


class UnsupportedError(StableSwapError):
    code = ErrorCode.UNSUPPORTED


class NoLiquidityPoolError(StableSwapError):
    code = ErrorCode.NO_LIQUIDITY_POOL


class ContractNotDeployedError(StableSwapError):
    code = ErrorCode.CONTRACT_NOT_DEPLOYED


class SubmissionRejectedError(StableSwapError):
    code = ErrorCode.SUBMISSION_REJECTED


__all__ = [
    "ErrorCode",
    "StableSwapError",
    "InvalidRequestError",
    "RpcFailureError",
    "NoQuoteAvailableError",
    "ApprovalIncompleteError",
    "ExecutionRevertedError",
    "OrchestratorBusyError",
    "UnsupportedError",
    "NoLiquidityPoolError",
    "ContractNotDeployedError",
    "SubmissionRejectedError",
]
