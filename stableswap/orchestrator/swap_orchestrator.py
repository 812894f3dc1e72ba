"""
Stable → native swap orchestration.

One execution per caller at a time. Each execution walks the state machine
IDLE → CHECKING_ALLOWANCE → (APPROVING) → QUOTING → SUBMITTING → CONFIRMED and
ends FAILED with a coded reason on the first terminal error. Once SUBMITTING
starts the orchestrator always waits for the receipt.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Callable

from web3 import Web3

from stableswap.clients.uniswap_v2.allowance import AllowanceClient, AllowanceError
from stableswap.clients.uniswap_v2.rpc import RPCError
from stableswap.clients.uniswap_v2.slippage import SlippageError, calculate_min_out, widened_slippage
from stableswap.clients.uniswap_v2.swap_contract import SwapContract
from stableswap.errors import (
    ApprovalIncompleteError,
    ContractNotDeployedError,
    ErrorCode,
    ExecutionRevertedError,
    InvalidRequestError,
    NoQuoteAvailableError,
    OrchestratorBusyError,
    RpcFailureError,
    StableSwapError,
    SubmissionRejectedError,
    UnsupportedError,
)
from stableswap.logging import log
from stableswap.models.chain import ChainConfig
from stableswap.models.swap import Quote, SwapExecution, SwapFailure, SwapRequest, SwapState
from stableswap.models.tokens import AllowedToken, get_allowed_token
from stableswap.orchestrator.state_machine import SwapStateMachine
from stableswap.pricing.quote_engine import QuoteEngine
from stableswap.signer import Signer, SignerError, TxReceipt

audit_log = log.bind(SWAP_AUDIT=True)


class SwapOrchestrator:
    def __init__(
        self,
        network: ChainConfig,
        *,
        allowance_client: AllowanceClient,
        quote_engine: QuoteEngine,
        swap_contract: SwapContract,
        signer: Signer,
        slippage_tolerance_bps: int = 100,
        deadline_offset_seconds: int = 1_200,
        fallback_slippage_multiplier: int = 2,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.network = network
        self.allowance_client = allowance_client
        self.quote_engine = quote_engine
        self.swap_contract = swap_contract
        self.signer = signer
        self.slippage_tolerance_bps = int(slippage_tolerance_bps)
        self.deadline_offset_seconds = int(deadline_offset_seconds)
        self.fallback_slippage_multiplier = int(fallback_slippage_multiplier)
        self.clock = clock or time.time
        self._active: dict[str, SwapStateMachine] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def execute(self, request: SwapRequest) -> SwapExecution:
        """Run one swap to a terminal state.

        Raises ``OrchestratorBusyError`` without touching the network when the
        caller already has an execution in progress. Every other failure is
        reported on the returned execution. Cancelling the calling task after
        submission does not release the caller until the receipt resolves.
        """
        caller_key = request.caller.lower()
        if caller_key in self._active:
            raise OrchestratorBusyError(f"a swap is already in progress for {request.caller}")

        execution = SwapExecution(request=request)
        machine = SwapStateMachine(execution)
        self._active[caller_key] = machine
        try:
            await self._run(machine)
        except StableSwapError as exc:
            self._fail(machine, exc.code, exc.message)
        except asyncio.CancelledError:
            self._interrupted(machine)
            raise
        except Exception as exc:
            log.exception(f"Unexpected swap error caller={request.caller}: {exc}")
            self._fail(machine, ErrorCode.RPC_FAILURE, f"unexpected error: {exc}")
        finally:
            self._active.pop(caller_key, None)
            self._audit(execution)
        return execution

    def cancel(self, caller: str) -> bool:
        """Cancel the caller's execution if it has not progressed past the allowance check."""
        machine = self._active.get(caller.lower())
        if machine is None or not machine.is_cancellable:
            return False
        machine.transition_to(SwapState.CANCELLED)
        log.info(f"Swap cancelled caller={caller}")
        return True

    def is_busy(self, caller: str) -> bool:
        return caller.lower() in self._active

    def active_state(self, caller: str) -> SwapState | None:
        machine = self._active.get(caller.lower())
        return machine.current_state if machine else None

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    async def _run(self, machine: SwapStateMachine) -> None:
        execution = machine.execution
        request = execution.request
        token = self._validate(request)
        slippage_bps = self._slippage_bps(request)
        deadline_offset = self._deadline_offset(request)

        machine.transition_to(SwapState.CHECKING_ALLOWANCE)
        allowance = await self._read_allowance(token, request.caller)
        if machine.current_state == SwapState.CANCELLED:
            return

        if allowance < request.input_amount:
            log.info(f"Allowance {allowance} below {request.input_amount}, approving exact amount")
            machine.transition_to(SwapState.APPROVING)
            await self._approve(execution, token)

        machine.transition_to(SwapState.QUOTING)
        quote = await self._best_quote(request)
        execution.quote = quote
        execution.selected_path = list(quote.path)
        execution.applied_slippage_bps = self._effective_slippage(quote, slippage_bps)
        execution.amount_out_min = calculate_min_out(quote.amount_out, execution.applied_slippage_bps)
        if execution.amount_out_min <= 0:
            raise NoQuoteAvailableError(f"quoted output {quote.amount_out} leaves no minimum-output bound")

        machine.transition_to(SwapState.SUBMITTING)
        execution.deadline = int(self.clock()) + deadline_offset
        await self._ensure_contract_deployed()
        tx = self.swap_contract.build_swap_tx(
            request.caller,
            token.address,
            request.input_amount,
            [execution.selected_path],
            execution.amount_out_min,
            execution.deadline,
        )
        settlement = asyncio.ensure_future(self._submit_and_wait(execution, tx))
        interrupted = await self._settle(settlement, request.caller)
        try:
            self._conclude(machine, settlement.result())
        except StableSwapError as exc:
            self._fail(machine, exc.code, exc.message)
        if interrupted:
            raise asyncio.CancelledError()

    async def _submit_and_wait(self, execution: SwapExecution, tx: dict) -> TxReceipt:
        execution.swap_tx_hash = await self._submit(tx, label="swap")
        return await self._wait(execution.swap_tx_hash)

    async def _settle(self, settlement: asyncio.Future, caller: str) -> bool:
        """Wait for submission and receipt even if the calling task is cancelled; report whether it was."""
        interrupted = False
        while not settlement.done():
            try:
                await asyncio.wait({settlement})
            except asyncio.CancelledError:
                interrupted = True
                log.warning(f"Swap task cancelled after submission started; waiting for receipt caller={caller}")
        return interrupted

    def _conclude(self, machine: SwapStateMachine, receipt: TxReceipt) -> None:
        execution = machine.execution
        if not receipt.succeeded:
            raise ExecutionRevertedError(f"swap transaction {execution.swap_tx_hash} reverted")
        execution.realized_amount_out = self.swap_contract.realized_output(receipt.logs)
        machine.transition_to(SwapState.CONFIRMED)
        log.info(
            f"Swap confirmed caller={execution.request.caller} tx={execution.swap_tx_hash} "
            f"amount_out_min={execution.amount_out_min} realized={execution.realized_amount_out} "
            f"explorer={self.network.explorer_tx_url(execution.swap_tx_hash)}"
        )

    def _validate(self, request: SwapRequest) -> AllowedToken:
        if self.network.base_asset is None:
            raise UnsupportedError(f"{self.network.name} has no wrapped-native asset for swaps")
        if not Web3.is_address(request.caller):
            raise InvalidRequestError(f"caller {request.caller!r} is not an address")
        token = get_allowed_token(self.network.name, request.input_token)
        if token is None:
            raise InvalidRequestError(f"{request.input_token} is not an allow-listed token on {self.network.name}")
        if request.input_amount <= 0:
            raise InvalidRequestError("input_amount must be positive")
        if not request.candidate_paths:
            raise InvalidRequestError("at least one candidate path is required")
        wrapped = self.network.base_asset.lower()
        for path in request.candidate_paths:
            if len(path) < 2 or not all(Web3.is_address(hop) for hop in path):
                raise InvalidRequestError(f"path {path} must hold at least two valid addresses")
            if path[0].lower() != token.address.lower():
                raise InvalidRequestError(f"path {path} does not start at {token.symbol}")
            if path[-1].lower() != wrapped:
                raise InvalidRequestError(f"path {path} does not end at the wrapped native asset")
        bps = self._slippage_bps(request)
        if not 1 <= bps < 10_000:
            raise InvalidRequestError("slippage_tolerance_bps must be in [1, 10000)")
        if self._deadline_offset(request) <= 0:
            raise InvalidRequestError("deadline_offset_seconds must be positive")
        return token

    def _slippage_bps(self, request: SwapRequest) -> int:
        if request.slippage_tolerance_bps is None:
            return self.slippage_tolerance_bps
        return int(request.slippage_tolerance_bps)

    def _deadline_offset(self, request: SwapRequest) -> int:
        if request.deadline_offset_seconds is None:
            return self.deadline_offset_seconds
        return int(request.deadline_offset_seconds)

    async def _read_allowance(self, token: AllowedToken, owner: str) -> int:
        try:
            return await self.allowance_client.get_allowance(token.address, owner, self.swap_contract.address)
        except AllowanceError as exc:
            raise RpcFailureError(str(exc)) from exc

    async def _approve(self, execution: SwapExecution, token: AllowedToken) -> None:
        request = execution.request
        tx = self.allowance_client.build_approve_tx(
            token.address,
            request.caller,
            self.swap_contract.address,
            request.input_amount,
        )
        execution.approval_tx_hash = await self._submit(tx, label="approve")
        receipt = await self._wait(execution.approval_tx_hash)
        if not receipt.succeeded:
            raise ApprovalIncompleteError(f"approval transaction {execution.approval_tx_hash} reverted")
        allowance = await self._read_allowance(token, request.caller)
        if allowance < request.input_amount:
            raise ApprovalIncompleteError(
                f"allowance {allowance} still below {request.input_amount} after approval"
            )

    async def _best_quote(self, request: SwapRequest) -> Quote:
        best: Quote | None = None
        errors: list[str] = []
        for path in request.candidate_paths:
            try:
                quote = await self.quote_engine.quote(self.network, path, request.input_amount)
            except NoQuoteAvailableError as exc:
                errors.append(exc.message)
                continue
            if best is None or quote.amount_out > best.amount_out:
                best = quote
        if best is None:
            raise NoQuoteAvailableError("; ".join(errors) or "no candidate path could be quoted")
        return best

    def _effective_slippage(self, quote: Quote, slippage_bps: int) -> int:
        if not quote.is_estimate:
            return slippage_bps
        try:
            return widened_slippage(slippage_bps, self.fallback_slippage_multiplier)
        except SlippageError as exc:
            raise NoQuoteAvailableError(f"estimate-based quote rejected: {exc}") from exc

    async def _ensure_contract_deployed(self) -> None:
        try:
            deployed = await self.swap_contract.is_deployed()
        except RPCError as exc:
            raise RpcFailureError(str(exc)) from exc
        if not deployed:
            raise ContractNotDeployedError(f"no contract code at {self.swap_contract.address}")

    async def _submit(self, tx: dict, *, label: str) -> str:
        try:
            tx_hash = await self.signer.submit(tx)
        except SignerError as exc:
            raise SubmissionRejectedError(f"{label} submission rejected: {exc}") from exc
        log.info(f"Submitted {label} tx hash={tx_hash}")
        return tx_hash

    async def _wait(self, tx_hash: str) -> TxReceipt:
        try:
            return await self.signer.wait_for_receipt(tx_hash)
        except SignerError as exc:
            raise RpcFailureError(f"receipt for {tx_hash} unavailable: {exc}") from exc

    # ------------------------------------------------------------------
    # Outcome
    # ------------------------------------------------------------------
    def _interrupted(self, machine: SwapStateMachine) -> None:
        if machine.is_terminal:
            return
        if machine.is_cancellable:
            machine.transition_to(SwapState.CANCELLED)
            log.info(f"Swap task cancelled caller={machine.execution.request.caller}")
            return
        self._fail(machine, ErrorCode.RPC_FAILURE, f"execution task cancelled during {machine.current_state.value}")

    def _fail(self, machine: SwapStateMachine, code: ErrorCode, message: str) -> None:
        if machine.is_terminal:
            return
        machine.execution.failure = SwapFailure(code=code, message=message)
        machine.transition_to(SwapState.FAILED)
        log.warning(f"Swap failed caller={machine.execution.request.caller} code={code.value} message={message}")

    @staticmethod
    def _audit(execution: SwapExecution) -> None:
        audit_log.info(json.dumps(execution.summary()))
