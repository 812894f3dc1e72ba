"""Transaction submission seam.

The orchestrator never holds keys. It hands an unsigned transaction description
to a ``Signer`` and waits on the returned hash.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

from web3.exceptions import TransactionNotFound

from stableswap.clients.uniswap_v2.rpc import RPC, RPCError
from stableswap.logging import log


class SignerError(Exception):
    """Raised when a transaction could not be submitted (rejected, unsigned, dropped)."""


@dataclass(frozen=True)
class TxReceipt:
    tx_hash: str
    status: int
    block_number: int | None = None
    logs: list[dict[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class Signer(Protocol):
    async def submit(self, tx: dict[str, Any]) -> str:
        """Submit a transaction description and return its hash."""

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """Block until the transaction is mined; never gives up on an outstanding hash."""


def _hex(value: Any) -> str:
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return "0x" + bytes(value).hex()


def receipt_from_web3(raw: Any) -> TxReceipt:
    logs = [
        {
            "address": str(entry["address"]),
            "topics": [bytes(topic) for topic in entry["topics"]],
            "data": bytes(entry["data"]) if not isinstance(entry["data"], str) else entry["data"],
        }
        for entry in raw.get("logs", [])
    ]
    return TxReceipt(
        tx_hash=_hex(raw["transactionHash"]),
        status=int(raw["status"]),
        block_number=int(raw["blockNumber"]) if raw.get("blockNumber") is not None else None,
        logs=logs,
    )


class NodeSigner:
    """Signer backed by a node-managed account (``eth_sendTransaction``), e.g. a dev node or remote signer."""

    def __init__(self, rpc: RPC, *, poll_interval_seconds: float = 2.0) -> None:
        self.rpc = rpc
        self.poll_interval_seconds = poll_interval_seconds

    async def submit(self, tx: dict[str, Any]) -> str:
        try:
            tx_hash = await self.rpc.read(self.rpc.w3.eth.send_transaction, tx, label="send_transaction")
        except RPCError as exc:
            raise SignerError(f"Transaction submission failed: {exc}") from exc
        tx_hex = _hex(tx_hash)
        log.info(f"Broadcasted tx hash={tx_hex} to={tx.get('to')}")
        return tx_hex

    def _receipt_or_none(self, tx_hash: str):
        try:
            return self.rpc.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        while True:
            try:
                raw = await self.rpc.read(self._receipt_or_none, tx_hash, label="get_transaction_receipt")
            except RPCError as exc:
                log.warning(f"Receipt poll failed hash={tx_hash}: {exc}")
                raw = None
            if raw is not None:
                return receipt_from_web3(raw)
            await asyncio.sleep(self.poll_interval_seconds)
