"""Swap contract transaction helper (stable → native with proceeds forwarded to the caller)."""

from __future__ import annotations

from typing import Any

from eth_abi.exceptions import DecodingError
from web3 import Web3

from stableswap.clients.uniswap_v2.rpc import RPC, encode_call
from stableswap.logging import log
from stableswap.settings.config import SWAP_STABLES_ABI

SWAP_FUNCTION = "swapStableToETHBest"
SWAP_EXECUTED_SIGNATURE = "SwapExecuted(address,address,uint256,uint256)"


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return Web3.to_bytes(hexstr=value)
    return bytes(value)


class SwapContract:
    def __init__(self, rpc: RPC, address: str, chain_id: int | None = None) -> None:
        self.rpc = rpc
        self.contract = rpc.contract(address, SWAP_STABLES_ABI)
        self.chain_id = chain_id
        self._event_topic = bytes(Web3.keccak(text=SWAP_EXECUTED_SIGNATURE))

    @property
    def address(self) -> str:
        return str(self.contract.address)

    async def is_deployed(self) -> bool:
        return await self.rpc.has_code(self.address)

    async def router_address(self) -> str:
        """Router the contract swaps through, read from its ``uniV2()`` accessor."""
        router = await self.rpc.read(self.contract.functions.uniV2().call, label="uniV2")
        return Web3.to_checksum_address(router)

    def build_swap_tx(
        self,
        sender: str,
        token_in: str,
        amount_in: int,
        paths: list[list[str]],
        amount_out_min: int,
        deadline: int,
    ) -> dict[str, Any]:
        args = [
            Web3.to_checksum_address(token_in),
            int(amount_in),
            [[Web3.to_checksum_address(hop) for hop in path] for path in paths],
            int(amount_out_min),
            int(deadline),
        ]
        tx: dict[str, Any] = {
            "from": Web3.to_checksum_address(sender),
            "to": self.address,
            "data": encode_call(self.contract, SWAP_FUNCTION, args),
            "value": 0,
        }
        if self.chain_id is not None:
            tx["chainId"] = int(self.chain_id)
        return tx

    def realized_output(self, logs: list[dict[str, Any]]) -> int | None:
        """Output amount from the contract's completion event, if present in ``logs``."""
        for entry in logs:
            if str(entry.get("address", "")).lower() != self.address.lower():
                continue
            topics = entry.get("topics") or []
            if not topics or _as_bytes(topics[0]) != self._event_topic:
                continue
            try:
                _amount_in, amount_out = self.rpc.w3.codec.decode(["uint256", "uint256"], _as_bytes(entry.get("data", b"")))
            except (DecodingError, ValueError) as exc:
                log.warning(f"Undecodable SwapExecuted log at {self.address}: {exc}")
                return None
            return int(amount_out)
        return None
