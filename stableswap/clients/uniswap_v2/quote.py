"""Quote helpers for the Uniswap V2 router."""

from __future__ import annotations

from web3 import Web3

from stableswap.clients.uniswap_v2.rpc import RPC, RPCError
from stableswap.settings.config import V2_ROUTER_ABI


class QuoteError(Exception):
    """Raised when quote retrieval fails."""


class RouterQuoter:
    def __init__(self, rpc: RPC) -> None:
        self.rpc = rpc

    async def get_amounts_out(self, router_address: str, amount_in: int, path: list[str]) -> list[int]:
        contract = self.rpc.contract(router_address, V2_ROUTER_ABI)
        checksum_path = [Web3.to_checksum_address(hop) for hop in path]
        try:
            amounts = await self.rpc.read(
                contract.functions.getAmountsOut(int(amount_in), checksum_path).call,
                label="getAmountsOut",
            )
        except RPCError as exc:
            raise QuoteError(f"getAmountsOut failed: {exc}") from exc
        if not amounts:
            raise QuoteError("getAmountsOut returned no amounts")
        return [int(amount) for amount in amounts]

    async def quote_exact_in(self, router_address: str, amount_in: int, path: list[str]) -> int:
        amount_out = (await self.get_amounts_out(router_address, amount_in, path))[-1]
        if amount_out <= 0:
            raise QuoteError(f"router quoted non-positive output {amount_out}")
        return amount_out
