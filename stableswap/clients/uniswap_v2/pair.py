"""Pair address derivation and reserve inspection for Uniswap V2 pools."""

from __future__ import annotations

from dataclasses import dataclass

from web3 import Web3

from stableswap.clients.uniswap_v2.rpc import RPC
from stableswap.logging import log


V2_PAIR_ABI = [
    {
        "inputs": [],
        "name": "getReserves",
        "outputs": [
            {"internalType": "uint112", "name": "reserve0", "type": "uint112"},
            {"internalType": "uint112", "name": "reserve1", "type": "uint112"},
            {"internalType": "uint32", "name": "blockTimestampLast", "type": "uint32"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {"inputs": [], "name": "token0", "outputs": [{"internalType": "address", "name": "", "type": "address"}], "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "token1", "outputs": [{"internalType": "address", "name": "", "type": "address"}], "stateMutability": "view", "type": "function"},
]


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    a = Web3.to_checksum_address(token_a)
    b = Web3.to_checksum_address(token_b)
    if a.lower() == b.lower():
        raise ValueError(f"identical pair tokens: {a}")
    return (a, b) if int(a, 16) < int(b, 16) else (b, a)


def compute_pair_address(factory: str, init_code_hash: str, token_a: str, token_b: str) -> str:
    """CREATE2 address of the V2 pair for two tokens, as the factory would deploy it."""
    token0, token1 = sort_tokens(token_a, token_b)
    salt = Web3.solidity_keccak(["address", "address"], [token0, token1])
    digest = Web3.keccak(
        b"\xff"
        + bytes.fromhex(Web3.to_checksum_address(factory)[2:])
        + bytes(salt)
        + bytes.fromhex(init_code_hash[2:])
    )
    return Web3.to_checksum_address("0x" + bytes(digest)[12:].hex())


@dataclass(frozen=True)
class PairState:
    pair: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    block_timestamp_last: int

    def reserves_for(self, base_token: str, quote_token: str) -> tuple[int, int] | None:
        """Return ``(base_reserve, quote_reserve)`` by matching the pool's own token ordering."""
        t0 = self.token0.lower()
        t1 = self.token1.lower()
        base = base_token.lower()
        quote = quote_token.lower()
        if t0 == base and t1 == quote:
            return self.reserve0, self.reserve1
        if t0 == quote and t1 == base:
            return self.reserve1, self.reserve0
        return None


class PairReader:
    """Read-only pair inspection."""

    def __init__(self, rpc: RPC) -> None:
        self.rpc = rpc

    async def has_code(self, pair_address: str) -> bool:
        return await self.rpc.has_code(pair_address)

    async def read_pair(self, pair_address: str) -> PairState:
        pair = self.rpc.contract(pair_address, V2_PAIR_ABI)
        reserves = await self.rpc.read(pair.functions.getReserves().call, label="getReserves")
        token0 = await self.rpc.read(pair.functions.token0().call, label="token0")
        token1 = await self.rpc.read(pair.functions.token1().call, label="token1")
        state = PairState(
            pair=str(pair.address),
            token0=str(token0),
            token1=str(token1),
            reserve0=int(reserves[0]),
            reserve1=int(reserves[1]),
            block_timestamp_last=int(reserves[2]),
        )
        log.debug(
            f"Pair state pair={state.pair} token0={state.token0} token1={state.token1} "
            f"reserve0={state.reserve0} reserve1={state.reserve1}"
        )
        return state
