"""RPC helpers for Uniswap V2 reads and transaction plumbing."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

from web3 import Web3

T = TypeVar("T")


class RPCError(Exception):
    """Raised when RPC interactions fail or time out."""


def encode_call(contract, fn_name: str, args: list[Any]) -> str:
    """ABI-encode calldata without touching the node (no gas/nonce lookups)."""
    if hasattr(contract, "encode_abi"):
        return contract.encode_abi(fn_name, args=args)
    return contract.encodeABI(fn_name=fn_name, args=args)


class RPC:
    """Thin wrapper around a web3 provider with normalized errors and bounded async reads.

    web3's HTTP provider is blocking; every read is pushed to a worker thread and
    bounded by ``timeout_seconds`` so a hung node surfaces as ``RPCError``.
    """

    def __init__(self, url: str | None = None, *, timeout_seconds: float = 10.0, w3: Web3 | None = None) -> None:
        if w3 is None and not url:
            raise RPCError("RPC url is required when no web3 instance is supplied")
        self.url = url
        self.timeout_seconds = float(timeout_seconds)
        self.w3 = w3 or Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": self.timeout_seconds}))

    async def read(self, fn: Callable[..., T], *args: Any, label: str = "rpc_call") -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise RPCError(f"{label} timed out after {self.timeout_seconds}s") from exc
        except RPCError:
            raise
        except Exception as exc:
            raise RPCError(f"{label} failed: {exc}") from exc

    def contract(self, address: str, abi: list[dict[str, Any]]):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def get_code(self, address: str) -> bytes:
        code = await self.read(self.w3.eth.get_code, Web3.to_checksum_address(address), label="get_code")
        return bytes(code)

    async def has_code(self, address: str) -> bool:
        return len(await self.get_code(address)) > 0
