"""ERC20 allowance and exact-amount approval helpers."""

from __future__ import annotations

from typing import Any

from web3 import Web3

from stableswap.clients.uniswap_v2.rpc import RPC, RPCError, encode_call


ERC20_APPROVE_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "spender", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "owner", "type": "address"},
            {"internalType": "address", "name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class AllowanceError(Exception):
    """Raised on allowance read failures or invalid approval requests."""


class AllowanceClient:
    """Reads ERC20 allowances and builds approvals for exactly the amount being swapped."""

    def __init__(self, rpc: RPC, chain_id: int | None = None) -> None:
        self.rpc = rpc
        self.chain_id = chain_id

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        contract = self.rpc.contract(token, ERC20_APPROVE_ABI)
        try:
            amount = await self.rpc.read(
                contract.functions.allowance(
                    Web3.to_checksum_address(owner),
                    Web3.to_checksum_address(spender),
                ).call,
                label="allowance",
            )
        except RPCError as exc:
            raise AllowanceError(f"Failed to read allowance: {exc}") from exc
        return int(amount)

    def build_approve_tx(self, token: str, owner: str, spender: str, amount: int) -> dict[str, Any]:
        if int(amount) <= 0:
            raise AllowanceError("approval amount must be positive")
        contract = self.rpc.contract(token, ERC20_APPROVE_ABI)
        tx: dict[str, Any] = {
            "from": Web3.to_checksum_address(owner),
            "to": contract.address,
            "data": encode_call(contract, "approve", [Web3.to_checksum_address(spender), int(amount)]),
            "value": 0,
        }
        if self.chain_id is not None:
            tx["chainId"] = int(self.chain_id)
        return tx
