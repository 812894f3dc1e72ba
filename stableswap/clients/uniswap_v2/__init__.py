"""Uniswap V2 client package."""

from stableswap.clients.uniswap_v2.allowance import AllowanceClient, AllowanceError
from stableswap.clients.uniswap_v2.pair import PairReader, PairState, compute_pair_address
from stableswap.clients.uniswap_v2.quote import QuoteError, RouterQuoter
from stableswap.clients.uniswap_v2.rpc import RPC, RPCError
from stableswap.clients.uniswap_v2.slippage import SlippageError, calculate_min_out, widened_slippage
from stableswap.clients.uniswap_v2.swap_contract import SwapContract

__all__ = [
    "AllowanceClient",
    "AllowanceError",
    "PairReader",
    "PairState",
    "compute_pair_address",
    "QuoteError",
    "RouterQuoter",
    "RPC",
    "RPCError",
    "SlippageError",
    "calculate_min_out",
    "widened_slippage",
    "SwapContract",
]
