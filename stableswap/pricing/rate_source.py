"""Spot price of a stable token against the wrapped native asset, read from its V2 pair."""

from __future__ import annotations

from decimal import Decimal

from stableswap.clients.uniswap_v2.pair import PairReader, compute_pair_address
from stableswap.clients.uniswap_v2.rpc import RPCError
from stableswap.errors import NoLiquidityPoolError, RpcFailureError, UnsupportedError
from stableswap.logging import log
from stableswap.models.chain import ChainConfig
from stableswap.models.tokens import get_allowed_token

NATIVE_DECIMALS = 18


class RateSource:
    """Stateless: every ``fetch`` is a fresh network round trip."""

    def __init__(self, pair_reader: PairReader) -> None:
        self.pair_reader = pair_reader

    async def fetch(self, network: ChainConfig, quote_token: str) -> Decimal:
        """Quote-token units per one unit of the native asset (e.g. USDC per ETH)."""
        base_asset = network.base_asset
        if not base_asset:
            raise UnsupportedError(f"{network.name}: native asset {network.native_symbol} has no wrapped-native mapping")
        if not network.supports_pricing:
            raise UnsupportedError(f"{network.name}: no V2 factory configured for pricing")
        token = get_allowed_token(network.name, quote_token)
        if token is None:
            raise UnsupportedError(f"{network.name}: token {quote_token} is not in the allow-list")

        pair_address = compute_pair_address(
            network.v2_factory,
            network.v2_pair_init_code_hash,
            base_asset,
            token.address,
        )
        try:
            if not await self.pair_reader.has_code(pair_address):
                raise NoLiquidityPoolError(f"no {token.symbol}/WETH pair deployed at {pair_address} on {network.name}")
            state = await self.pair_reader.read_pair(pair_address)
        except RPCError as exc:
            raise RpcFailureError(f"reading pair {pair_address} failed: {exc}") from exc

        reserves = state.reserves_for(base_asset, token.address)
        if reserves is None:
            raise NoLiquidityPoolError(
                f"pair {pair_address} tokens ({state.token0}, {state.token1}) do not match {token.symbol}/WETH"
            )
        base_reserve, quote_reserve = reserves
        if base_reserve <= 0 or quote_reserve <= 0:
            raise NoLiquidityPoolError(f"pair {pair_address} has empty reserves")

        price = (Decimal(quote_reserve) / Decimal(10) ** token.decimals) / (
            Decimal(base_reserve) / Decimal(10) ** NATIVE_DECIMALS
        )
        log.debug(f"Rate fetched chain={network.name} token={token.symbol} price={price}")
        return price
