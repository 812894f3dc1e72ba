"""Per-path output quotes: router first, cached spot price as the fallback tier."""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal, localcontext

from stableswap.clients.uniswap_v2.quote import QuoteError, RouterQuoter
from stableswap.clients.uniswap_v2.rpc import RPCError
from stableswap.clients.uniswap_v2.swap_contract import SwapContract
from stableswap.errors import NoQuoteAvailableError, StableSwapError, UnsupportedError
from stableswap.logging import log
from stableswap.models.chain import ChainConfig
from stableswap.models.swap import Quote, QuoteSource
from stableswap.models.tokens import get_allowed_token
from stableswap.pricing.price_cache import PriceCache

NATIVE_DECIMALS = 18


def estimate_amount_out(amount_in: int, price: Decimal, decimals_in: int) -> int:
    """Native-asset output (wei) for ``amount_in`` quote-token units at ``price`` quote units per native unit."""
    if price <= 0:
        raise ValueError("price must be positive")
    with localcontext() as ctx:
        ctx.prec = 80
        raw = Decimal(int(amount_in)) * (Decimal(10) ** NATIVE_DECIMALS) / (price * (Decimal(10) ** int(decimals_in)))
        return int(raw.to_integral_value(rounding=ROUND_FLOOR))


class QuoteEngine:
    def __init__(
        self,
        quoter: RouterQuoter,
        price_cache: PriceCache,
        *,
        swap_contract: SwapContract | None = None,
    ) -> None:
        self.quoter = quoter
        self.price_cache = price_cache
        self.swap_contract = swap_contract
        self._routers: dict[int, str] = {}

    async def router_for(self, network: ChainConfig) -> str:
        """Router the swap contract trades through, or the network's canonical V2 router."""
        cached = self._routers.get(network.chain_id)
        if cached:
            return cached
        router: str | None = None
        if self.swap_contract is not None:
            try:
                router = await self.swap_contract.router_address()
            except RPCError as exc:
                log.warning(f"uniV2() lookup failed on {network.name}, using canonical router: {exc}")
        router = router or network.v2_router
        if not router:
            raise UnsupportedError(f"{network.name}: no V2 router configured")
        self._routers[network.chain_id] = router
        return router

    async def quote(self, network: ChainConfig, path: list[str], amount_in: int) -> Quote:
        try:
            router = await self.router_for(network)
            amount_out = await self.quoter.quote_exact_in(router, amount_in, path)
        except (QuoteError, StableSwapError) as exc:
            log.warning(f"Router quote failed chain={network.name} path={path}: {exc}; trying cached price")
            return self._fallback_quote(network, path, amount_in)
        log.debug(f"Router quote chain={network.name} path={path} amount_in={amount_in} amount_out={amount_out}")
        return Quote(path=tuple(path), amount_in=int(amount_in), amount_out=amount_out, source=QuoteSource.ON_CHAIN)

    def _fallback_quote(self, network: ChainConfig, path: list[str], amount_in: int) -> Quote:
        token = get_allowed_token(network.name, path[0])
        if token is None:
            raise NoQuoteAvailableError(f"{path[0]} is not an allow-listed token on {network.name}")
        key = self.price_cache.key(network, token.address)
        snapshot = self.price_cache.get(key)
        if snapshot.price is None or snapshot.is_stale or snapshot.price <= 0:
            self.price_cache.ensure_fresh(key)
            raise NoQuoteAvailableError(
                f"router quote failed and no fresh cached price for {token.symbol} on {network.name}"
            )
        amount_out = estimate_amount_out(amount_in, snapshot.price, token.decimals)
        if amount_out <= 0:
            raise NoQuoteAvailableError(f"cached price {snapshot.price} yields no output for amount {amount_in}")
        log.info(
            f"Cache fallback quote chain={network.name} token={token.symbol} price={snapshot.price} "
            f"amount_in={amount_in} amount_out={amount_out}"
        )
        return Quote(path=tuple(path), amount_in=int(amount_in), amount_out=amount_out, source=QuoteSource.CACHE_FALLBACK)
