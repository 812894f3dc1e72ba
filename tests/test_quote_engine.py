from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from conftest import USDC, WETH
from stableswap.clients.uniswap_v2.quote import QuoteError
from stableswap.clients.uniswap_v2.rpc import RPCError
from stableswap.errors import NoQuoteAvailableError
from stableswap.models.pricing import PriceKey
from stableswap.models.swap import QuoteSource
from stableswap.pricing.price_cache import PriceCache
from stableswap.pricing.quote_engine import QuoteEngine, estimate_amount_out
from stableswap.settings.config import ETHEREUM_MAINNET

PATH = [USDC, WETH]


class _FakeQuoter:
    def __init__(self, amount_out=None, error=None):
        self.amount_out = amount_out
        self.error = error
        self.routers: list[str] = []

    async def quote_exact_in(self, router_address, amount_in, path):
        self.routers.append(router_address)
        if self.error:
            raise self.error
        return self.amount_out


class _FakeRateSource:
    def __init__(self, price="2500"):
        self.price = price
        self.calls = 0

    async def fetch(self, network, token):
        self.calls += 1
        return Decimal(self.price)


class _FakeSwapContract:
    def __init__(self, router=None, error=None):
        self.router = router
        self.error = error
        self.lookups = 0

    async def router_address(self):
        self.lookups += 1
        if self.error:
            raise self.error
        return self.router


def test_estimate_amount_out_floors_to_wei():
    assert estimate_amount_out(100_000_000, Decimal(2500), 6) == 40_000_000_000_000_000
    assert estimate_amount_out(1, Decimal(3), 0) == 333_333_333_333_333_333


@pytest.mark.asyncio
async def test_router_quote_is_tagged_on_chain(fake_clock):
    quoter = _FakeQuoter(amount_out=39_900_000_000_000_000)
    engine = QuoteEngine(quoter, PriceCache(_FakeRateSource(), clock=fake_clock))

    quote = await engine.quote(ETHEREUM_MAINNET, PATH, 100_000_000)

    assert quote.source == QuoteSource.ON_CHAIN
    assert quote.amount_out == 39_900_000_000_000_000
    assert quoter.routers == [ETHEREUM_MAINNET.v2_router]


@pytest.mark.asyncio
async def test_router_failure_falls_back_to_fresh_cached_price(fake_clock):
    cache = PriceCache(_FakeRateSource("2500"), clock=fake_clock)
    await cache.refresh(PriceKey.of(1, USDC))
    engine = QuoteEngine(_FakeQuoter(error=QuoteError("execution reverted")), cache)

    quote = await engine.quote(ETHEREUM_MAINNET, PATH, 100_000_000)

    assert quote.source == QuoteSource.CACHE_FALLBACK
    assert quote.amount_out == 40_000_000_000_000_000
    assert quote.is_estimate is True


@pytest.mark.asyncio
async def test_no_quote_when_cache_is_stale_and_fetch_is_triggered(fake_clock):
    source = _FakeRateSource("2500")
    cache = PriceCache(source, clock=fake_clock)
    await cache.refresh(PriceKey.of(1, USDC))
    fake_clock.now = 60_000
    engine = QuoteEngine(_FakeQuoter(error=QuoteError("timeout")), cache)

    with pytest.raises(NoQuoteAvailableError):
        await engine.quote(ETHEREUM_MAINNET, PATH, 100_000_000)
    await asyncio.sleep(0)

    assert source.calls == 2


@pytest.mark.asyncio
async def test_router_is_discovered_from_swap_contract_once(fake_clock):
    custom_router = "0x3333333333333333333333333333333333333333"
    contract = _FakeSwapContract(router=custom_router)
    quoter = _FakeQuoter(amount_out=1)
    engine = QuoteEngine(quoter, PriceCache(_FakeRateSource(), clock=fake_clock), swap_contract=contract)

    await engine.quote(ETHEREUM_MAINNET, PATH, 10)
    await engine.quote(ETHEREUM_MAINNET, PATH, 10)

    assert quoter.routers == [custom_router, custom_router]
    assert contract.lookups == 1


@pytest.mark.asyncio
async def test_router_discovery_failure_uses_canonical_router(fake_clock):
    engine = QuoteEngine(
        _FakeQuoter(amount_out=1),
        PriceCache(_FakeRateSource(), clock=fake_clock),
        swap_contract=_FakeSwapContract(error=RPCError("uniV2 reverted")),
    )
    assert await engine.router_for(ETHEREUM_MAINNET) == "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
