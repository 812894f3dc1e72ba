"""Wires RPC, pricing and orchestration for one configured network."""

from __future__ import annotations

from typing import Any

from redis import Redis

from stableswap.clients.uniswap_v2.allowance import AllowanceClient
from stableswap.clients.uniswap_v2.pair import PairReader
from stableswap.clients.uniswap_v2.quote import RouterQuoter
from stableswap.clients.uniswap_v2.rpc import RPC
from stableswap.clients.uniswap_v2.swap_contract import SwapContract
from stableswap.errors import UnsupportedError
from stableswap.logging import log
from stableswap.models.chain import ChainConfig
from stableswap.models.pricing import PriceKey, PriceSnapshot
from stableswap.models.swap import SwapExecution, SwapRequest
from stableswap.models.tokens import AllowedToken, allowed_tokens, get_allowed_token
from stableswap.orchestrator.swap_orchestrator import SwapOrchestrator
from stableswap.pricing.activity import ActivitySignal
from stableswap.pricing.price_cache import PriceCache
from stableswap.pricing.quote_engine import QuoteEngine
from stableswap.pricing.rate_source import RateSource
from stableswap.pricing.snapshots import PriceSnapshotStore
from stableswap.settings.config import Settings, settings
from stableswap.signer import NodeSigner, Signer


class SwapService:
    def __init__(
        self,
        network: ChainConfig,
        *,
        price_cache: PriceCache,
        quote_engine: QuoteEngine,
        orchestrator: SwapOrchestrator | None = None,
    ) -> None:
        self.network = network
        self.price_cache = price_cache
        self.quote_engine = quote_engine
        self.orchestrator = orchestrator

    def resolve_token(self, token: str) -> AllowedToken:
        allowed = get_allowed_token(self.network.name, token)
        if allowed is None:
            raise UnsupportedError(f"{token} is not an allow-listed token on {self.network.name}")
        return allowed

    def tokens(self) -> tuple[AllowedToken, ...]:
        return allowed_tokens(self.network.name)

    def price_key(self, token: str) -> PriceKey:
        return self.price_cache.key(self.network, self.resolve_token(token).address)

    async def snapshot(self, token: str) -> PriceSnapshot:
        key = self.price_key(token)
        if key not in self.price_cache:
            await self.price_cache.restore(key)
        return self.price_cache.get(key)

    async def refresh(self, token: str) -> PriceSnapshot:
        return await self.price_cache.refresh(self.price_key(token))

    async def watch(self, token: str, interval_ms: int | None = None) -> PriceKey:
        key = self.price_key(token)
        await self.price_cache.restore(key)
        self.price_cache.start(key, interval_ms)
        return key

    def unwatch(self, token: str) -> PriceKey:
        key = self.price_key(token)
        self.price_cache.stop(key)
        return key

    async def execute_swap(self, request: SwapRequest) -> SwapExecution:
        if self.orchestrator is None:
            raise UnsupportedError(f"no swap contract configured on {self.network.name}")
        return await self.orchestrator.execute(request)

    async def close(self) -> None:
        await self.price_cache.close()


def _init_redis(config: Settings) -> Redis | None:
    try:
        client = Redis(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            decode_responses=True,
        )
        client.ping()
        return client
    except Exception as exc:
        log.warning(f"Price snapshot Redis unavailable: {exc}")
        return None


def build_swap_service(
    config: Settings | None = None,
    *,
    rpc: RPC | None = None,
    signer: Signer | None = None,
    redis_client: Any | None = None,
    activity: ActivitySignal | None = None,
) -> SwapService:
    config = config or settings
    network = config.chain_config
    if network is None:
        raise UnsupportedError(f"unknown chain {config.chain!r}")

    rpc = rpc or RPC(config.eth_rpc_url, timeout_seconds=config.rpc_timeout_seconds)

    snapshot_store = None
    if config.price_snapshot_enabled:
        client = redis_client if redis_client is not None else _init_redis(config)
        snapshot_store = PriceSnapshotStore(client, prefix=config.price_snapshot_prefix)

    cache_settings = config.cache_settings()
    price_cache = PriceCache(
        RateSource(PairReader(rpc)),
        networks={network.chain_id: network},
        activity=activity,
        ttl_ms=cache_settings["ttl_ms"],
        poll_interval_ms=cache_settings["poll_interval_ms"],
        max_entries=cache_settings["max_entries"],
        snapshot_store=snapshot_store,
    )

    swap_contract = SwapContract(rpc, network.swap_contract, network.chain_id) if network.swap_contract else None
    quote_engine = QuoteEngine(RouterQuoter(rpc), price_cache, swap_contract=swap_contract)

    orchestrator = None
    if swap_contract is not None:
        orchestrator = SwapOrchestrator(
            network,
            allowance_client=AllowanceClient(rpc, network.chain_id),
            quote_engine=quote_engine,
            swap_contract=swap_contract,
            signer=signer or NodeSigner(rpc),
            slippage_tolerance_bps=config.slippage_tolerance_bps,
            deadline_offset_seconds=config.deadline_offset_seconds,
            fallback_slippage_multiplier=config.fallback_slippage_multiplier,
        )
    else:
        log.warning(f"No swap contract configured for {network.name}; swaps disabled, pricing only")

    log.info(f"Swap service ready chain={network.name} chain_id={network.chain_id}")
    return SwapService(network, price_cache=price_cache, quote_engine=quote_engine, orchestrator=orchestrator)
