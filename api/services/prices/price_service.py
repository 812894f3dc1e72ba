"""Pricing service facade for the API."""

from __future__ import annotations

from typing import Callable

from stableswap.errors import UnsupportedError
from stableswap.logging import log
from stableswap.models.chain import ChainConfig
from stableswap.models.pricing import PriceKey, PriceSnapshot
from stableswap.models.tokens import AllowedToken
from stableswap.service import SwapService, build_swap_service
from stableswap.settings.config import get_chain_config


def resolve_chain(chain: str) -> ChainConfig:
    value = chain.strip()
    config = get_chain_config(int(value)) if value.isdigit() else get_chain_config(value)
    if config is None:
        raise UnsupportedError(f"unknown chain {chain!r}")
    return config


class PriceApiService:
    """Lazily builds the swap service and scopes requests to its configured network."""

    def __init__(self, builder: Callable[[], SwapService] = build_swap_service) -> None:
        self._builder = builder
        self._service: SwapService | None = None

    def ensure_service(self) -> SwapService:
        if self._service is None:
            self._service = self._builder()
        return self._service

    def _service_for(self, chain: str) -> SwapService:
        requested = resolve_chain(chain)
        service = self.ensure_service()
        if requested.chain_id != service.network.chain_id:
            raise UnsupportedError(
                f"chain {requested.name} is not served here (configured: {service.network.name})"
            )
        return service

    async def get_price(self, chain: str, token: str) -> PriceSnapshot:
        return await self._service_for(chain).snapshot(token)

    async def refresh_price(self, chain: str, token: str) -> PriceSnapshot:
        return await self._service_for(chain).refresh(token)

    async def watch(self, chain: str, token: str, interval_ms: int | None = None) -> PriceKey:
        key = await self._service_for(chain).watch(token, interval_ms)
        log.info(f"Watch requested key={key}")
        return key

    def unwatch(self, chain: str, token: str) -> PriceKey:
        key = self._service_for(chain).unwatch(token)
        log.info(f"Unwatch requested key={key}")
        return key

    def is_polling(self, key: PriceKey) -> bool:
        return self.ensure_service().price_cache.is_polling(key)

    def list_tokens(self, chain: str) -> tuple[AllowedToken, ...]:
        return self._service_for(chain).tokens()

    async def shutdown(self) -> None:
        if self._service is not None:
            await self._service.close()
            self._service = None


price_service = PriceApiService()
