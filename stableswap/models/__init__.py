"""Domain models: chains, allow-listed tokens, price cache entries, swaps."""

from stableswap.models.chain import ChainConfig
from stableswap.models.pricing import PriceCacheEntry, PriceKey, PriceSnapshot
from stableswap.models.swap import (
    Quote,
    QuoteSource,
    SwapExecution,
    SwapFailure,
    SwapRequest,
    SwapState,
)
from stableswap.models.tokens import AllowedToken, allowed_tokens, get_allowed_token

__all__ = [
    "ChainConfig",
    "PriceCacheEntry",
    "PriceKey",
    "PriceSnapshot",
    "Quote",
    "QuoteSource",
    "SwapExecution",
    "SwapFailure",
    "SwapRequest",
    "SwapState",
    "AllowedToken",
    "allowed_tokens",
    "get_allowed_token",
]
