"""API models package."""

from api.models.prices import (
    PriceResponse,
    TokenInfo,
    TokenListResponse,
    WatchRequest,
    WatchResponse,
)

__all__ = [
    "PriceResponse",
    "TokenInfo",
    "TokenListResponse",
    "WatchRequest",
    "WatchResponse",
]
