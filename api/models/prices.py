"""Pydantic models for the pricing API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from stableswap.models.pricing import PriceSnapshot
from stableswap.models.tokens import AllowedToken


class PriceResponse(BaseModel):
    status: str = "ok"
    chain_id: int
    token: str
    price: Optional[str] = None
    native_per_token: Optional[str] = None
    fetched_at: Optional[float] = None
    is_stale: bool = True
    last_error: Optional[str] = None
    fetch_in_flight: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: PriceSnapshot) -> "PriceResponse":
        inverse = snapshot.native_per_token
        return cls(
            chain_id=snapshot.key.chain_id,
            token=snapshot.key.token,
            price=str(snapshot.price) if snapshot.price is not None else None,
            native_per_token=str(inverse) if inverse is not None else None,
            fetched_at=snapshot.fetched_at,
            is_stale=snapshot.is_stale,
            last_error=snapshot.last_error,
            fetch_in_flight=snapshot.fetch_in_flight,
        )


class WatchRequest(BaseModel):
    interval_ms: Optional[int] = Field(default=None, ge=1_000, le=3_600_000)


class WatchResponse(BaseModel):
    status: str = "ok"
    key: str
    polling: bool


class TokenInfo(BaseModel):
    address: str
    symbol: str
    name: str
    decimals: int
    color: Optional[str] = None

    @classmethod
    def from_allowed(cls, token: AllowedToken) -> "TokenInfo":
        return cls(
            address=token.address,
            symbol=token.symbol,
            name=token.name,
            decimals=token.decimals,
            color=token.color,
        )


class TokenListResponse(BaseModel):
    status: str = "ok"
    chain: str
    count: int
    items: list[TokenInfo]
