"""Price cache structures."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from web3 import Web3


@dataclass(frozen=True)
class PriceKey:
    """(network, quote token) pair identifying one cached rate."""

    chain_id: int
    token: str

    @classmethod
    def of(cls, chain_id: int, token: str) -> "PriceKey":
        return cls(chain_id=int(chain_id), token=Web3.to_checksum_address(token))

    def __str__(self) -> str:
        return f"{self.chain_id}:{self.token}"


@dataclass(frozen=True)
class PriceCacheEntry:
    key: PriceKey
    value: Decimal
    fetched_at: float

    def to_payload(self) -> dict[str, Any]:
        return {
            "chain_id": self.key.chain_id,
            "token": self.key.token,
            "value": str(self.value),
            "fetched_at": self.fetched_at,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "PriceCacheEntry":
        return cls(
            key=PriceKey.of(int(payload["chain_id"]), str(payload["token"])),
            value=Decimal(str(payload["value"])),
            fetched_at=float(payload["fetched_at"]),
        )


@dataclass(frozen=True)
class PriceSnapshot:
    """Non-blocking view of a cache entry: last good value plus staleness and last error."""

    key: PriceKey
    price: Decimal | None
    fetched_at: float | None
    is_stale: bool
    last_error: str | None = None
    fetch_in_flight: bool = False

    @property
    def native_per_token(self) -> Decimal | None:
        """Inverse rate (native asset per one quote token), for display conversions."""
        if self.price is None or self.price <= 0:
            return None
        return Decimal(1) / self.price
