"""Redis persistence of the last good price per key."""

from __future__ import annotations

import json
from typing import Any

from stableswap.logging import log
from stableswap.models.pricing import PriceCacheEntry, PriceKey


class PriceSnapshotStore:
    def __init__(self, redis_client: Any | None, *, prefix: str = "stableswap:price:") -> None:
        self.redis_client = redis_client
        self.prefix = prefix

    def redis_key(self, key: PriceKey) -> str:
        return f"{self.prefix}{key.chain_id}:{key.token}"

    def save(self, entry: PriceCacheEntry) -> None:
        if not self.redis_client:
            return
        try:
            self.redis_client.set(self.redis_key(entry.key), json.dumps(entry.to_payload()))
        except Exception as exc:
            log.warning(f"Failed to persist price snapshot key={entry.key}: {exc}")

    def load(self, key: PriceKey) -> PriceCacheEntry | None:
        if not self.redis_client:
            return None
        try:
            raw = self.redis_client.get(self.redis_key(key))
            if not raw:
                return None
            return PriceCacheEntry.from_payload(json.loads(raw))
        except Exception as exc:
            log.debug(f"Failed loading price snapshot key={key}: {exc}")
            return None
