"""Spot pricing: rate source, keyed cache with polling, and swap quoting."""

from stableswap.pricing.activity import ActivitySignal, AlwaysActive, ManualActivity
from stableswap.pricing.price_cache import PriceCache
from stableswap.pricing.quote_engine import QuoteEngine, estimate_amount_out
from stableswap.pricing.rate_source import RateSource
from stableswap.pricing.snapshots import PriceSnapshotStore

__all__ = [
    "ActivitySignal",
    "AlwaysActive",
    "ManualActivity",
    "PriceCache",
    "QuoteEngine",
    "estimate_amount_out",
    "RateSource",
    "PriceSnapshotStore",
]
