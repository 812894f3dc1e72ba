"""Test configuration and fixtures.

Environment defaults are applied before any ``stableswap`` import so the
module-level settings never reach for Redis or a live RPC during tests.
"""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("PRICE_SNAPSHOT_ENABLED", "false")
os.environ.setdefault("CHAIN", "ethereum")

# Sanitize env vars that may contain inline comments (e.g. "100 #bps").
# Some CI or shell exports accidentally include comments which break pydantic int parsing.
for _k, _v in list(os.environ.items()):
    if isinstance(_v, str) and '#' in _v:
        cleaned = _v.split('#', 1)[0].strip()
        if cleaned != _v:
            os.environ[_k] = cleaned


USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
DAI = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
CALLER = "0x1111111111111111111111111111111111111111"
SWAP_CONTRACT = "0x2222222222222222222222222222222222222222"


class FakeClock:
    """Manually advanced clock; ``now`` is in whatever unit the consumer expects."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, delta: float) -> None:
        self.now += delta


class FakeRedis:
    def __init__(self):
        self.data = {}

    def set(self, key, value):
        self.data[key] = value

    def get(self, key):
        return self.data.get(key)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_redis():
    return FakeRedis()
