"""Slippage utilities."""

from __future__ import annotations

BPS_DENOMINATOR = 10_000


class SlippageError(ValueError):
    """Raised when invalid slippage values are supplied."""


def calculate_min_out(expected_out: int, slippage_bps: int) -> int:
    """Return minimum acceptable output amount using basis-points slippage.

    Pure integer arithmetic, floored, so the bound never rounds up past what the
    chain will enforce.
    """
    if expected_out < 0:
        raise SlippageError("expected_out must be non-negative")
    if slippage_bps < 0 or slippage_bps >= BPS_DENOMINATOR:
        raise SlippageError("slippage_bps must be in [0, 10000)")

    return int(expected_out) * (BPS_DENOMINATOR - int(slippage_bps)) // BPS_DENOMINATOR


def widened_slippage(slippage_bps: int, multiplier: int) -> int:
    """Tolerance applied to estimate-based quotes; strictly wider than ``slippage_bps``.

    Raises ``SlippageError`` when no wider tolerance below 100% exists.
    """
    if multiplier < 2:
        raise SlippageError("multiplier must be at least 2")
    widened = min(int(slippage_bps) * int(multiplier), BPS_DENOMINATOR - 1)
    if widened <= slippage_bps:
        raise SlippageError(f"cannot widen slippage beyond {slippage_bps} bps")
    return widened
