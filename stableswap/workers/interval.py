"""Interval-based worker primitive."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from stableswap.logging import log


class IntervalWorker:
    """Execute an async callback on a fixed interval while running and active."""

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        *,
        name: str = "interval_worker",
        min_interval_seconds: float = 0.05,
        is_active: Callable[[], bool] | None = None,
    ) -> None:
        self.callback = callback
        self.interval_seconds = float(interval_seconds)
        self.name = name
        self.min_interval_seconds = float(min_interval_seconds)
        self.is_active = is_active or (lambda: True)

    async def run_loop(self, is_running: Callable[[], bool]) -> None:
        while is_running():
            if self.is_active():
                try:
                    await self.callback()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    log.error(f"[{self.name}] run loop error: {exc}")
            await asyncio.sleep(max(self.min_interval_seconds, self.interval_seconds))
