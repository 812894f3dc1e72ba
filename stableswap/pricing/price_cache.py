"""
Process-wide price cache keyed by (network, quote token).

Reads never perform I/O. At most one fetch per key is in flight; concurrent
callers attach to it. Per-key poll loops are reference counted and only fire
while the activity signal reports the host as active.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Awaitable, Callable, Mapping

from stableswap.errors import StableSwapError, UnsupportedError
from stableswap.logging import log
from stableswap.models.chain import ChainConfig
from stableswap.models.pricing import PriceCacheEntry, PriceKey, PriceSnapshot
from stableswap.pricing.activity import ActivitySignal, AlwaysActive
from stableswap.pricing.rate_source import RateSource
from stableswap.pricing.snapshots import PriceSnapshotStore
from stableswap.settings.config import CHAIN_CONFIGS
from stableswap.workers.interval import IntervalWorker

Clock = Callable[[], float]


def wall_clock_ms() -> float:
    return time.time() * 1000.0


@dataclass
class _KeyState:
    entry: PriceCacheEntry | None = None
    last_error: str | None = None
    last_failure_at: float | None = None
    in_flight: asyncio.Task | None = None
    poll_refs: int = 0
    poll_task: asyncio.Task | None = None
    subscribers: list[asyncio.Queue] = field(default_factory=list)

    @property
    def pinned(self) -> bool:
        return self.poll_refs > 0 or self.in_flight is not None or bool(self.subscribers)


class PriceCache:
    def __init__(
        self,
        rate_source: RateSource,
        *,
        networks: Mapping[int, ChainConfig] | None = None,
        clock: Clock | None = None,
        activity: ActivitySignal | None = None,
        ttl_ms: int = 14_000,
        poll_interval_ms: int = 15_000,
        max_entries: int = 256,
        snapshot_store: PriceSnapshotStore | None = None,
    ) -> None:
        if ttl_ms <= 0 or poll_interval_ms <= 0:
            raise ValueError("ttl_ms and poll_interval_ms must be positive")
        self.rate_source = rate_source
        self.networks = dict(networks) if networks is not None else {c.chain_id: c for c in CHAIN_CONFIGS.values()}
        self.clock = clock or wall_clock_ms
        self.activity = activity or AlwaysActive()
        self.ttl_ms = int(ttl_ms)
        self.poll_interval_ms = int(poll_interval_ms)
        self.max_entries = max(1, int(max_entries))
        self.snapshot_store = snapshot_store
        self._states: OrderedDict[PriceKey, _KeyState] = OrderedDict()

    @staticmethod
    def key(network: ChainConfig, token: str) -> PriceKey:
        return PriceKey.of(network.chain_id, token)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, key: PriceKey) -> PriceSnapshot:
        state = self._states.get(key)
        if state is None:
            return PriceSnapshot(key=key, price=None, fetched_at=None, is_stale=True)
        self._states.move_to_end(key)
        return self._snapshot(key, state)

    def _snapshot(self, key: PriceKey, state: _KeyState) -> PriceSnapshot:
        entry = state.entry
        return PriceSnapshot(
            key=key,
            price=entry.value if entry else None,
            fetched_at=entry.fetched_at if entry else None,
            is_stale=not self._is_fresh(state),
            last_error=state.last_error,
            fetch_in_flight=state.in_flight is not None,
        )

    def _is_fresh(self, state: _KeyState) -> bool:
        if state.entry is None:
            return False
        return self.clock() - state.entry.fetched_at < self.ttl_ms

    def _throttled(self, state: _KeyState) -> bool:
        if state.last_failure_at is None:
            return False
        return self.clock() - state.last_failure_at < self.poll_interval_ms

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    def ensure_fresh(self, key: PriceKey) -> Awaitable[PriceSnapshot]:
        """Start a fetch if the entry is absent or expired; return an awaitable on the current one.

        Must be called from a running event loop. After a failure no new fetch
        starts until one poll interval has elapsed.
        """
        state = self._state(key)
        if state.in_flight is not None:
            return state.in_flight
        if self._is_fresh(state) or self._throttled(state):
            return self._resolved(self._snapshot(key, state))
        return self._start_fetch(key, state)

    def refresh(self, key: PriceKey) -> Awaitable[PriceSnapshot]:
        """Caller-triggered fetch ignoring TTL and the failure throttle; still single-flight."""
        state = self._state(key)
        if state.in_flight is not None:
            return state.in_flight
        return self._start_fetch(key, state)

    @staticmethod
    def _resolved(snapshot: PriceSnapshot) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        future.set_result(snapshot)
        return future

    def _start_fetch(self, key: PriceKey, state: _KeyState) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._fetch(key, state), name=f"price-fetch:{key}")
        state.in_flight = task
        return task

    async def _fetch(self, key: PriceKey, state: _KeyState) -> PriceSnapshot:
        try:
            network = self.networks.get(key.chain_id)
            if network is None:
                raise UnsupportedError(f"chain id {key.chain_id} is not configured")
            value = await self.rate_source.fetch(network, key.token)
        except StableSwapError as exc:
            self._record_failure(key, state, str(exc))
        except Exception as exc:
            log.error(f"Unexpected price fetch error key={key}: {exc}")
            self._record_failure(key, state, f"rpc_failure: {exc}")
        else:
            if self._record_success(key, state, value) and self.snapshot_store is not None:
                await asyncio.to_thread(self.snapshot_store.save, state.entry)
        finally:
            state.in_flight = None
        snapshot = self._snapshot(key, state)
        self._notify(state, snapshot)
        return snapshot

    def _record_success(self, key: PriceKey, state: _KeyState, value: Decimal) -> bool:
        fetched_at = self.clock()
        previous = state.entry
        if previous is not None and fetched_at <= previous.fetched_at:
            log.debug(f"Discarding price not newer than cached entry key={key}")
            return False
        state.entry = PriceCacheEntry(key=key, value=value, fetched_at=fetched_at)
        state.last_error = None
        state.last_failure_at = None
        log.info(f"Price updated key={key} value={value}")
        return True

    def _record_failure(self, key: PriceKey, state: _KeyState, message: str) -> None:
        state.last_error = message
        state.last_failure_at = self.clock()
        log.warning(f"Price fetch failed key={key} error={message}")

    async def restore(self, key: PriceKey) -> bool:
        """Seed an absent entry from the persisted snapshot, keeping its original ``fetched_at``.

        The Redis read runs in a worker thread.
        """
        if self.snapshot_store is None:
            return False
        state = self._state(key)
        if state.entry is not None:
            return False
        entry = await asyncio.to_thread(self.snapshot_store.load, key)
        if entry is None or entry.key != key or state.entry is not None:
            return False
        state.entry = entry
        log.info(f"Price restored from snapshot key={key} value={entry.value}")
        return True

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------
    def start(self, key: PriceKey, interval_ms: int | None = None) -> None:
        state = self._state(key)
        state.poll_refs += 1
        if state.poll_task is not None:
            return
        worker = IntervalWorker(
            lambda: asyncio.shield(self.ensure_fresh(key)),
            (interval_ms or self.poll_interval_ms) / 1000.0,
            name=f"price-poll:{key}",
            is_active=self.activity.is_active,
        )
        state.poll_task = asyncio.get_running_loop().create_task(
            worker.run_loop(lambda: state.poll_refs > 0),
            name=f"price-poll:{key}",
        )
        log.info(f"Price polling started key={key}")

    def stop(self, key: PriceKey) -> None:
        state = self._states.get(key)
        if state is None or state.poll_refs == 0:
            return
        state.poll_refs -= 1
        if state.poll_refs == 0 and state.poll_task is not None:
            state.poll_task.cancel()
            state.poll_task = None
            log.info(f"Price polling stopped key={key}")

    def is_polling(self, key: PriceKey) -> bool:
        state = self._states.get(key)
        return state is not None and state.poll_task is not None

    async def close(self) -> None:
        tasks: list[asyncio.Task] = []
        for state in self._states.values():
            state.poll_refs = 0
            for task in (state.poll_task, state.in_flight):
                if task is not None:
                    task.cancel()
                    tasks.append(task)
            state.poll_task = None
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, key: PriceKey) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._state(key).subscribers.append(queue)
        return queue

    def unsubscribe(self, key: PriceKey, queue: asyncio.Queue) -> None:
        state = self._states.get(key)
        if state is not None and queue in state.subscribers:
            state.subscribers.remove(queue)

    @staticmethod
    def _notify(state: _KeyState, snapshot: PriceSnapshot) -> None:
        for queue in list(state.subscribers):
            queue.put_nowait(snapshot)

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------
    def _state(self, key: PriceKey) -> _KeyState:
        state = self._states.get(key)
        if state is None:
            state = _KeyState()
            self._states[key] = state
            self._evict()
        self._states.move_to_end(key)
        return state

    def _evict(self) -> None:
        overflow = len(self._states) - self.max_entries
        if overflow <= 0:
            return
        for candidate in list(self._states.keys())[:-1]:
            if overflow <= 0:
                break
            if self._states[candidate].pinned:
                continue
            del self._states[candidate]
            overflow -= 1
            log.debug(f"Evicted price entry key={candidate}")

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, key: object) -> bool:
        return key in self._states
