"""
Position feed: drives the integrator on a fixed interval and publishes
the results.

Request handlers pull the latest positions with snapshot_all() or
position(). Broadcast transports subscribe with on_tick() and receive the
full batch once per cycle. Delivery runs in separate tasks, so a slow or
broken subscriber never delays the next tick or the other subscribers.
"""

import asyncio
import inspect
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from fleetsim.core.clock import SimulationClock
from fleetsim.core.resource import OperatingMode, PositionSample
from fleetsim.core.state_store import SimulationStateStore
from fleetsim.movement.kinematics import KinematicIntegrator

logger = logging.getLogger(__name__)

TICK_INTERVAL_S = 2.0
# Accuracy reported for positions read before the first tick
DEFAULT_ACCURACY_M = 5.0
STATUS_LOG_EVERY = 30

TickCallback = Callable[[dict[str, PositionSample]], Awaitable[None] | None]


class PositionFeed:
    """Scheduled integration plus pull and push access to positions."""

    def __init__(
        self,
        integrator: KinematicIntegrator,
        store: SimulationStateStore,
        clock: SimulationClock | None = None,
        interval_s: float = TICK_INTERVAL_S,
    ) -> None:
        self._integrator = integrator
        self._store = store
        self._clock = clock
        self._interval_s = interval_s
        self._latest: dict[str, PositionSample] | None = None
        self._subscribers: list[TickCallback] = []
        self._tick_lock = threading.Lock()
        self._pending: set[asyncio.Task] = set()
        self._tick_count = 0
        self._stop = asyncio.Event()

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def on_tick(self, callback: TickCallback) -> None:
        """Register a subscriber for the per-tick position batch."""
        self._subscribers.append(callback)

    def snapshot_all(self) -> dict[str, PositionSample]:
        """Latest positions of all resources, in fleet order."""
        latest = self._latest
        if latest is None:
            return self._derive_from_store()
        return dict(latest)

    def position(self, resource_id: str) -> PositionSample | None:
        """Latest position of one resource, or None if it is not tracked."""
        return self.snapshot_all().get(resource_id)

    def _derive_from_store(self) -> dict[str, PositionSample]:
        samples = {}
        for resource_id, state in self._store.get_all().items():
            samples[resource_id] = PositionSample(
                latitude=state.current_position.latitude,
                longitude=state.current_position.longitude,
                timestamp=state.last_update,
                speed=0.0 if state.mode == OperatingMode.IDLE else state.speed_kmh,
                heading=state.heading_deg,
                accuracy=DEFAULT_ACCURACY_M,
            )
        return samples

    def _now(self) -> datetime:
        if self._clock is not None:
            return self._clock.now()
        return datetime.now(timezone.utc)

    def step(self, now: datetime | None = None) -> dict[str, PositionSample] | None:
        """Run one integration cycle.

        Returns None without doing anything if another cycle is still in
        progress.
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.debug("Previous tick still running, skipping")
            return None
        try:
            samples = self._integrator.tick(now or self._now())
            self._latest = samples
            self._tick_count += 1
        finally:
            self._tick_lock.release()

        if self._tick_count % STATUS_LOG_EVERY == 0:
            logger.info(f"Tick {self._tick_count} | Resources: {len(samples)}")
        return dict(samples)

    async def _deliver(self, callback: TickCallback, samples: dict[str, PositionSample]) -> None:
        try:
            result = callback(samples)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            name = getattr(callback, "__qualname__", repr(callback))
            logger.warning(f"Tick subscriber {name} failed: {e}")

    def _fan_out(self, samples: dict[str, PositionSample]) -> list[asyncio.Task]:
        tasks = []
        for callback in list(self._subscribers):
            task = asyncio.create_task(self._deliver(callback, samples))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            tasks.append(task)
        return tasks

    async def tick_once(self, now: datetime | None = None) -> dict[str, PositionSample] | None:
        """Run one cycle and wait until every subscriber has been served."""
        samples = self.step(now)
        if samples is not None:
            await asyncio.gather(*self._fan_out(samples))
        return samples

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Tick every interval_s seconds until stop() is called or stop_event is set."""
        stop_event = stop_event or self._stop
        self._stop = stop_event
        logger.info(f"Position feed started (interval {self._interval_s}s)")

        while not stop_event.is_set():
            started = time.monotonic()
            try:
                samples = self.step()
            except Exception:
                logger.exception(f"Tick {self._tick_count + 1} failed")
                samples = None
            if samples is not None:
                self._fan_out(samples)

            delay = max(0.0, self._interval_s - (time.monotonic() - started))
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        logger.info(f"Position feed stopped after {self._tick_count} ticks")

    async def stop(self) -> None:
        """Stop the loop and cancel deliveries still in flight."""
        self._stop.set()
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    def describe(self) -> dict[str, Any]:
        return {
            "interval_s": self._interval_s,
            "ticks": self._tick_count,
            "subscribers": len(self._subscribers),
            "resources": self._store.count,
        }
