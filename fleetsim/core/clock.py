"""
Simulation clock with a speed multiplier.

The position feed reads "now" from this clock instead of the wall clock,
so the fleet can be fast-forwarded (e.g. 10x for demos) or frozen while
the broadcast keeps running.
"""

import math
import time
from datetime import datetime, timedelta, timezone


class SimulationClock:
    """
    Maps monotonic wall-clock time to simulated UTC time.

    Computed on demand; no background thread.
    """

    def __init__(self, start_time: datetime | None = None, speed: float = 1.0) -> None:
        self._start_time = start_time or datetime.now(timezone.utc)
        self._wall_start: float | None = None
        self._banked = timedelta()
        self.set_speed(speed)

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def is_running(self) -> bool:
        return self._wall_start is not None

    @property
    def start_time(self) -> datetime:
        return self._start_time

    def start(self) -> None:
        """Start or resume advancing time."""
        if self._wall_start is None:
            self._wall_start = time.monotonic()

    resume = start

    def pause(self) -> None:
        """Freeze simulated time, keeping the elapsed amount."""
        if self._wall_start is None:
            return
        self._banked = self.get_elapsed()
        self._wall_start = None

    def set_speed(self, multiplier: float) -> None:
        """Change the speed multiplier. Time already elapsed is kept at the old rate."""
        if not math.isfinite(multiplier) or multiplier < 0:
            raise ValueError(f"Clock speed must be a finite number >= 0, got {multiplier}")
        if self._wall_start is not None:
            self._banked = self.get_elapsed()
            self._wall_start = time.monotonic()
        self._speed = multiplier

    def get_elapsed(self) -> timedelta:
        """Simulated time since start."""
        if self._wall_start is None:
            return self._banked
        wall = time.monotonic() - self._wall_start
        return self._banked + timedelta(seconds=wall * self._speed)

    def now(self) -> datetime:
        """Current simulated time."""
        return self._start_time + self.get_elapsed()
