"""
GPS noise for stationary resources.

A parked vehicle with a real GPS receiver never reports exactly the same
fix twice. Idle resources get a small random displacement each tick so
their track looks like a held-in-place receiver rather than a frozen dot.
"""

import random

from fleetsim.core.geo import Coordinate, offset_m

# Maximum displacement per tick for a stationary resource
IDLE_JITTER_M = 1.0


class StationaryJitter:
    """Displaces a point by up to max_offset_m in a random direction."""

    def __init__(self, max_offset_m: float = IDLE_JITTER_M, rng: random.Random | None = None) -> None:
        self._max_offset_m = max_offset_m
        self._rng = rng or random.Random()

    def apply(self, point: Coordinate) -> Coordinate:
        distance = self._rng.uniform(0.0, self._max_offset_m)
        if distance <= 0.0:
            return point
        return offset_m(point, distance, self._rng.uniform(0.0, 360.0))
