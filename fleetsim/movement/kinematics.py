"""
Kinematic integrator: advances every tracked resource by elapsed time.

Each resource drives toward the waypoint under its cursor at its current
speed. When the distance it can cover this tick reaches the target, it
snaps onto the waypoint and the cursor moves to the next one, wrapping
around the closed loop. Otherwise it moves the covered fraction of the
way and its speed drifts slightly.

Known approximation: the cursor advances at most one waypoint per tick,
even if a large elapsed time would carry the resource past several. At
the default 2 s tick this never matters.
"""

import logging
import random
from dataclasses import replace
from datetime import datetime

from fleetsim.core.geo import bearing_deg, distance_km, interpolate
from fleetsim.core.resource import KinematicState, OperatingMode, PositionSample
from fleetsim.core.state_store import SimulationStateStore
from fleetsim.movement.jitter import StationaryJitter

logger = logging.getLogger(__name__)

MIN_SPEED_KMH = 5.0
MAX_SPEED_KMH = 80.0
# Max speed change per tick while travelling between waypoints
SPEED_VARIATION_KMH = 1.0
# Reported GPS accuracy range, meters
ACCURACY_RANGE_M = (3.0, 8.0)


def clamp_speed(speed_kmh: float) -> float:
    return max(MIN_SPEED_KMH, min(MAX_SPEED_KMH, speed_kmh))


class KinematicIntegrator:
    """Moves every resource in the store along its waypoint loop."""

    def __init__(
        self,
        store: SimulationStateStore,
        rng: random.Random | None = None,
        speed_variation_kmh: float = SPEED_VARIATION_KMH,
        accuracy_range_m: tuple[float, float] = ACCURACY_RANGE_M,
        jitter: StationaryJitter | None = None,
    ) -> None:
        self._store = store
        self._rng = rng or random.Random()
        self._speed_variation = speed_variation_kmh
        self._accuracy_range = accuracy_range_m
        self._jitter = jitter or StationaryJitter(rng=self._rng)

    def tick(self, now: datetime) -> dict[str, PositionSample]:
        """Advance all resources to `now`. Returns one sample per resource."""
        samples: dict[str, PositionSample] = {}
        for resource_id, state in self._store.get_all().items():
            new_state = self.advance(state, now)
            self._store.put(new_state)
            samples[resource_id] = self.sample(new_state, now)
        return samples

    def advance(self, state: KinematicState, now: datetime) -> KinematicState:
        """Compute the state of one resource at `now`. Does not touch the store."""
        if not state.waypoints:
            logger.warning(f"Resource {state.resource_id} has no waypoints, holding position")
            state = replace(
                state,
                waypoints=(state.current_position,),
                waypoint_index=0,
                target_position=state.current_position,
            )

        dt = (now - state.last_update).total_seconds()
        if dt <= 0:
            # Clock skew or repeated timestamp: hold position
            return replace(state, speed_kmh=self._settle_speed(state), last_update=now)

        if state.mode == OperatingMode.IDLE:
            return replace(
                state,
                current_position=self._jitter.apply(state.current_position),
                speed_kmh=0.0,
                last_update=now,
            )

        remaining = distance_km(state.current_position, state.target_position)
        step = (state.speed_kmh / 3600.0) * dt

        if step >= remaining:
            index = (state.waypoint_index + 1) % len(state.waypoints)
            position = state.target_position
            target = state.waypoints[index]
            return replace(
                state,
                current_position=position,
                target_position=target,
                waypoint_index=index,
                heading_deg=bearing_deg(position, target),
                speed_kmh=clamp_speed(state.speed_kmh),
                last_update=now,
            )

        position = interpolate(state.current_position, state.target_position, step / remaining)
        speed = state.speed_kmh + self._rng.uniform(-self._speed_variation, self._speed_variation)
        return replace(
            state,
            current_position=position,
            speed_kmh=clamp_speed(speed),
            last_update=now,
        )

    def sample(self, state: KinematicState, now: datetime) -> PositionSample:
        return PositionSample(
            latitude=state.current_position.latitude,
            longitude=state.current_position.longitude,
            timestamp=now,
            speed=0.0 if state.mode == OperatingMode.IDLE else state.speed_kmh,
            heading=state.heading_deg,
            accuracy=self._rng.uniform(*self._accuracy_range),
        )

    @staticmethod
    def _settle_speed(state: KinematicState) -> float:
        if state.mode == OperatingMode.IDLE:
            return 0.0
        return clamp_speed(state.speed_kmh)
