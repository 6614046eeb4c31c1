"""
Thread-safe in-memory simulation state store.

Owns one KinematicState per tracked resource. The position feed is the
only writer; request handlers read through get()/get_all(). States are
frozen, so replacing one under the lock is an atomic per-resource update.
"""

import logging
import random
import threading
from collections import Counter
from datetime import datetime, timezone

from fleetsim.catalog.routes import assign_route
from fleetsim.core.geo import bearing_deg
from fleetsim.core.resource import KinematicState, OperatingMode, ResourceDescriptor

logger = logging.getLogger(__name__)


class SimulationStateStore:
    """
    In-memory store of kinematic state, keyed by resource id.

    Thread-safe via threading.Lock. Iteration order follows the order in
    which resources were added (fleet catalog order).
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._states: dict[str, KinematicState] = {}
        self._lock = threading.Lock()
        self._rng = rng or random.Random()
        self._initialized = False

    def initialize(
        self, fleet: list[ResourceDescriptor], now: datetime | None = None,
    ) -> None:
        """Build the initial state of every resource from its route assignment.

        Raises RuntimeError if the store is already initialized; call
        reset() first to start over. Raises ValueError on duplicate ids.
        Either every resource is stored or none is.
        """
        if self.is_initialized:
            raise RuntimeError("Simulation already initialized; call reset() first")

        now = now or datetime.now(timezone.utc)
        type_counts = Counter(r.resource_type for r in fleet)
        states: dict[str, KinematicState] = {}
        for resource in fleet:
            if resource.resource_id in states:
                raise ValueError(f"Duplicate resource id: {resource.resource_id}")
            states[resource.resource_id] = self._initial_state(
                resource, type_counts[resource.resource_type], now,
            )

        with self._lock:
            if self._initialized:
                raise RuntimeError("Simulation already initialized; call reset() first")
            self._states = states
            self._initialized = True

        logger.info(f"Simulation initialized for {len(states)} resources")

    def _initial_state(
        self, resource: ResourceDescriptor, type_count: int, now: datetime,
    ) -> KinematicState:
        route = assign_route(resource.resource_type, resource.index, self._rng, type_count)
        waypoints = route.waypoints
        target_index = 1 % len(waypoints)
        current = waypoints[0]
        target = waypoints[target_index]

        speed = 0.0
        if route.mode != OperatingMode.IDLE:
            speed = self._rng.uniform(*route.speed_range_kmh)

        return KinematicState(
            resource_id=resource.resource_id,
            current_position=current,
            target_position=target,
            speed_kmh=speed,
            heading_deg=bearing_deg(current, target),
            waypoints=waypoints,
            waypoint_index=target_index,
            mode=route.mode,
            last_update=now,
        )

    def reset(self) -> None:
        """Drop all state so initialize() can run again."""
        with self._lock:
            self._states.clear()
            self._initialized = False
        logger.info("Simulation state reset")

    def add(self, state: KinematicState) -> None:
        """Track a new resource. Raises ValueError if the id already exists."""
        with self._lock:
            if state.resource_id in self._states:
                raise ValueError(f"Resource {state.resource_id} already exists")
            self._states[state.resource_id] = state
            self._initialized = True

    def put(self, state: KinematicState) -> None:
        """Replace the state of a tracked resource. Raises KeyError if not found."""
        with self._lock:
            if state.resource_id not in self._states:
                raise KeyError(f"Resource {state.resource_id} not found")
            self._states[state.resource_id] = state

    def get(self, resource_id: str) -> KinematicState | None:
        """Get state by resource id, or None if not tracked."""
        with self._lock:
            return self._states.get(resource_id)

    def get_all(self) -> dict[str, KinematicState]:
        """Snapshot copy of all states."""
        with self._lock:
            return dict(self._states)

    @property
    def is_initialized(self) -> bool:
        with self._lock:
            return self._initialized

    @property
    def count(self) -> int:
        """Number of tracked resources."""
        with self._lock:
            return len(self._states)
