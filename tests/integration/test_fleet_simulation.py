"""
End-to-end fleet simulation test.

Runs the demo fleet through many ticks and verifies:
1. A haul truck drives depot -> quarry and snaps onto the quarry
2. Speeds of moving resources stay within bounds for the whole run
3. Every tick's batch reaches all transports and serializes to JSON
4. Dispatch status follows job changes while positions keep flowing
"""

import json
import math
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from fleetsim.catalog.loader import FleetLoader
from fleetsim.core.geo import Coordinate, bearing_deg, distance_km
from fleetsim.core.position_feed import PositionFeed
from fleetsim.core.resource import (
    DispatchStatus, JobStatus, KinematicState, OperatingMode, ResourceType, position_batch,
)
from fleetsim.core.state_store import SimulationStateStore
from fleetsim.dispatch.status import JobBoard
from fleetsim.movement.kinematics import MAX_SPEED_KMH, MIN_SPEED_KMH, KinematicIntegrator
from fleetsim.transport.registry import TransportRegistry

FLEET_FILE = Path(__file__).resolve().parents[2] / "config" / "fleet.yaml"
T0 = datetime(2026, 1, 15, 8, 0, 0, tzinfo=timezone.utc)

DEPOT = Coordinate(62.40, 17.28)
QUARRY = Coordinate(62.45, 17.34)


class TestDepotToQuarry:
    def test_haul_truck_reaches_quarry(self):
        store = SimulationStateStore()
        store.add(KinematicState(
            resource_id="haul-1",
            current_position=DEPOT,
            target_position=QUARRY,
            speed_kmh=60.0,
            heading_deg=bearing_deg(DEPOT, QUARRY),
            waypoints=(DEPOT, QUARRY),
            waypoint_index=1,
            mode=OperatingMode.MOVING,
            last_update=T0,
        ))
        integrator = KinematicIntegrator(store, rng=random.Random(0), speed_variation_kmh=0.0)
        leg = distance_km(DEPOT, QUARRY)

        now = T0
        now += timedelta(seconds=60)
        integrator.tick(now)
        first = store.get("haul-1")
        # One minute at 60 km/h covers 1 km
        assert first.waypoint_index == 1
        assert distance_km(first.current_position, QUARRY) == pytest.approx(leg - 1.0, abs=0.05)

        ticks = 1
        while store.get("haul-1").waypoint_index == 1:
            now += timedelta(seconds=60)
            integrator.tick(now)
            ticks += 1
            assert ticks < 20

        arrived = store.get("haul-1")
        assert ticks == math.ceil(leg)
        assert arrived.current_position == QUARRY
        assert arrived.waypoint_index == 0
        assert arrived.target_position == DEPOT
        assert arrived.heading_deg == pytest.approx(bearing_deg(QUARRY, DEPOT))

        # Next tick heads back toward the depot
        now += timedelta(seconds=60)
        integrator.tick(now)
        assert distance_km(store.get("haul-1").current_position, DEPOT) < leg


class TestDemoFleetRun:
    @pytest.fixture
    def stack(self):
        catalog = FleetLoader().load(FLEET_FILE)
        rng = random.Random(2026)
        store = SimulationStateStore(rng=rng)
        store.initialize(catalog.resources, now=T0)
        integrator = KinematicIntegrator(store, rng=rng)
        feed = PositionFeed(integrator, store)
        return catalog, store, feed

    def test_invariants_hold_over_long_run(self, stack):
        catalog, store, feed = stack
        start = {rid: s.current_position for rid, s in store.get_all().items()}

        now = T0
        for _ in range(300):
            now += timedelta(seconds=2)
            samples = feed.step(now)
            assert len(samples) == 16
            for rid, state in store.get_all().items():
                assert state.target_position == state.waypoints[state.waypoint_index]
                assert 0 <= state.waypoint_index < len(state.waypoints)
                sample = samples[rid]
                assert sample.timestamp == now
                assert 0.0 <= sample.heading <= 360.0
                assert 3.0 <= sample.accuracy <= 8.0
                if state.mode != OperatingMode.IDLE:
                    assert MIN_SPEED_KMH <= sample.speed <= MAX_SPEED_KMH

        haulers = [r.resource_id for r in catalog.resources
                   if r.resource_type == ResourceType.HAUL_TRUCK]
        for rid in haulers:
            # Ten minutes at 40+ km/h
            assert distance_km(start[rid], store.get(rid).current_position) > 0.5

    def test_batch_is_json_serializable(self, stack):
        _, _, feed = stack
        samples = feed.step(T0 + timedelta(seconds=2))
        payload = json.loads(json.dumps({"type": "POSITION_UPDATE", "data": position_batch(samples)}))
        assert len(payload["data"]) == 16
        assert payload["data"][0]["resourceId"] == "loader-01"

    @pytest.mark.asyncio
    async def test_ticks_fan_out_to_transports(self, stack):
        _, _, feed = stack
        registry = TransportRegistry()
        broken = MagicMock()
        broken.name = "broken"
        broken.push_positions = AsyncMock(side_effect=ConnectionError("gone"))
        healthy = MagicMock()
        healthy.name = "healthy"
        healthy.push_positions = AsyncMock()
        registry.register(broken)
        registry.register(healthy)
        feed.on_tick(registry.push_positions)

        now = T0
        for _ in range(5):
            now += timedelta(seconds=2)
            await feed.tick_once(now)

        assert healthy.push_positions.await_count == 5
        last_batch = healthy.push_positions.await_args.args[0]
        assert last_batch == feed.snapshot_all()

    def test_status_follows_job_board(self, stack):
        catalog, _, feed = stack
        board = JobBoard(catalog.jobs)
        assert board.status_of("haul-truck-02") == DispatchStatus.AVAILABLE

        feed.step(T0 + timedelta(seconds=2))
        board.set_status("job-haul-002", JobStatus.ASSIGNED)
        assert board.status_of("haul-truck-02") == DispatchStatus.EN_ROUTE
        board.set_status("job-haul-002", JobStatus.IN_PROGRESS)
        assert board.status_of("haul-truck-02") == DispatchStatus.ON_JOB
        board.set_status("job-haul-002", JobStatus.COMPLETED)
        assert board.status_of("haul-truck-02") == DispatchStatus.AVAILABLE

        # Positions are unaffected by dispatch status
        assert feed.step(T0 + timedelta(seconds=4)) is not None
