"""Tests for the route catalog and type-to-route mapping."""

import random

import pytest

from fleetsim.catalog.routes import (
    DEPOT, PATROL_ROUTES, PROJECT_AREAS, QUARRY_NORTH, QUARRY_SOUTH,
    ROUTE_RULES, assign_route, rule_for,
)
from fleetsim.core.resource import OperatingMode, ResourceType


def _near(point, center, tolerance_deg):
    return (abs(point.latitude - center.latitude) <= tolerance_deg and
            abs(point.longitude - center.longitude) <= tolerance_deg)


class TestPlowRoutes:
    @pytest.mark.parametrize("index", range(6))
    def test_cycles_patrol_routes(self, index):
        route = assign_route(ResourceType.PLOW_TRUCK, index)
        assert route.waypoints == PATROL_ROUTES[index % len(PATROL_ROUTES)].waypoints
        assert route.mode == OperatingMode.MOVING
        assert route.speed_range_kmh == (30, 50)


class TestHaulRoutes:
    def test_even_index_uses_north_quarry(self):
        route = assign_route(ResourceType.HAUL_TRUCK, 0)
        assert route.waypoints == (DEPOT, QUARRY_NORTH, PROJECT_AREAS[0].center, DEPOT)
        assert route.mode == OperatingMode.MOVING
        assert route.speed_range_kmh == (40, 70)

    def test_odd_index_uses_south_quarry(self):
        route = assign_route(ResourceType.HAUL_TRUCK, 1)
        assert route.waypoints == (DEPOT, QUARRY_SOUTH, PROJECT_AREAS[1].center, DEPOT)

    def test_project_area_wraps(self):
        route = assign_route(ResourceType.HAUL_TRUCK, 3)
        assert route.waypoints[2] == PROJECT_AREAS[0].center
        assert route.waypoints[1] == QUARRY_SOUTH


class TestLoaderRoutes:
    @pytest.mark.parametrize("index,quarry", [
        (0, QUARRY_NORTH), (1, QUARRY_NORTH), (2, QUARRY_SOUTH), (3, QUARRY_SOUTH),
    ])
    def test_first_half_north(self, index, quarry):
        route = assign_route(ResourceType.WHEEL_LOADER, index, random.Random(index), type_count=4)
        assert len(route.waypoints) == 3
        assert all(_near(p, quarry, 0.001) for p in route.waypoints)
        assert route.mode == OperatingMode.WORKING
        assert route.speed_range_kmh == (5, 15)

    def test_odd_fleet_rounds_north_half_up(self):
        rng = random.Random(1)
        assert _near(assign_route(ResourceType.WHEEL_LOADER, 1, rng, type_count=3).waypoints[0],
                     QUARRY_NORTH, 0.001)
        assert _near(assign_route(ResourceType.WHEEL_LOADER, 2, rng, type_count=3).waypoints[0],
                     QUARRY_SOUTH, 0.001)


class TestExcavatorRoutes:
    @pytest.mark.parametrize("index", range(5))
    def test_jitter_around_project(self, index):
        route = assign_route(ResourceType.EXCAVATOR, index, random.Random(index))
        center = PROJECT_AREAS[index % len(PROJECT_AREAS)].center
        assert len(route.waypoints) == 2
        assert all(_near(p, center, 0.0005) for p in route.waypoints)
        assert route.mode == OperatingMode.WORKING
        assert route.speed_range_kmh == (2, 7)


class TestDepotFallback:
    @pytest.mark.parametrize("rtype", [
        ResourceType.CRANE, ResourceType.TANKER, ResourceType.DUMP_TRUCK, "hovercraft",
    ])
    def test_unknown_types_idle_at_depot(self, rtype):
        route = assign_route(rtype, 0)
        assert route.waypoints == (DEPOT,)
        assert route.mode == OperatingMode.IDLE
        assert route.speed_range_kmh == (0, 0)


class TestDeterminism:
    def test_same_seed_same_jitter(self):
        a = assign_route(ResourceType.WHEEL_LOADER, 0, random.Random(7))
        b = assign_route(ResourceType.WHEEL_LOADER, 0, random.Random(7))
        assert a == b

    def test_topology_independent_of_rng(self):
        for rtype in (ResourceType.PLOW_TRUCK, ResourceType.HAUL_TRUCK):
            for index in range(4):
                assert (assign_route(rtype, index, random.Random(1)) ==
                        assign_route(rtype, index, random.Random(2)))

    def test_every_rule_yields_waypoints(self):
        for rtype in ROUTE_RULES:
            for index in range(4):
                assert len(assign_route(rtype, index).waypoints) >= 1

    def test_rule_for_unknown(self):
        assert rule_for("submarine").mode == OperatingMode.IDLE
