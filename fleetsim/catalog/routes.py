"""
Static route catalog for the Sundsvall demo fleet.

Holds the depot, quarry and project-area coordinates, the fixed plow
patrol routes, and the table that maps each resource type to the way its
closed-loop route is built. Route topology depends only on (type, index);
jitter offsets are drawn from the caller's random generator.
"""

import math
import random
from dataclasses import dataclass
from enum import Enum

from fleetsim.core.geo import Coordinate
from fleetsim.core.resource import OperatingMode, ResourceType

DEPOT = Coordinate(62.4012, 17.2856)
QUARRY_NORTH = Coordinate(62.4523, 17.3421)
QUARRY_SOUTH = Coordinate(62.3345, 17.2789)


@dataclass(frozen=True)
class PatrolRoute:
    route_id: str
    name: str
    waypoints: tuple[Coordinate, ...]


@dataclass(frozen=True)
class ProjectArea:
    area_id: str
    name: str
    center: Coordinate
    radius_m: float


PATROL_ROUTES: tuple[PatrolRoute, ...] = (
    PatrolRoute("route-plow-1", "E4 Norr", (
        Coordinate(62.3908, 17.3069),
        Coordinate(62.4100, 17.3200),
        Coordinate(62.4300, 17.3400),
        Coordinate(62.4500, 17.3500),
    )),
    PatrolRoute("route-plow-2", "Stadscentrum", (
        Coordinate(62.3908, 17.3069),
        Coordinate(62.3880, 17.2900),
        Coordinate(62.3850, 17.3100),
        Coordinate(62.3920, 17.3200),
    )),
    PatrolRoute("route-plow-3", "Industriområdet", (
        Coordinate(62.4012, 17.2856),
        Coordinate(62.4050, 17.2700),
        Coordinate(62.4100, 17.2600),
        Coordinate(62.4080, 17.2500),
    )),
    PatrolRoute("route-plow-4", "Södermalm", (
        Coordinate(62.3700, 17.3000),
        Coordinate(62.3650, 17.2900),
        Coordinate(62.3600, 17.3100),
        Coordinate(62.3550, 17.3000),
    )),
)

PROJECT_AREAS: tuple[ProjectArea, ...] = (
    ProjectArea("project-1", "Nytt bostadsområde Norra Kajen", Coordinate(62.3950, 17.2800), 200),
    ProjectArea("project-2", "Vägbygge Timrå", Coordinate(62.4850, 17.3200), 500),
    ProjectArea("project-3", "Industrimark expansion", Coordinate(62.4100, 17.2500), 300),
)


class RoutePattern(Enum):
    """How a resource type's waypoint loop is constructed."""
    PATROL = "patrol"                  # fixed plow route
    HAUL_LOOP = "haul_loop"            # depot -> quarry -> project -> depot
    QUARRY_JITTER = "quarry_jitter"    # small loop around a quarry
    PROJECT_JITTER = "project_jitter"  # small loop around a project area
    DEPOT = "depot"                    # parked at the depot


@dataclass(frozen=True)
class RouteRule:
    """Route construction parameters for one resource type.

    jitter_deg is the full width of the square the jittered points are
    drawn from, so each point lies within +/- jitter_deg / 2 of its center.
    """
    pattern: RoutePattern
    mode: OperatingMode
    speed_range_kmh: tuple[float, float]
    jitter_deg: float = 0.0
    points: int = 0


ROUTE_RULES: dict[ResourceType, RouteRule] = {
    ResourceType.PLOW_TRUCK: RouteRule(RoutePattern.PATROL, OperatingMode.MOVING, (30, 50)),
    ResourceType.HAUL_TRUCK: RouteRule(RoutePattern.HAUL_LOOP, OperatingMode.MOVING, (40, 70)),
    ResourceType.WHEEL_LOADER: RouteRule(
        RoutePattern.QUARRY_JITTER, OperatingMode.WORKING, (5, 15), jitter_deg=0.002, points=3,
    ),
    ResourceType.EXCAVATOR: RouteRule(
        RoutePattern.PROJECT_JITTER, OperatingMode.WORKING, (2, 7), jitter_deg=0.001, points=2,
    ),
}

DEPOT_RULE = RouteRule(RoutePattern.DEPOT, OperatingMode.IDLE, (0, 0))

# Size of each resource type in the demo fleet
DEFAULT_TYPE_COUNT = 4


@dataclass(frozen=True)
class RouteAssignment:
    """Route, mode and base speed range assigned to one resource."""
    waypoints: tuple[Coordinate, ...]
    mode: OperatingMode
    speed_range_kmh: tuple[float, float]


def rule_for(resource_type: ResourceType | str) -> RouteRule:
    """Route rule for a type. Unknown types park at the depot."""
    return ROUTE_RULES.get(resource_type, DEPOT_RULE)


def _jitter_loop(center: Coordinate, rule: RouteRule, rng: random.Random) -> tuple[Coordinate, ...]:
    half = rule.jitter_deg / 2
    return tuple(
        Coordinate(
            center.latitude + rng.uniform(-half, half),
            center.longitude + rng.uniform(-half, half),
        )
        for _ in range(rule.points)
    )


def assign_route(
    resource_type: ResourceType | str,
    index: int,
    rng: random.Random | None = None,
    type_count: int = DEFAULT_TYPE_COUNT,
) -> RouteAssignment:
    """Build the closed-loop route for the index-th resource of a type.

    type_count is the number of resources of this type in the fleet; wheel
    loaders in the first half work the north quarry, the rest the south one.
    """
    rng = rng or random.Random()
    rule = rule_for(resource_type)

    if rule.pattern == RoutePattern.PATROL:
        waypoints = PATROL_ROUTES[index % len(PATROL_ROUTES)].waypoints
    elif rule.pattern == RoutePattern.HAUL_LOOP:
        quarry = QUARRY_NORTH if index % 2 == 0 else QUARRY_SOUTH
        project = PROJECT_AREAS[index % len(PROJECT_AREAS)]
        waypoints = (DEPOT, quarry, project.center, DEPOT)
    elif rule.pattern == RoutePattern.QUARRY_JITTER:
        north_count = math.ceil(max(type_count, 1) / 2)
        quarry = QUARRY_NORTH if index < north_count else QUARRY_SOUTH
        waypoints = _jitter_loop(quarry, rule, rng)
    elif rule.pattern == RoutePattern.PROJECT_JITTER:
        project = PROJECT_AREAS[index % len(PROJECT_AREAS)]
        waypoints = _jitter_loop(project.center, rule, rng)
    else:
        waypoints = (DEPOT,)

    return RouteAssignment(
        waypoints=waypoints or (DEPOT,),
        mode=rule.mode,
        speed_range_kmh=rule.speed_range_kmh,
    )
