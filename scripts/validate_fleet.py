"""
Validate a fleet YAML file and show the route each resource will drive.

Usage: python scripts/validate_fleet.py config/fleet.yaml
"""

import random
import sys
from collections import Counter

import click
import yaml

from fleetsim.catalog.loader import FleetLoader
from fleetsim.catalog.routes import assign_route
from fleetsim.core.geo import distance_km
from fleetsim.core.resource import ResourceType


def route_length_km(waypoints) -> float:
    """Length of a closed loop, including the leg back to the start."""
    if len(waypoints) < 2:
        return 0.0
    return sum(
        distance_km(waypoints[i], waypoints[(i + 1) % len(waypoints)])
        for i in range(len(waypoints))
    )


def validate(fleet_path: str) -> bool:
    """Validate a fleet file and print results. Returns True if valid."""
    print(f"Validating: {fleet_path}\n")

    try:
        catalog = FleetLoader().load(fleet_path)
    except FileNotFoundError:
        print(f"  ✗ File not found: {fleet_path}")
        return False
    except yaml.YAMLError as e:
        print(f"  ✗ YAML syntax error: {e}")
        return False
    except ValueError as e:
        print(f"  ✗ {e}")
        return False

    print(f"  ✓ {len(catalog.resources)} resources, {len(catalog.job_titles)} jobs")

    unknown = [r.resource_id for r in catalog.resources if not isinstance(r.resource_type, ResourceType)]
    if unknown:
        print(f"  ! Unknown types (parked at depot): {', '.join(unknown)}")

    # Fixed seed: jitter offsets only affect the printed lengths slightly
    rng = random.Random(0)
    type_counts = Counter(r.resource_type for r in catalog.resources)
    print()
    for r in catalog.resources:
        route = assign_route(r.resource_type, r.index, rng, type_counts[r.resource_type])
        lo, hi = route.speed_range_kmh
        print(
            f"  {r.resource_id:<16} {r.type_name:<13} {route.mode.value:<8} "
            f"{len(route.waypoints)} wp  {route_length_km(route.waypoints):6.2f} km  "
            f"{lo:g}-{hi:g} km/h"
        )

    print("\nPASS")
    return True


@click.command()
@click.argument("fleet_path", type=click.Path())
def main(fleet_path: str) -> None:
    sys.exit(0 if validate(fleet_path) else 1)


if __name__ == "__main__":
    main()
