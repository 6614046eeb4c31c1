"""
Geographic math for the fleet simulator.

Distances use the haversine formula on a 6371 km sphere. Interpolation is
linear in latitude/longitude, which is accurate enough at city scale where
all routes in this simulator live.
"""

import math
from dataclasses import dataclass
from typing import Any

from geopy.distance import geodesic

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    """WGS84 point in decimal degrees."""
    latitude: float
    longitude: float

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Coordinate":
        return cls(latitude=float(d["latitude"]), longitude=float(d["longitude"]))


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two points in kilometers."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    h = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2)
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing_deg(origin: Coordinate, dest: Coordinate) -> float:
    """Initial compass bearing from origin to dest, in [0, 360).

    Identical points give 0.0.
    """
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(dest.latitude)
    dlon = math.radians(dest.longitude - origin.longitude)

    x = math.sin(dlon) * math.cos(lat2)
    y = (math.cos(lat1) * math.sin(lat2) -
         math.sin(lat1) * math.cos(lat2) * math.cos(dlon))

    return math.degrees(math.atan2(x, y)) % 360.0


def interpolate(origin: Coordinate, dest: Coordinate, fraction: float) -> Coordinate:
    """Linear interpolation between two points. fraction: 0.0 = origin, 1.0 = dest."""
    if fraction <= 0.0:
        return origin
    if fraction >= 1.0:
        return dest
    return Coordinate(
        latitude=origin.latitude + (dest.latitude - origin.latitude) * fraction,
        longitude=origin.longitude + (dest.longitude - origin.longitude) * fraction,
    )


def within_radius(point: Coordinate, center: Coordinate, radius_km: float) -> bool:
    """True if point lies inside or on a circle of radius_km around center."""
    return distance_km(point, center) <= radius_km


def offset_m(point: Coordinate, meters: float, bearing: float) -> Coordinate:
    """Point reached by travelling `meters` from `point` along `bearing`."""
    dest = geodesic(meters=meters).destination((point.latitude, point.longitude), bearing)
    return Coordinate(latitude=dest.latitude, longitude=dest.longitude)
