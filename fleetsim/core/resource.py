"""
Data model for the fleet simulator.

Resources (vehicles and machines) come from an external fleet catalog and
are immutable here. The simulator owns one KinematicState per resource and
emits PositionSample records. Jobs are read-only input to the dispatch
status resolver.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from fleetsim.core.geo import Coordinate


class ResourceType(Enum):
    """Fleet resource types."""
    PLOW_TRUCK = "plow_truck"
    HAUL_TRUCK = "haul_truck"
    WHEEL_LOADER = "wheel_loader"
    EXCAVATOR = "excavator"
    DUMP_TRUCK = "dump_truck"
    TANKER = "tanker"
    CRANE = "crane"


class OperatingMode(Enum):
    """Simulated operating mode. Fixed for the lifetime of a resource."""
    IDLE = "idle"
    MOVING = "moving"
    WORKING = "working"
    RETURNING = "returning"


class JobStatus(Enum):
    """Lifecycle status of a job."""
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class DispatchStatus(Enum):
    """Operational status derived from job assignments."""
    AVAILABLE = "available"
    EN_ROUTE = "en_route"
    ON_JOB = "on_job"


@dataclass(frozen=True)
class ResourceDescriptor:
    """A fleet resource as seen by the simulator.

    resource_type is a ResourceType, or the raw type string when the
    catalog names a type the simulator does not know. index is the 0-based
    position of the resource among resources of the same type.
    """
    resource_id: str
    resource_type: ResourceType | str
    index: int = 0
    name: str = ""
    registration_number: str = ""

    @property
    def type_name(self) -> str:
        if isinstance(self.resource_type, ResourceType):
            return self.resource_type.value
        return self.resource_type

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.resource_id,
            "name": self.name or self.resource_id,
            "type": self.type_name,
            "registrationNumber": self.registration_number,
        }


@dataclass(frozen=True)
class JobAssignment:
    """One (job, resource) pair with the job's current status."""
    job_id: str
    resource_id: str
    status: JobStatus


@dataclass(frozen=True)
class KinematicState:
    """Per-resource movement state.

    Frozen: the integrator builds a replacement and the store swaps it in
    with a single assignment, so readers never see a half-updated record.
    target_position is always waypoints[waypoint_index].
    """
    resource_id: str
    current_position: Coordinate
    target_position: Coordinate
    speed_kmh: float
    heading_deg: float
    waypoints: tuple[Coordinate, ...]
    waypoint_index: int
    mode: OperatingMode
    last_update: datetime


@dataclass(frozen=True)
class PositionSample:
    """Position report emitted once per tick per resource."""
    latitude: float
    longitude: float
    timestamp: datetime
    speed: float        # km/h
    heading: float      # degrees, 0-360
    accuracy: float     # meters

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON wire shape."""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": self.timestamp.isoformat(),
            "speed": self.speed,
            "heading": self.heading,
            "accuracy": self.accuracy,
        }


def position_batch(samples: dict[str, PositionSample]) -> list[dict[str, Any]]:
    """Ordered list of {resourceId, position} entries for broadcast."""
    return [
        {"resourceId": resource_id, "position": sample.to_dict()}
        for resource_id, sample in samples.items()
    ]
