"""
Dispatch status derived from job assignments.

A resource's status is never stored. It is recomputed from the current job
board on every read, since job statuses change independently of the
position simulation.
"""

import logging
import threading
from collections import Counter
from typing import Any, Iterable

from fleetsim.core.resource import (
    DispatchStatus, JobAssignment, JobStatus, PositionSample, ResourceDescriptor,
)

logger = logging.getLogger(__name__)

ACTIVE_JOB_STATUSES = (JobStatus.IN_PROGRESS, JobStatus.ASSIGNED)


def resolve_status(resource_id: str, jobs: Iterable[JobAssignment]) -> DispatchStatus:
    """Dispatch status of a resource.

    Precedence: any in_progress job -> ON_JOB, else any assigned job ->
    EN_ROUTE, else AVAILABLE.
    """
    statuses = {j.status for j in jobs if j.resource_id == resource_id}
    if JobStatus.IN_PROGRESS in statuses:
        return DispatchStatus.ON_JOB
    if JobStatus.ASSIGNED in statuses:
        return DispatchStatus.EN_ROUTE
    return DispatchStatus.AVAILABLE


class JobBoard:
    """Thread-safe holder for the job assignment dataset."""

    def __init__(self, assignments: Iterable[JobAssignment] = ()) -> None:
        self._lock = threading.Lock()
        self._assignments: list[JobAssignment] = list(assignments)

    def all(self) -> list[JobAssignment]:
        with self._lock:
            return list(self._assignments)

    def jobs_for(self, resource_id: str) -> list[JobAssignment]:
        with self._lock:
            return [a for a in self._assignments if a.resource_id == resource_id]

    def status_of(self, resource_id: str) -> DispatchStatus:
        return resolve_status(resource_id, self.jobs_for(resource_id))

    def set_status(self, job_id: str, status: JobStatus) -> int:
        """Change the status of a job on every resource it covers.

        Returns the number of assignment rows updated. Raises KeyError if the
        job is unknown.
        """
        with self._lock:
            updated = [
                JobAssignment(a.job_id, a.resource_id, status) if a.job_id == job_id else a
                for a in self._assignments
            ]
            count = sum(1 for a in self._assignments if a.job_id == job_id)
            if count == 0:
                raise KeyError(f"Job {job_id} not found")
            self._assignments = updated
        logger.info(f"Job {job_id} -> {status.value} ({count} resources)")
        return count

    def replace_all(self, assignments: Iterable[JobAssignment]) -> None:
        """Swap in a refreshed job dataset."""
        with self._lock:
            self._assignments = list(assignments)

    def active_job_count(self) -> int:
        """Number of distinct jobs that are in progress or assigned."""
        with self._lock:
            return len({a.job_id for a in self._assignments if a.status in ACTIVE_JOB_STATUSES})


def summarize_fleet(
    resources: list[ResourceDescriptor],
    samples: dict[str, PositionSample],
    jobs: list[JobAssignment],
) -> dict[str, Any]:
    """Dashboard counters for the fleet.

    A resource counts as active when it is moving or when its dispatch
    status is on_job or en_route.
    """
    by_type: Counter = Counter()
    by_status: Counter = Counter()
    active = 0
    for resource in resources:
        status = resolve_status(resource.resource_id, jobs)
        sample = samples.get(resource.resource_id)
        by_type[resource.type_name] += 1
        by_status[status.value] += 1
        if (sample is not None and sample.speed > 0) or status != DispatchStatus.AVAILABLE:
            active += 1

    return {
        "resourcesTotal": len(resources),
        "resourcesActive": active,
        "resourcesIdle": len(resources) - active,
        "activeJobs": len({j.job_id for j in jobs if j.status in ACTIVE_JOB_STATUSES}),
        "byType": dict(by_type),
        "byStatus": dict(by_status),
    }
