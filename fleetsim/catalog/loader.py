"""
YAML fleet file parser.

Reads the fleet catalog (resources and the jobs assigned to them) and
returns a FleetCatalog ready for the state store and the job board.

File layout:

    fleet:
      name: Sundsvall demo
      resources:
        - {id: plow-truck-01, type: plow_truck, name: Plow-Truck-01}
      jobs:
        - {id: job-plow-001, status: in_progress, resources: [plow-truck-01]}

Resources without an explicit `index` are numbered 0, 1, 2... in order of
appearance within their type.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from fleetsim.core.resource import JobAssignment, JobStatus, ResourceDescriptor, ResourceType

logger = logging.getLogger(__name__)


@dataclass
class FleetCatalog:
    """Parsed fleet file."""
    name: str
    resources: list[ResourceDescriptor]
    jobs: list[JobAssignment] = field(default_factory=list)
    job_titles: dict[str, str] = field(default_factory=dict)

    def get_resource(self, resource_id: str) -> ResourceDescriptor | None:
        for r in self.resources:
            if r.resource_id == resource_id:
                return r
        return None


def _parse_type(raw: str, resource_id: str) -> ResourceType | str:
    try:
        return ResourceType(raw)
    except ValueError:
        logger.warning(f"Unknown resource type '{raw}' for {resource_id}, it will stay at the depot")
        return raw


class FleetLoader:
    """Loads and validates fleet YAML files."""

    def load(self, path: str | Path) -> FleetCatalog:
        """Parse a fleet file. Raises FileNotFoundError or ValueError."""
        path = Path(path)
        with open(path) as f:
            raw = yaml.safe_load(f)
        catalog = self.parse(raw)
        logger.info(
            f"Loaded fleet '{catalog.name}' from {path}: "
            f"{len(catalog.resources)} resources, {len(catalog.job_titles)} jobs"
        )
        return catalog

    def parse(self, raw: Any) -> FleetCatalog:
        """Build a FleetCatalog from already-parsed YAML data."""
        if not isinstance(raw, dict) or "fleet" not in raw:
            raise ValueError("Missing top-level 'fleet' key")
        fleet = raw["fleet"] or {}
        if not isinstance(fleet, dict):
            raise ValueError(f"'fleet' must be a mapping, got {type(fleet).__name__}")

        resources = self._parse_resources(fleet.get("resources") or [])
        known_ids = {r.resource_id for r in resources}
        jobs, titles = self._parse_jobs(fleet.get("jobs") or [], known_ids)

        return FleetCatalog(
            name=fleet.get("name", "fleet"),
            resources=resources,
            jobs=jobs,
            job_titles=titles,
        )

    def _parse_resources(self, entries: list[dict]) -> list[ResourceDescriptor]:
        resources: list[ResourceDescriptor] = []
        seen: set[str] = set()
        next_index: dict[Any, int] = defaultdict(int)

        for entry in entries:
            if not isinstance(entry, dict):
                raise ValueError(f"Resource entry must be a mapping: {entry!r}")
            rid = entry.get("id")
            if not rid:
                raise ValueError(f"Resource entry without id: {entry}")
            if rid in seen:
                raise ValueError(f"Duplicate resource id: {rid}")
            if "type" not in entry:
                raise ValueError(f"Resource {rid} has no type")
            seen.add(rid)

            rtype = _parse_type(str(entry["type"]), rid)
            if "index" in entry:
                index = int(entry["index"])
                if index < 0:
                    raise ValueError(f"Resource {rid} has negative index {index}")
            else:
                index = next_index[rtype]
            next_index[rtype] = max(next_index[rtype], index + 1)

            resources.append(ResourceDescriptor(
                resource_id=rid,
                resource_type=rtype,
                index=index,
                name=entry.get("name", rid),
                registration_number=entry.get("registration", ""),
            ))
        return resources

    def _parse_jobs(
        self, entries: list[dict], known_ids: set[str],
    ) -> tuple[list[JobAssignment], dict[str, str]]:
        assignments: list[JobAssignment] = []
        titles: dict[str, str] = {}

        for entry in entries:
            if not isinstance(entry, dict):
                raise ValueError(f"Job entry must be a mapping: {entry!r}")
            jid = entry.get("id")
            if not jid:
                raise ValueError(f"Job entry without id: {entry}")
            if jid in titles:
                raise ValueError(f"Duplicate job id: {jid}")
            try:
                status = JobStatus(entry.get("status", "scheduled"))
            except ValueError:
                raise ValueError(f"Job {jid} has unknown status '{entry.get('status')}'")

            titles[jid] = entry.get("title", jid)
            for rid in entry.get("resources") or []:
                if rid not in known_ids:
                    raise ValueError(f"Job {jid} references unknown resource {rid}")
                assignments.append(JobAssignment(job_id=jid, resource_id=rid, status=status))
        return assignments, titles
