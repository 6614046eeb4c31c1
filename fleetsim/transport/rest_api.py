"""
HTTP API for live fleet positions and dispatch status.

Every response uses the envelope {"success": bool, "data": ...} or
{"success": false, "error": {"code", "message"}}. Resource status is
resolved from the job board on each request.
"""

import logging
import time
from datetime import datetime, timezone

from aiohttp import web

from fleetsim.catalog.loader import FleetCatalog
from fleetsim.core.position_feed import PositionFeed
from fleetsim.core.resource import JobStatus, ResourceDescriptor, position_batch
from fleetsim.dispatch.status import JobBoard, summarize_fleet

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _ok(data, status: int = 200) -> web.Response:
    return web.json_response({"success": True, "data": data}, status=status)


def _error(code: str, message: str, status: int) -> web.Response:
    return web.json_response(
        {"success": False, "error": {"code": code, "message": message}},
        status=status,
    )


class RestApiServer:
    """aiohttp server exposing the fleet read API."""

    def __init__(
        self,
        feed: PositionFeed,
        catalog: FleetCatalog,
        job_board: JobBoard,
        host: str = "0.0.0.0",
        port: int = 3001,
    ) -> None:
        self._feed = feed
        self._catalog = catalog
        self._jobs = job_board
        self._host = host
        self._port = port
        self._runner: web.AppRunner | None = None
        self._start_time = time.time()

        self.app = web.Application()
        self.app.router.add_get("/api/health", self._handle_health)
        self.app.router.add_get("/api/resources", self._handle_resources)
        self.app.router.add_get("/api/resources/positions", self._handle_positions)
        self.app.router.add_get("/api/resources/{resource_id}", self._handle_resource)
        self.app.router.add_get("/api/resources/{resource_id}/position", self._handle_resource_position)
        self.app.router.add_get("/api/dashboard", self._handle_dashboard)
        self.app.router.add_get("/api/stats/resources", self._handle_resource_stats)
        self.app.router.add_patch("/api/jobs/{job_id}/status", self._handle_job_status)

    async def start(self) -> None:
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        logger.info(f"REST API on http://{self._host}:{self._port}/api")

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()

    def _resource_record(self, resource: ResourceDescriptor, samples: dict) -> dict:
        record = resource.to_dict()
        record["status"] = self._jobs.status_of(resource.resource_id).value
        sample = samples.get(resource.resource_id)
        record["currentPosition"] = sample.to_dict() if sample else None
        return record

    async def _handle_health(self, request: web.Request) -> web.Response:
        return _ok({
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": VERSION,
            "fleet": self._catalog.name,
            "uptime_seconds": int(time.time() - self._start_time),
            "feed": self._feed.describe(),
        })

    async def _handle_resources(self, request: web.Request) -> web.Response:
        samples = self._feed.snapshot_all()
        resources = self._catalog.resources

        rtype = request.query.get("type")
        if rtype:
            resources = [r for r in resources if r.type_name == rtype]

        records = [self._resource_record(r, samples) for r in resources]

        # Status filter applies after status is resolved from jobs
        status = request.query.get("status")
        if status:
            records = [r for r in records if r["status"] == status]

        return web.json_response({
            "success": True,
            "data": records,
            "meta": {"total": len(records)},
        })

    async def _handle_positions(self, request: web.Request) -> web.Response:
        return _ok(position_batch(self._feed.snapshot_all()))

    async def _handle_resource(self, request: web.Request) -> web.Response:
        resource_id = request.match_info["resource_id"]
        resource = self._catalog.get_resource(resource_id)
        if resource is None:
            return _error("NOT_FOUND", f"Resource {resource_id} not found", 404)
        return _ok(self._resource_record(resource, self._feed.snapshot_all()))

    async def _handle_resource_position(self, request: web.Request) -> web.Response:
        resource_id = request.match_info["resource_id"]
        sample = self._feed.position(resource_id)
        if sample is None:
            return _error("NOT_FOUND", "Resource position not found", 404)
        return _ok(sample.to_dict())

    async def _handle_dashboard(self, request: web.Request) -> web.Response:
        samples = self._feed.snapshot_all()
        summary = summarize_fleet(self._catalog.resources, samples, self._jobs.all())
        summary["resourcePositions"] = [
            {
                "resourceId": r.resource_id,
                "resource": r.to_dict(),
                "position": samples[r.resource_id].to_dict(),
            }
            for r in self._catalog.resources
            if r.resource_id in samples
        ]
        return _ok(summary)

    async def _handle_resource_stats(self, request: web.Request) -> web.Response:
        summary = summarize_fleet(
            self._catalog.resources, self._feed.snapshot_all(), self._jobs.all(),
        )
        return _ok({
            "total": summary["resourcesTotal"],
            "byType": summary["byType"],
            "byStatus": summary["byStatus"],
        })

    async def _handle_job_status(self, request: web.Request) -> web.Response:
        job_id = request.match_info["job_id"]
        try:
            body = await request.json()
            status = JobStatus(body["status"])
        except (ValueError, KeyError, TypeError):
            return _error("BAD_REQUEST", "Body must be {\"status\": <job status>}", 400)

        try:
            self._jobs.set_status(job_id, status)
        except KeyError:
            return _error("NOT_FOUND", f"Job {job_id} not found", 404)
        return _ok({"jobId": job_id, "status": status.value})
