"""Tests for dispatch status resolution and the job board."""

from datetime import datetime, timezone

import pytest

from fleetsim.core.resource import (
    DispatchStatus, JobAssignment, JobStatus, PositionSample, ResourceDescriptor, ResourceType,
)
from fleetsim.dispatch.status import JobBoard, resolve_status, summarize_fleet

T0 = datetime(2026, 1, 15, 8, 0, 0, tzinfo=timezone.utc)


def _job(job_id, resource_id, status):
    return JobAssignment(job_id=job_id, resource_id=resource_id, status=status)


def _sample(speed):
    return PositionSample(62.4, 17.28, T0, speed, 0.0, 5.0)


class TestResolveStatus:
    def test_no_jobs_is_available(self):
        assert resolve_status("r1", []) == DispatchStatus.AVAILABLE

    def test_in_progress_is_on_job(self):
        jobs = [_job("j1", "r1", JobStatus.IN_PROGRESS)]
        assert resolve_status("r1", jobs) == DispatchStatus.ON_JOB

    def test_assigned_is_en_route(self):
        jobs = [_job("j1", "r1", JobStatus.ASSIGNED)]
        assert resolve_status("r1", jobs) == DispatchStatus.EN_ROUTE

    def test_in_progress_beats_assigned(self):
        jobs = [
            _job("j1", "r1", JobStatus.ASSIGNED),
            _job("j2", "r1", JobStatus.IN_PROGRESS),
        ]
        assert resolve_status("r1", jobs) == DispatchStatus.ON_JOB
        assert resolve_status("r1", list(reversed(jobs))) == DispatchStatus.ON_JOB

    @pytest.mark.parametrize("status", [
        JobStatus.DRAFT, JobStatus.SCHEDULED, JobStatus.PAUSED,
        JobStatus.COMPLETED, JobStatus.CANCELLED, JobStatus.FAILED,
    ])
    def test_inactive_statuses_are_available(self, status):
        assert resolve_status("r1", [_job("j1", "r1", status)]) == DispatchStatus.AVAILABLE

    def test_other_resources_ignored(self):
        jobs = [_job("j1", "r2", JobStatus.IN_PROGRESS)]
        assert resolve_status("r1", jobs) == DispatchStatus.AVAILABLE


class TestJobBoard:
    @pytest.fixture
    def board(self):
        return JobBoard([
            _job("j1", "r1", JobStatus.SCHEDULED),
            _job("j1", "r2", JobStatus.SCHEDULED),
            _job("j2", "r3", JobStatus.IN_PROGRESS),
        ])

    def test_status_of(self, board):
        assert board.status_of("r1") == DispatchStatus.AVAILABLE
        assert board.status_of("r3") == DispatchStatus.ON_JOB
        assert board.status_of("unknown") == DispatchStatus.AVAILABLE

    def test_set_status_updates_every_resource(self, board):
        assert board.set_status("j1", JobStatus.ASSIGNED) == 2
        assert board.status_of("r1") == DispatchStatus.EN_ROUTE
        assert board.status_of("r2") == DispatchStatus.EN_ROUTE

    def test_set_status_unknown_job(self, board):
        with pytest.raises(KeyError):
            board.set_status("nope", JobStatus.COMPLETED)
        assert len(board.all()) == 3

    def test_status_recomputed_after_completion(self, board):
        board.set_status("j2", JobStatus.COMPLETED)
        assert board.status_of("r3") == DispatchStatus.AVAILABLE

    def test_jobs_for(self, board):
        assert [j.job_id for j in board.jobs_for("r2")] == ["j1"]
        assert board.jobs_for("nobody") == []

    def test_active_job_count_counts_distinct_jobs(self, board):
        assert board.active_job_count() == 1
        board.set_status("j1", JobStatus.ASSIGNED)
        assert board.active_job_count() == 2

    def test_replace_all(self, board):
        board.replace_all([_job("j9", "r1", JobStatus.IN_PROGRESS)])
        assert board.status_of("r1") == DispatchStatus.ON_JOB
        assert board.status_of("r3") == DispatchStatus.AVAILABLE

    def test_all_is_a_copy(self, board):
        board.all().clear()
        assert len(board.all()) == 3


class TestSummarizeFleet:
    def test_counts(self):
        resources = [
            ResourceDescriptor("r1", ResourceType.HAUL_TRUCK, 0),
            ResourceDescriptor("r2", ResourceType.HAUL_TRUCK, 1),
            ResourceDescriptor("r3", ResourceType.CRANE, 0),
            ResourceDescriptor("r4", "hovercraft", 0),
        ]
        samples = {"r1": _sample(45.0), "r2": _sample(0.0), "r3": _sample(0.0)}
        jobs = [
            _job("j1", "r2", JobStatus.ASSIGNED),
            _job("j2", "r3", JobStatus.SCHEDULED),
            _job("j3", "r1", JobStatus.IN_PROGRESS),
            _job("j3", "r2", JobStatus.IN_PROGRESS),
        ]
        summary = summarize_fleet(resources, samples, jobs)
        assert summary["resourcesTotal"] == 4
        assert summary["resourcesActive"] == 2
        assert summary["resourcesIdle"] == 2
        assert summary["activeJobs"] == 2
        assert summary["byType"] == {"haul_truck": 2, "crane": 1, "hovercraft": 1}
        assert summary["byStatus"] == {"on_job": 2, "available": 2}

    def test_empty(self):
        summary = summarize_fleet([], {}, [])
        assert summary["resourcesTotal"] == 0
        assert summary["activeJobs"] == 0
        assert summary["byType"] == {}
