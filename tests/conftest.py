"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any

import pytest

from tweet_digest.jobs.errors import JobClientError, PollError
from tweet_digest.jobs.models import Job, JobStatus, TagOptions, TaskKey
from tweet_digest.jobs.scheduling import ManualScheduler


def make_job(
    job_id: str,
    status: JobStatus | str = JobStatus.PENDING,
    *,
    job_type: str = "fetch-subscriptions",
    **extra: Any,
) -> Job:
    return Job(id=job_id, type=job_type, status=JobStatus(status), **extra)


def job_payload(job_id: str, status: str = "PENDING", **extra: Any) -> dict[str, Any]:
    return {
        "id": job_id,
        "type": extra.pop("type", "fetch-subscriptions"),
        "status": status,
        "attempts": 0,
        "maxAttempts": 3,
        "createdAt": datetime(2026, 3, 1, 9, 0, tzinfo=UTC).isoformat(),
        **extra,
    }


class FakeJobsApi:
    """Scripted in-memory JobsApi.

    ``get_job`` replays the scripted snapshots per job id and keeps returning
    the last one. ``hold`` blocks a job's status queries until released.
    """

    def __init__(self) -> None:
        self.enqueue_responses: list[dict[str, Any] | Exception] = []
        self.enqueue_calls: list[tuple[TaskKey, dict[str, Any]]] = []
        self.enqueue_gate: asyncio.Event | None = None
        self.snapshots: dict[str, list[Job | Exception]] = {}
        self.get_calls: list[str] = []
        self.listed: list[Job] = []
        self.list_calls = 0
        self.list_gate: asyncio.Event | None = None
        self.deleted: list[str] = []
        self.tag_options = TagOptions()
        self._gates: dict[str, asyncio.Event] = {}

    def script(self, job_id: str, *responses: Job | Exception) -> None:
        self.snapshots.setdefault(job_id, []).extend(responses)

    def hold(self, job_id: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[job_id] = gate
        return gate

    async def enqueue(self, key: TaskKey, params: dict[str, Any]) -> dict[str, Any]:
        self.enqueue_calls.append((key, params))
        if self.enqueue_gate is not None:
            await self.enqueue_gate.wait()
        response = self.enqueue_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def get_job(self, job_id: str) -> Job:
        self.get_calls.append(job_id)
        gate = self._gates.get(job_id)
        if gate is not None:
            await gate.wait()
        responses = self.snapshots.get(job_id)
        if not responses:
            raise PollError(message=f"Job {job_id} not found", status_code=404, job_id=job_id)
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    async def list_jobs(
        self,
        *,
        job_type: str | None = None,
        status: JobStatus | None = None,
        limit: int = 20,
    ) -> list[Job]:
        self.list_calls += 1
        if self.list_gate is not None:
            await self.list_gate.wait()
        jobs = [job for job in self.listed if job_type is None or job.type == job_type]
        if status is not None:
            jobs = [job for job in jobs if job.status is status]
        return jobs[:limit]

    async def delete_job(self, job_id: str) -> None:
        if job_id not in {job.id for job in self.listed}:
            raise JobClientError(message="Job not found", status_code=404)
        self.deleted.append(job_id)

    async def list_tag_options(self, *, limit: int = 100) -> TagOptions:
        return self.tag_options


@pytest.fixture()
def api() -> FakeJobsApi:
    return FakeJobsApi()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()
