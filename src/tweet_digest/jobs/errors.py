"""Client-side job error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass

from tweet_digest.jobs.models import Job


@dataclass(slots=True)
class JobClientError(Exception):
    """Base error for job client operations."""

    message: str
    code: str = "request_failed"
    status_code: int | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class EnqueueError(JobClientError):
    """Trigger request failed (network or validation)."""

    code: str = "enqueue_failed"


@dataclass(slots=True)
class PollError(JobClientError):
    """A status query failed mid-loop, or job listing failed."""

    code: str = "poll_failed"
    job_id: str | None = None


@dataclass(slots=True)
class JobFailed(JobClientError):
    """Terminal server-reported failure."""

    code: str = "job_failed"
    job: Job | None = None

    @classmethod
    def from_job(cls, job: Job) -> JobFailed:
        return cls(message=job.last_error or "Job failed", job=job)
