"""Backend job API contract and response parsing."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from tweet_digest.jobs.models import (
    EnqueueOutcome,
    Job,
    JobStatus,
    SkipInfo,
    TagOption,
    TagOptions,
    TaskKey,
)


class JobsApi(Protocol):
    """Async backend endpoints consumed by the orchestration layer."""

    async def enqueue(self, key: TaskKey, params: dict[str, Any]) -> dict[str, Any]:
        """Start or attach a job for ``key`` and return the raw response body."""
        raise NotImplementedError

    async def get_job(self, job_id: str) -> Job:
        """Return the current snapshot of one job."""
        raise NotImplementedError

    async def list_jobs(
        self,
        *,
        job_type: str | None = None,
        status: JobStatus | None = None,
        limit: int = 20,
    ) -> list[Job]:
        """Return recent jobs, newest first."""
        raise NotImplementedError

    async def delete_job(self, job_id: str) -> None:
        """Remove one job."""
        raise NotImplementedError

    async def list_tag_options(self, *, limit: int = 100) -> TagOptions:
        """Return known tweet and author tags."""
        raise NotImplementedError


def parse_job(raw: Any) -> Job:
    """Build a job snapshot from the backend JSON representation."""

    if not isinstance(raw, dict):
        raise TypeError("job must be an object")
    job_id = raw.get("id")
    job_type = raw.get("type")
    if not isinstance(job_id, str) or not job_id:
        raise ValueError("job.id must be a non-empty string")
    if not isinstance(job_type, str):
        raise TypeError("job.type must be a string")
    try:
        status = JobStatus(str(raw.get("status", "")).upper())
    except ValueError as error:
        raise ValueError(f"Unknown job status: {raw.get('status')!r}") from error
    return Job(
        id=job_id,
        type=job_type,
        status=status,
        attempts=int(raw.get("attempts") or 0),
        max_attempts=int(raw.get("maxAttempts") or 0),
        scheduled_at=_parse_timestamp(raw.get("scheduledAt")),
        locked_at=_parse_timestamp(raw.get("lockedAt")),
        locked_by=raw.get("lockedBy"),
        completed_at=_parse_timestamp(raw.get("completedAt")),
        last_error=raw.get("lastError"),
        payload=raw.get("payload"),
        created_at=_parse_timestamp(raw.get("createdAt")),
        updated_at=_parse_timestamp(raw.get("updatedAt")),
    )


def parse_jobs(raw: Any) -> list[Job]:
    if not isinstance(raw, list):
        raise TypeError("job list must be an array")
    return [parse_job(item) for item in raw]


def parse_enqueue_response(raw: Any) -> EnqueueOutcome | SkipInfo:
    """Classify an enqueue response as a new/attached job or a skip."""

    if not isinstance(raw, dict):
        raise TypeError("enqueue response must be an object")
    if raw.get("skipped"):
        threshold = raw.get("threshold")
        return SkipInfo(
            reason=raw.get("reason"),
            pending=int(raw.get("pending") or 0),
            threshold=int(threshold) if threshold is not None else None,
        )
    if raw.get("job") is None:
        raise ValueError("enqueue response carries neither a job nor a skip")
    message = raw.get("message")
    return EnqueueOutcome(
        job=parse_job(raw["job"]),
        created=bool(raw.get("created", False)),
        message=message if isinstance(message, str) and message else None,
    )


def parse_tag_options(raw: Any) -> TagOptions:
    if not isinstance(raw, dict):
        raise TypeError("tag options must be an object")
    return TagOptions(
        tweet_tags=_parse_tag_list(raw.get("tweetTags", [])),
        author_tags=_parse_tag_list(raw.get("authorTags", [])),
    )


def _parse_tag_list(raw: Any) -> list[TagOption]:
    if not isinstance(raw, list):
        raise TypeError("tag list must be an array")
    options: list[TagOption] = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("tag"), str):
            raise TypeError("tag option must be an object with a string tag")
        options.append(TagOption(tag=item["tag"], count=int(item.get("count") or 0)))
    return options


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected ISO timestamp string, got {value!r}")
    return datetime.fromisoformat(value)
