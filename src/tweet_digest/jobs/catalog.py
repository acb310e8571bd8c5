"""Mapping between task kinds, backend endpoints and job types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from tweet_digest.jobs.models import Job, TaskKey, TaskKind

JOB_TYPE_FETCH = "fetch-subscriptions"
JOB_TYPE_CLASSIFY = "classify-tweets"
JOB_TYPE_CLASSIFY_DISPATCH = "classify-tweets-dispatch"
JOB_TYPE_CLASSIFY_LLM = "classify-tweets-llm"
JOB_TYPE_REPORT_PROFILE = "report-profile"
JOB_TYPE_CACHE_REFRESH = "embedding-cache-refresh"
JOB_TYPE_CACHE_REFRESH_TAG = "embedding-cache-refresh-tag"

JOB_TYPES: tuple[str, ...] = (
    JOB_TYPE_FETCH,
    JOB_TYPE_CLASSIFY,
    JOB_TYPE_CLASSIFY_DISPATCH,
    JOB_TYPE_CLASSIFY_LLM,
    JOB_TYPE_REPORT_PROFILE,
    JOB_TYPE_CACHE_REFRESH,
    JOB_TYPE_CACHE_REFRESH_TAG,
)

TASK_LABELS: dict[TaskKind, str] = {
    TaskKind.FETCH: "Fetch task",
    TaskKind.ANALYZE: "AI classification task",
    TaskKind.REPORT_PROFILE: "Report profile run",
    TaskKind.CACHE_REFRESH: "Embedding cache refresh",
    TaskKind.CACHE_REFRESH_TAG: "Embedding cache refresh (tag)",
}


@dataclass(frozen=True, slots=True)
class EnqueueRequest:
    """HTTP request that starts or attaches a job for one task key."""

    path: str
    body: dict[str, Any] | None


def build_enqueue_request(key: TaskKey, params: dict[str, Any] | None = None) -> EnqueueRequest:
    """Resolve endpoint and JSON body for triggering ``key``."""

    extra = {name: value for name, value in (params or {}).items() if value is not None}
    if key.kind is TaskKind.FETCH:
        return EnqueueRequest(path="/tasks/fetch", body={"dedupe": True, **extra})
    if key.kind is TaskKind.ANALYZE:
        return EnqueueRequest(path="/tasks/analyze", body=extra or None)
    if key.kind is TaskKind.REPORT_PROFILE:
        return EnqueueRequest(
            path=f"/report-profiles/{_segment(key)}/run",
            body=_pick(extra, "notify"),
        )
    if key.kind is TaskKind.CACHE_REFRESH:
        return EnqueueRequest(
            path="/routing/embedding-cache/refresh",
            body=_pick(extra, "windowDays", "samplePerTag"),
        )
    return EnqueueRequest(path=f"/routing/embedding-cache/refresh/{_segment(key)}", body=None)


def task_key_for_job(job: Job) -> TaskKey | None:
    """Return the task key a job belongs to, or None for unrecognized jobs."""

    if job.type == JOB_TYPE_FETCH:
        return TaskKey(TaskKind.FETCH)
    if job.type == JOB_TYPE_CLASSIFY:
        return TaskKey(TaskKind.ANALYZE)
    if job.type == JOB_TYPE_CACHE_REFRESH:
        return TaskKey(TaskKind.CACHE_REFRESH)
    if job.type == JOB_TYPE_REPORT_PROFILE:
        profile_id = _payload_str(job, "profileId")
        return TaskKey(TaskKind.REPORT_PROFILE, profile_id) if profile_id else None
    if job.type == JOB_TYPE_CACHE_REFRESH_TAG:
        tag = _payload_str(job, "tag")
        return TaskKey(TaskKind.CACHE_REFRESH_TAG, tag) if tag else None
    return None


def _segment(key: TaskKey) -> str:
    return quote(key.target or "", safe="")


def _pick(values: dict[str, Any], *names: str) -> dict[str, Any]:
    return {name: values[name] for name in names if name in values}


def _payload_str(job: Job, name: str) -> str | None:
    if not isinstance(job.payload, dict):
        return None
    value = job.payload.get(name)
    return value if isinstance(value, str) and value else None
