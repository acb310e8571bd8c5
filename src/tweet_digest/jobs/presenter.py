"""Human-readable status text for task slots and enqueue results."""

from __future__ import annotations

from datetime import datetime

from tweet_digest.jobs.catalog import TASK_LABELS
from tweet_digest.jobs.models import (
    EnqueueOutcome,
    Job,
    JobStatus,
    SkipInfo,
    SkipReason,
    TaskKind,
    TaskSlot,
)

STATUS_LABELS: dict[JobStatus, str] = {
    JobStatus.PENDING: "queued",
    JobStatus.RUNNING: "running",
    JobStatus.COMPLETED: "completed",
    JobStatus.FAILED: "failed",
}


def short_job_id(job_id: str) -> str:
    return job_id[:8]


def describe_job(job: Job) -> str:
    label = STATUS_LABELS.get(job.status, job.status.value)
    timestamp = _job_timestamp(job)
    text = f"Job {short_job_id(job.id)} {label}"
    if timestamp is not None:
        text += f" ({timestamp.strftime('%H:%M:%S')})"
    if job.status is JobStatus.FAILED and job.last_error:
        text += f": {job.last_error}"
    elif job.status is JobStatus.COMPLETED:
        text += " ✅"
    return text


def describe_skip(skip: SkipInfo) -> str:
    if skip.reason == SkipReason.BELOW_THRESHOLD.value:
        threshold = f"/{skip.threshold}" if skip.threshold else ""
        return f"Pending items {skip.pending}{threshold}, below threshold"
    if skip.reason == SkipReason.LLM_INFLIGHT.value:
        return f"LLM classification already in flight ({skip.pending} pending)"
    return "No pending items"


def describe_slot(slot: TaskSlot) -> str | None:
    """Status line for a slot, or None when nothing was triggered yet."""

    if slot.skip is not None:
        return describe_skip(slot.skip)
    if slot.job is not None:
        return describe_job(slot.job)
    return None


def describe_enqueue(kind: TaskKind, outcome: EnqueueOutcome) -> str:
    if outcome.message:
        return outcome.message
    label = TASK_LABELS[kind]
    job_id = short_job_id(outcome.job.id)
    if outcome.created:
        return f"{label} queued ({job_id})"
    return f"{label} already running ({job_id})"


def _job_timestamp(job: Job) -> datetime | None:
    if job.status is JobStatus.RUNNING:
        return job.locked_at
    if job.status is JobStatus.COMPLETED:
        return job.completed_at
    return None
