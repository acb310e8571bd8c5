"""Background-job orchestration: trigger, poll, hydrate and tear down.

Each task key (fetch, analyze, one report profile, one cache-refresh tag)
owns at most one poll loop. Loops share nothing except the task board, and a
single liveness token guards every state mutation so responses that land
after teardown are dropped.
"""

from tweet_digest.jobs.errors import EnqueueError, JobClientError, JobFailed, PollError
from tweet_digest.jobs.models import (
    EnqueueOutcome,
    Job,
    JobStatus,
    SkipInfo,
    TaskKey,
    TaskKind,
    TaskSlot,
)
from tweet_digest.jobs.orchestrator import JobOrchestrator
from tweet_digest.jobs.poller import JobPoller, PollCallbacks, PollHandle
from tweet_digest.jobs.trigger import TaskTrigger, TriggerResult

__all__ = [
    "EnqueueError",
    "EnqueueOutcome",
    "Job",
    "JobClientError",
    "JobFailed",
    "JobOrchestrator",
    "JobPoller",
    "JobStatus",
    "PollCallbacks",
    "PollError",
    "PollHandle",
    "SkipInfo",
    "TaskKey",
    "TaskKind",
    "TaskSlot",
    "TaskTrigger",
    "TriggerResult",
]
