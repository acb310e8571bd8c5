"""Domain models for background jobs and task slots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class JobStatus(str, Enum):
    """Server-owned job lifecycle states."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    @property
    def is_active(self) -> bool:
        return self in (JobStatus.PENDING, JobStatus.RUNNING)


class TaskKind(str, Enum):
    """Triggerable workflow tasks."""

    FETCH = "fetch"
    ANALYZE = "analyze"
    REPORT_PROFILE = "report-profile"
    CACHE_REFRESH = "cache-refresh"
    CACHE_REFRESH_TAG = "cache-refresh-tag"

    @property
    def requires_target(self) -> bool:
        return self in (TaskKind.REPORT_PROFILE, TaskKind.CACHE_REFRESH_TAG)


class SkipReason(str, Enum):
    """Known reasons for the backend declining to enqueue."""

    NONE_PENDING = "none-pending"
    BELOW_THRESHOLD = "below-threshold"
    LLM_INFLIGHT = "llm-inflight"


@dataclass(frozen=True, slots=True)
class TaskKey:
    """Logical slot identifying one triggerable workflow instance."""

    kind: TaskKind
    target: str | None = None

    def __post_init__(self) -> None:
        if self.kind.requires_target and not self.target:
            raise ValueError(f"Task kind {self.kind.value!r} requires a target.")
        if not self.kind.requires_target and self.target is not None:
            raise ValueError(f"Task kind {self.kind.value!r} does not take a target.")

    def __str__(self) -> str:
        if self.target is None:
            return self.kind.value
        return f"{self.kind.value}:{self.target}"


@dataclass(frozen=True, slots=True)
class Job:
    """Immutable point-in-time snapshot of a backend job."""

    id: str
    type: str
    status: JobStatus
    attempts: int = 0
    max_attempts: int = 0
    scheduled_at: datetime | None = None
    locked_at: datetime | None = None
    locked_by: str | None = None
    completed_at: datetime | None = None
    last_error: str | None = None
    payload: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class SkipInfo:
    """Backend decision not to enqueue anything."""

    reason: str | None
    pending: int
    threshold: int | None = None


@dataclass(frozen=True, slots=True)
class EnqueueOutcome:
    """Enqueue result; ``created=False`` means attached to an existing job."""

    job: Job
    created: bool
    message: str | None = None


@dataclass(frozen=True, slots=True)
class TaskSlot:
    """Current observable state for one task key.

    Holds at most one of a job snapshot or a skip decision, plus the last
    transient message (enqueue/poll failure or informational text).
    """

    job: Job | None = None
    skip: SkipInfo | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if self.job is not None and self.skip is not None:
            raise ValueError("TaskSlot holds either a job or a skip, not both.")

    @property
    def is_empty(self) -> bool:
        return self.job is None and self.skip is None


@dataclass(frozen=True, slots=True)
class TagOption:
    """Known tag with its usage count."""

    tag: str
    count: int = 0


@dataclass(slots=True)
class TagOptions:
    """Tag vocabularies offered by the backend."""

    tweet_tags: list[TagOption] = field(default_factory=list)
    author_tags: list[TagOption] = field(default_factory=list)
