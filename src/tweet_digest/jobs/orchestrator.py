"""Facade that owns task slots, poll loops and their shared lifecycle."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from tweet_digest.jobs.api import JobsApi
from tweet_digest.jobs.board import TaskBoard
from tweet_digest.jobs.lifecycle import LifecycleGuard
from tweet_digest.jobs.models import TaskKey, TaskKind, TaskSlot
from tweet_digest.jobs.poller import (
    DEFAULT_JOB_LIST_LIMIT,
    DEFAULT_POLL_INTERVAL_SECONDS,
    JobPoller,
    PollCallbacks,
)
from tweet_digest.jobs.presenter import describe_enqueue, describe_slot
from tweet_digest.jobs.scheduling import Scheduler
from tweet_digest.jobs.trigger import TaskTrigger, TriggerResult


class JobOrchestrator:
    """Entry point for the presentation layer.

    Constructed explicitly per view and torn down explicitly (or via
    ``async with``); nothing is kept in module globals.
    """

    def __init__(
        self,
        *,
        api: JobsApi,
        scheduler: Scheduler | None = None,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        job_list_limit: int = DEFAULT_JOB_LIST_LIMIT,
    ) -> None:
        self.board = TaskBoard()
        self.guard = LifecycleGuard()
        self.poller = JobPoller(
            api=api,
            board=self.board,
            guard=self.guard,
            scheduler=scheduler,
            interval_seconds=interval_seconds,
            job_list_limit=job_list_limit,
        )
        self.trigger_runner = TaskTrigger(api=api, poller=self.poller, board=self.board)

    async def trigger(
        self,
        kind: TaskKind | str,
        target: str | None = None,
        params: dict[str, Any] | None = None,
        callbacks: PollCallbacks | None = None,
    ) -> TriggerResult:
        result = await self.trigger_runner.trigger(kind, target, params, callbacks)
        if result.outcome is not None and not result.discarded:
            self.board.set_message(result.key, describe_enqueue(result.key.kind, result.outcome))
        return result

    def stop(self, kind: TaskKind | str, target: str | None = None) -> bool:
        return self.poller.stop_polling(TaskKey(TaskKind(kind), target))

    async def hydrate(
        self,
        callbacks_for: Callable[[TaskKey], PollCallbacks] | None = None,
    ) -> list[TaskKey]:
        return await self.poller.hydrate(callbacks_for)

    def teardown(self) -> None:
        self.poller.teardown()

    def slot(self, kind: TaskKind | str, target: str | None = None) -> TaskSlot:
        return self.board.slot(TaskKey(TaskKind(kind), target))

    def slots(self) -> dict[TaskKey, TaskSlot]:
        return self.board.slots()

    def status_text(self, kind: TaskKind | str, target: str | None = None) -> str | None:
        return describe_slot(self.slot(kind, target))

    def is_polling(self, kind: TaskKind | str, target: str | None = None) -> bool:
        return self.poller.observing(TaskKey(TaskKind(kind), target)) is not None

    async def settle(self) -> None:
        await self.poller.settle()

    async def join(self) -> None:
        await self.poller.join()

    async def __aenter__(self) -> JobOrchestrator:
        return self

    async def __aexit__(self, *_: object) -> None:
        self.teardown()
