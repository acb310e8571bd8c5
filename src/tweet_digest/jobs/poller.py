"""Per-key job status polling with hydration and safe teardown."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tweet_digest.jobs.api import JobsApi
from tweet_digest.jobs.board import TaskBoard
from tweet_digest.jobs.catalog import task_key_for_job
from tweet_digest.jobs.errors import JobClientError
from tweet_digest.jobs.lifecycle import LifecycleGuard
from tweet_digest.jobs.models import Job, JobStatus, TaskKey
from tweet_digest.jobs.scheduling import AsyncioScheduler, Scheduler, TimerHandle
from tweet_digest.jobs.state import (
    CancelTick,
    EmitError,
    EmitTerminal,
    EmitUpdate,
    IssueQuery,
    PollEffect,
    PollEvent,
    PollPhase,
    PollState,
    QueryFailed,
    ScheduleTick,
    SnapshotArrived,
    Started,
    Stopped,
    Tick,
    advance,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 4.0
DEFAULT_JOB_LIST_LIMIT = 20

OnUpdate = Callable[[Job], None]
OnTerminal = Callable[[Job], None]
OnError = Callable[[str], None]


@dataclass(slots=True)
class PollCallbacks:
    """Caller hooks invoked by one poll loop."""

    on_update: OnUpdate | None = None
    on_terminal: OnTerminal | None = None
    on_error: OnError | None = None


class PollHandle:
    """One poll loop observing one job for one task key."""

    def __init__(self, *, key: TaskKey, job_id: str, callbacks: PollCallbacks) -> None:
        self.key = key
        self.job_id = job_id
        self.callbacks = callbacks
        self.state = PollState.idle()
        self.timer: TimerHandle | None = None
        self._closed = asyncio.Event()

    @property
    def live(self) -> bool:
        return not self._closed.is_set()

    @property
    def phase(self) -> PollPhase:
        return self.state.phase

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def close(self) -> None:
        self.cancel_timer()
        self._closed.set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    def __repr__(self) -> str:
        return (
            f"PollHandle(key={self.key!s}, job_id={self.job_id!r}, "
            f"phase={self.state.phase.value}, live={self.live})"
        )


class JobPoller:
    """Owns one polling loop per active task key.

    Invariants:
    - at most one live :class:`PollHandle` per key; starting a new loop for a
      key closes the previous one before the new one is installed;
    - the next status query is scheduled only after the current one resolved,
      so snapshots for a key are applied in issue order;
    - after :meth:`teardown`, or once a loop was superseded, late responses
      are dropped before they touch the board or arm a timer.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        api: JobsApi,
        board: TaskBoard,
        guard: LifecycleGuard | None = None,
        scheduler: Scheduler | None = None,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        job_list_limit: int = DEFAULT_JOB_LIST_LIMIT,
    ) -> None:
        self.api = api
        self.board = board
        self.guard = guard or LifecycleGuard()
        self.scheduler = scheduler or AsyncioScheduler()
        self.interval_seconds = interval_seconds
        self.job_list_limit = job_list_limit
        self._in_flight: set[asyncio.Task[None]] = set()

    def start_polling(  # noqa: PLR0913
        self,
        key: TaskKey,
        job_id: str,
        on_update: OnUpdate | None = None,
        on_terminal: OnTerminal | None = None,
        on_error: OnError | None = None,
    ) -> PollHandle:
        """Start a fresh loop for ``key``, replacing any loop it already has."""

        self.ensure_alive()
        previous = self.board.handle(key)
        if previous is not None:
            logger.debug("Superseding poll loop for %s (job %s)", key, previous.job_id)
            self._close(previous)

        handle = PollHandle(
            key=key,
            job_id=job_id,
            callbacks=PollCallbacks(
                on_update=on_update,
                on_terminal=on_terminal,
                on_error=on_error,
            ),
        )
        self.board.install_handle(key, handle)
        logger.debug("Polling %s for job %s", key, job_id)
        self._dispatch(handle, Started(job_id))
        return handle

    def attach(self, key: TaskKey, job_id: str, callbacks: PollCallbacks) -> PollHandle | None:
        """Rebind callbacks of the live loop if it already observes ``job_id``."""

        handle = self.board.handle(key)
        if handle is None or handle.job_id != job_id:
            return None
        handle.callbacks = callbacks
        logger.debug("Attached to live poll loop for %s (job %s)", key, job_id)
        return handle

    def stop_polling(self, key: TaskKey) -> bool:
        """Stop the key's loop without callbacks. Returns False if none was live."""

        handle = self.board.handle(key)
        if handle is None:
            return False
        self._close(handle)
        logger.debug("Stopped polling %s", key)
        return True

    def observing(self, key: TaskKey) -> str | None:
        """Job id the key's live loop observes, if any."""

        handle = self.board.handle(key)
        return handle.job_id if handle is not None else None

    async def hydrate(
        self,
        callbacks_for: Callable[[TaskKey], PollCallbacks] | None = None,
    ) -> list[TaskKey]:
        """Adopt recent in-flight jobs and resume polling them.

        Only PENDING/RUNNING jobs with a recognized type are adopted; the
        newest job wins per key, and keys that already have a live loop are
        left alone. Listing failures raise :class:`PollError`.
        """

        self.ensure_alive()
        jobs = await self.api.list_jobs(limit=self.job_list_limit)
        if not self.guard.alive:
            logger.debug("Discarding hydration result after teardown")
            return []

        adopted: list[TaskKey] = []
        seen: set[TaskKey] = set()
        for job in jobs:
            if not job.status.is_active:
                continue
            key = task_key_for_job(job)
            if key is None:
                logger.debug("Ignoring job %s of unrecognized type %s", job.id, job.type)
                continue
            if key in seen:
                continue
            seen.add(key)
            live_job_id = self.observing(key)
            if live_job_id is not None:
                logger.debug("Hydration keeps live loop for %s (job %s)", key, live_job_id)
                continue
            self.board.put_job(key, job)
            callbacks = callbacks_for(key) if callbacks_for is not None else PollCallbacks()
            self.start_polling(
                key,
                job.id,
                on_update=callbacks.on_update,
                on_terminal=callbacks.on_terminal,
                on_error=callbacks.on_error,
            )
            adopted.append(key)
            logger.info("Hydrated %s from job %s (%s)", key, job.id, job.status.value)
        return adopted

    def teardown(self) -> None:
        """Flip the liveness token and cancel every outstanding timer."""

        if not self.guard.teardown():
            return
        handles = self.board.handles()
        for key, handle in handles.items():
            handle.close()
            self.board.release_handle(key, handle)
        logger.debug(
            "Poller torn down: closed=%d in_flight=%d",
            len(handles),
            len(self._in_flight),
        )

    async def settle(self) -> None:
        """Wait until no status query is in flight."""

        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    async def join(self) -> None:
        """Wait until every loop has reached a terminal state, failed or stopped."""

        while True:
            handles = list(self.board.handles().values())
            if not handles:
                return
            await asyncio.gather(*(handle.wait_closed() for handle in handles))

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def ensure_alive(self) -> None:
        """Raise once torn down; called before any request or new loop."""

        if not self.guard.alive:
            raise RuntimeError("Job poller has been torn down.")

    def _accepts(self, handle: PollHandle) -> bool:
        return self.guard.alive and handle.live and self.board.owns(handle.key, handle)

    def _dispatch(self, handle: PollHandle, event: PollEvent) -> None:
        transition = advance(handle.state, event, interval_seconds=self.interval_seconds)
        handle.state = transition.state
        for effect in transition.effects:
            self._execute(handle, effect)

    def _execute(self, handle: PollHandle, effect: PollEffect) -> None:  # noqa: C901
        if isinstance(effect, CancelTick):
            handle.cancel_timer()
        elif isinstance(effect, IssueQuery):
            task = asyncio.ensure_future(self._query(handle, effect.job_id))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
        elif isinstance(effect, ScheduleTick):
            handle.cancel_timer()
            if not handle.live:
                return
            handle.timer = self.scheduler.call_later(
                effect.delay_seconds,
                lambda: self._on_tick(handle),
            )
        elif isinstance(effect, EmitUpdate):
            self.board.update_job(handle.key, effect.job)
            self._notify(handle, handle.callbacks.on_update, effect.job)
        elif isinstance(effect, EmitTerminal):
            self._release(handle)
            if effect.job.status is JobStatus.FAILED:
                logger.warning(
                    "Job %s for %s failed: %s",
                    effect.job.id,
                    handle.key,
                    effect.job.last_error or "-",
                )
            else:
                logger.info("Job %s for %s completed", effect.job.id, handle.key)
            self._notify(handle, handle.callbacks.on_terminal, effect.job)
        elif isinstance(effect, EmitError):
            self._release(handle)
            self.board.set_message(handle.key, effect.message)
            logger.warning("Status query for %s failed: %s", handle.key, effect.message)
            self._notify(handle, handle.callbacks.on_error, effect.message)

    def _notify(
        self,
        handle: PollHandle,
        callback: Callable[[Any], None] | None,
        value: object,
    ) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:  # noqa: BLE001
            logger.exception("Poll callback for %s (job %s) raised", handle.key, handle.job_id)

    def _on_tick(self, handle: PollHandle) -> None:
        handle.timer = None
        if not self._accepts(handle):
            return
        self._dispatch(handle, Tick())

    async def _query(self, handle: PollHandle, job_id: str) -> None:
        logger.debug("Querying job %s for %s", job_id, handle.key)
        event: PollEvent
        try:
            job = await self.api.get_job(job_id)
        except JobClientError as error:
            event = QueryFailed(error.message)
        except Exception as error:  # noqa: BLE001
            logger.exception("Unexpected error querying job %s", job_id)
            event = QueryFailed(str(error) or type(error).__name__)
        else:
            event = SnapshotArrived(job)

        if not self._accepts(handle):
            logger.debug("Discarding late response for %s (job %s)", handle.key, job_id)
            return
        self._dispatch(handle, event)

    def _close(self, handle: PollHandle) -> None:
        self._dispatch(handle, Stopped())
        self._release(handle)

    def _release(self, handle: PollHandle) -> None:
        handle.close()
        self.board.release_handle(handle.key, handle)
