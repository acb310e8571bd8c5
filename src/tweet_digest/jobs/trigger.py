"""Start-or-attach requests for named workflow tasks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from tweet_digest.jobs.api import JobsApi, parse_enqueue_response
from tweet_digest.jobs.board import TaskBoard
from tweet_digest.jobs.errors import EnqueueError
from tweet_digest.jobs.models import EnqueueOutcome, SkipInfo, TaskKey, TaskKind
from tweet_digest.jobs.poller import JobPoller, PollCallbacks

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TriggerResult:
    """Classified enqueue response for one task key."""

    key: TaskKey
    outcome: EnqueueOutcome | None = None
    skip: SkipInfo | None = None
    attached: bool = False
    discarded: bool = False

    @property
    def created(self) -> bool:
        return self.outcome is not None and self.outcome.created

    @property
    def skipped(self) -> bool:
        return self.skip is not None


class TaskTrigger:
    """Issues idempotent enqueue requests and hands jobs over to the poller.

    The server decides whether a request starts a new job or attaches to a
    running one; no local locking is done around the request.
    """

    def __init__(self, *, api: JobsApi, poller: JobPoller, board: TaskBoard) -> None:
        self.api = api
        self.poller = poller
        self.board = board

    async def trigger(
        self,
        kind: TaskKind | str,
        target: str | None = None,
        params: dict[str, Any] | None = None,
        callbacks: PollCallbacks | None = None,
    ) -> TriggerResult:
        """Start or attach the task and begin observing it.

        Raises :class:`EnqueueError` when the request fails; the key's slot
        keeps its last job or skip and only records the error message.
        Raises ``RuntimeError`` once the poller is torn down; nothing is sent.
        """

        key = TaskKey(TaskKind(kind), target)
        callbacks = callbacks or PollCallbacks()
        self.poller.ensure_alive()
        try:
            raw = await self.api.enqueue(key, params or {})
            parsed = parse_enqueue_response(raw)
        except EnqueueError as error:
            self._record_failure(key, error)
            raise
        except (TypeError, ValueError) as error:
            wrapped = EnqueueError(message=f"Malformed enqueue response: {error}")
            self._record_failure(key, wrapped)
            raise wrapped from error

        if not self.poller.guard.alive:
            logger.debug("Discarding enqueue response for %s after teardown", key)
            if isinstance(parsed, SkipInfo):
                return TriggerResult(key=key, skip=parsed, discarded=True)
            return TriggerResult(key=key, outcome=parsed, discarded=True)

        if isinstance(parsed, SkipInfo):
            self.poller.stop_polling(key)
            self.board.put_skip(key, parsed)
            logger.info(
                "Trigger %s skipped: reason=%s pending=%d threshold=%s",
                key,
                parsed.reason or "-",
                parsed.pending,
                parsed.threshold if parsed.threshold is not None else "-",
            )
            return TriggerResult(key=key, skip=parsed)

        job = parsed.job
        if not parsed.created and self.poller.attach(key, job.id, callbacks) is not None:
            # the live loop holds a snapshot at least as new as this one
            self.board.set_message(key, parsed.message)
            logger.info("Trigger %s attached to running job %s", key, job.id)
            return TriggerResult(key=key, outcome=parsed, attached=True)

        self.board.put_job(key, job, message=parsed.message)
        self.poller.start_polling(
            key,
            job.id,
            on_update=callbacks.on_update,
            on_terminal=callbacks.on_terminal,
            on_error=callbacks.on_error,
        )
        logger.info(
            "Trigger %s -> job %s (%s, created=%s)",
            key,
            job.id,
            job.status.value,
            parsed.created,
        )
        return TriggerResult(key=key, outcome=parsed)

    def _record_failure(self, key: TaskKey, error: EnqueueError) -> None:
        logger.warning("Enqueue for %s failed: %s", key, error.message)
        if self.poller.guard.alive:
            self.board.set_message(key, error.message)
