"""Pure poll-loop state machine.

One loop observes one job for one task key. ``advance`` maps the current
state and an incoming event to the next state plus a list of effects; the
poller executes the effects (issue a query, arm or cancel the timer, invoke
callbacks). Keeping the transition pure makes cancellation deterministic and
lets tests drive the loop with a virtual clock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from tweet_digest.jobs.models import Job


class PollPhase(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    TERMINAL = "terminal"


@dataclass(frozen=True, slots=True)
class PollState:
    phase: PollPhase = PollPhase.IDLE
    job_id: str | None = None
    job: Job | None = None

    @classmethod
    def idle(cls) -> PollState:
        return cls()


# Events


@dataclass(frozen=True, slots=True)
class Started:
    job_id: str


@dataclass(frozen=True, slots=True)
class Tick:
    pass


@dataclass(frozen=True, slots=True)
class SnapshotArrived:
    job: Job


@dataclass(frozen=True, slots=True)
class QueryFailed:
    message: str


@dataclass(frozen=True, slots=True)
class Stopped:
    pass


PollEvent = Started | Tick | SnapshotArrived | QueryFailed | Stopped


# Effects


@dataclass(frozen=True, slots=True)
class IssueQuery:
    job_id: str


@dataclass(frozen=True, slots=True)
class ScheduleTick:
    delay_seconds: float


@dataclass(frozen=True, slots=True)
class CancelTick:
    pass


@dataclass(frozen=True, slots=True)
class EmitUpdate:
    job: Job


@dataclass(frozen=True, slots=True)
class EmitTerminal:
    job: Job


@dataclass(frozen=True, slots=True)
class EmitError:
    message: str


PollEffect = IssueQuery | ScheduleTick | CancelTick | EmitUpdate | EmitTerminal | EmitError


@dataclass(frozen=True, slots=True)
class Transition:
    state: PollState
    effects: tuple[PollEffect, ...] = field(default_factory=tuple)


def advance(state: PollState, event: PollEvent, *, interval_seconds: float) -> Transition:
    """Compute the next state and effects for one event."""

    if isinstance(event, Started):
        return Transition(
            PollState(phase=PollPhase.POLLING, job_id=event.job_id),
            (CancelTick(), IssueQuery(event.job_id)),
        )

    if isinstance(event, Stopped):
        if state.phase is PollPhase.POLLING:
            return Transition(PollState(job=state.job), (CancelTick(),))
        return Transition(state)

    if state.phase is not PollPhase.POLLING or state.job_id is None:
        # late tick/snapshot/failure after stop or terminal
        return Transition(state)

    if isinstance(event, Tick):
        return Transition(state, (IssueQuery(state.job_id),))

    if isinstance(event, QueryFailed):
        return Transition(PollState(job=state.job), (EmitError(event.message),))

    job = event.job
    if job.id != state.job_id:
        return Transition(state)
    if job.status.is_terminal:
        return Transition(
            PollState(phase=PollPhase.TERMINAL, job_id=job.id, job=job),
            (EmitUpdate(job), EmitTerminal(job)),
        )
    return Transition(
        PollState(phase=PollPhase.POLLING, job_id=job.id, job=job),
        (EmitUpdate(job), ScheduleTick(interval_seconds)),
    )
