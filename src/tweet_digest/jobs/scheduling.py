"""Timer scheduling for poll loops: asyncio-backed and a manual virtual clock."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol


class TimerHandle(Protocol):
    """Cancellable scheduled callback."""

    def cancel(self) -> None:
        """Prevent the callback from running; no-op if it already ran."""


class Scheduler(Protocol):
    """Schedules a callback to run after a delay."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_seconds``."""
        raise NotImplementedError


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(max(0.0, delay_seconds), callback)


@dataclass(slots=True)
class ManualTimer:
    """Timer registered on a :class:`ManualScheduler`."""

    due_at: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def live(self) -> bool:
        return not (self.cancelled or self.fired)


@dataclass(slots=True)
class ManualScheduler:
    """Virtual clock; timers fire only when :meth:`advance` moves time forward."""

    now: float = 0.0
    _queue: list[tuple[float, int, ManualTimer]] = field(default_factory=list)
    _counter: itertools.count = field(default_factory=itertools.count)

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(due_at=self.now + max(0.0, delay_seconds), callback=callback)
        heapq.heappush(self._queue, (timer.due_at, next(self._counter), timer))
        return timer

    def advance(self, seconds: float) -> int:
        """Move the clock forward and fire due timers in order; return how many fired."""

        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due_at, _, timer = heapq.heappop(self._queue)
            self.now = due_at
            if not timer.live:
                continue
            timer.fired = True
            timer.callback()
            fired += 1
        self.now = target
        return fired

    @property
    def live_timers(self) -> list[ManualTimer]:
        return [timer for _, _, timer in self._queue if timer.live]
