"""Key -> {slot, poll handle} map owned by one orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from tweet_digest.jobs.models import Job, SkipInfo, TaskKey, TaskSlot

if TYPE_CHECKING:
    from tweet_digest.jobs.poller import PollHandle


@dataclass(slots=True)
class _BoardEntry:
    slot: TaskSlot
    handle: PollHandle | None = None


class TaskBoard:
    """Holds the current slot and the live poll handle for every task key."""

    def __init__(self) -> None:
        self._entries: dict[TaskKey, _BoardEntry] = {}

    def slot(self, key: TaskKey) -> TaskSlot:
        entry = self._entries.get(key)
        return entry.slot if entry is not None else TaskSlot()

    def slots(self) -> dict[TaskKey, TaskSlot]:
        return {key: entry.slot for key, entry in self._entries.items()}

    def replace_slot(self, key: TaskKey, slot: TaskSlot) -> None:
        self._entry(key).slot = slot

    def put_job(self, key: TaskKey, job: Job, *, message: str | None = None) -> None:
        """Replace the slot with a fresh job snapshot (new trigger or adoption)."""

        self.replace_slot(key, TaskSlot(job=job, message=message))

    def put_skip(self, key: TaskKey, skip: SkipInfo, *, message: str | None = None) -> None:
        self.replace_slot(key, TaskSlot(skip=skip, message=message))

    def update_job(self, key: TaskKey, job: Job) -> None:
        """Apply a newer snapshot of the observed job, keeping the slot message."""

        entry = self._entry(key)
        entry.slot = replace(entry.slot, job=job, skip=None)

    def set_message(self, key: TaskKey, message: str | None) -> None:
        entry = self._entry(key)
        entry.slot = replace(entry.slot, message=message)

    def handle(self, key: TaskKey) -> PollHandle | None:
        entry = self._entries.get(key)
        return entry.handle if entry is not None else None

    def install_handle(self, key: TaskKey, handle: PollHandle) -> PollHandle | None:
        """Install ``handle`` as the key's owner and return the one it displaced."""

        entry = self._entry(key)
        previous = entry.handle
        entry.handle = handle
        return previous

    def release_handle(self, key: TaskKey, handle: PollHandle) -> bool:
        """Drop ``handle`` if it still owns the key."""

        entry = self._entries.get(key)
        if entry is None or entry.handle is not handle:
            return False
        entry.handle = None
        return True

    def owns(self, key: TaskKey, handle: PollHandle) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.handle is handle

    def handles(self) -> dict[TaskKey, PollHandle]:
        return {
            key: entry.handle for key, entry in self._entries.items() if entry.handle is not None
        }

    def _entry(self, key: TaskKey) -> _BoardEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = _BoardEntry(slot=TaskSlot())
            self._entries[key] = entry
        return entry
