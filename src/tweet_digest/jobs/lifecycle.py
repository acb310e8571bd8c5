"""Liveness token shared by every poll loop of one orchestrator."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class LifecycleGuard:
    """Flips once on teardown; checked before every state mutation.

    Responses that resolve after teardown see ``alive == False`` and are
    dropped without touching task slots or arming timers.
    """

    def __init__(self) -> None:
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def teardown(self) -> bool:
        """Mark the owner dead. Returns False if it was already torn down."""

        if not self._alive:
            return False
        self._alive = False
        logger.debug("Lifecycle guard torn down")
        return True
