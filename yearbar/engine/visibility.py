"""Maps host visibility transitions onto scheduler start/stop."""
from __future__ import annotations

from loguru import logger

from yearbar.engine.primitives import Visibility
from yearbar.engine.scheduler import RefreshScheduler


class VisibilityGate:
    """Hidden stops the scheduler, visible starts it.

    Duplicate notifications are harmless because ``start()``/``stop()`` are
    themselves idempotent; the gate keeps no state of its own.
    """

    def __init__(self, scheduler: RefreshScheduler) -> None:
        self.scheduler = scheduler

    def notify(self, visibility: Visibility | str) -> None:
        visibility = Visibility(visibility)
        logger.trace("Visibility -> {}", visibility.value)

        if visibility is Visibility.HIDDEN:
            self.scheduler.stop()
        else:
            self.scheduler.start()
