"""Single source of truth for the most recently computed progress record."""
from __future__ import annotations

from collections.abc import Callable

import whenever

from yearbar.engine.calculator import ProgressRecord, computeProgress


class ProgressState:
    """Holds exactly one ProgressRecord, overwritten on every recompute.

    Only the cadence callback currently running writes here (everything runs
    on one event loop, so writes never interleave). Snapshot consumers read
    with ``readLast()`` and never trigger a recompute themselves.

    Parameters
    ----------
    now:
        Zero-argument callable returning the current wall-clock instant
        (normally ``AppClock.now``).
    """

    def __init__(self, now: Callable[[], whenever.ZonedDateTime]) -> None:
        self._now = now
        self._last: ProgressRecord | None = None
        self.computations = 0

    def recomputeNow(self) -> ProgressRecord:
        record = computeProgress(self._now())
        self._last = record
        self.computations += 1
        return record

    def readLast(self) -> ProgressRecord | None:
        """Return the stored record, or None before the first recompute."""
        return self._last
