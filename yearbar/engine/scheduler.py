"""Refresh scheduler driving the live and discrete projections.

Two cadences run while the view is visible:

- continuous: a self-rescheduling frame callback (``call_later`` chained
  after each firing, so firings never overlap) that recomputes progress and
  feeds the live projection (bar width, live percentage).
- discrete: a fixed-period timer whose firings go through a debounce
  window before reaching the discrete projection (day counters, totals).

Zero timers are armed while stopped.
"""
from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from loguru import logger

from yearbar.engine.calculator import ProgressRecord
from yearbar.engine.primitives import (
    DEBOUNCE_DELAY,
    DISCRETE_INTERVAL,
    FRAME_INTERVAL,
    SchedulerMode,
    Seconds,
)
from yearbar.engine.protocols import Projection, TimerLoop
from yearbar.engine.state import ProgressState


@dataclass(slots=True)
class SchedulerState:
    """Mutable timer bookkeeping owned by exactly one RefreshScheduler."""

    mode: SchedulerMode = SchedulerMode.STOPPED
    continuousHandle: asyncio.TimerHandle | Any | None = None
    discreteHandle: asyncio.TimerHandle | Any | None = None
    pendingDebounce: asyncio.TimerHandle | Any | None = None

    def activeHandles(self) -> int:
        return sum(
            h is not None
            for h in (self.continuousHandle, self.discreteHandle, self.pendingDebounce)
        )


class RefreshScheduler:
    """Starts, stops and suspends both refresh cadences.

    ``start()`` and ``stop()`` are idempotent; calling either redundantly is
    always safe. Export capture wraps itself in ``paused()``, which stops the
    cadences for the duration and restores them on every exit path.

    Parameters
    ----------
    state:
        ProgressState written on every tick.
    liveProjection:
        Called with each continuous-cadence record.
    discreteProjection:
        Called with each post-debounce discrete record.
    loop:
        Anything providing ``call_later(delay, callback, *args)``. Defaults
        to the running asyncio loop, looked up on first ``start()``.
    frameInterval, discreteInterval, debounceDelay:
        Cadence timings in seconds. ``debounceDelay <= 0`` disables the
        debounce so discrete triggers project immediately.
    """

    def __init__(
        self,
        state: ProgressState,
        liveProjection: Projection,
        discreteProjection: Projection,
        loop: TimerLoop | None = None,
        frameInterval: Seconds = FRAME_INTERVAL,
        discreteInterval: Seconds = DISCRETE_INTERVAL,
        debounceDelay: Seconds = DEBOUNCE_DELAY,
    ) -> None:
        self.state = state
        self.liveProjection = liveProjection
        self.discreteProjection = discreteProjection
        self._loop = loop
        self.frameInterval = frameInterval
        self.discreteInterval = discreteInterval
        self.debounceDelay = debounceDelay

        self.sched = SchedulerState()

        # export suspension: while set, start()/stop() only record the
        # requested end state instead of touching timers
        self._suspended = False
        self._resumeAfterSuspend = False
        self._closed = False

        self.liveTicks = 0
        self.discreteTicks = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self.sched.mode is SchedulerMode.RUNNING

    @property
    def suspended(self) -> bool:
        return self._suspended

    def start(self) -> None:
        """Recompute once, project both outputs, then arm both cadences."""
        if self._closed:
            logger.warning("Scheduler already torn down, ignoring start()")
            return

        if self._suspended:
            self._resumeAfterSuspend = True
            return

        if self.running:
            return

        loop = self._timerLoop()
        self.sched.mode = SchedulerMode.RUNNING

        record = self.state.recomputeNow()
        self._project(self.liveProjection, record, "live")
        self._project(self.discreteProjection, record, "discrete")

        self.sched.continuousHandle = loop.call_later(self.frameInterval, self._frame)
        self.sched.discreteHandle = loop.call_later(
            self.discreteInterval, self._discreteTick
        )
        logger.debug("Refresh scheduler started")

    def stop(self) -> None:
        """Cancel every pending wait; a cancelled wait never fires afterward."""
        if self._suspended:
            self._resumeAfterSuspend = False
            return

        if not self.running:
            return

        self.sched.mode = SchedulerMode.STOPPED

        # clear each slot before cancelling so a stale handle is never reused
        for slot in ("continuousHandle", "discreteHandle", "pendingDebounce"):
            handle = getattr(self.sched, slot)
            setattr(self.sched, slot, None)
            if handle is not None:
                handle.cancel()

        logger.debug("Refresh scheduler stopped")

    def teardown(self) -> None:
        """Stop for good (the host is shutting down)."""
        self._suspended = False
        self.stop()
        self._closed = True

    @contextlib.asynccontextmanager
    async def paused(self) -> AsyncIterator[None]:
        """Suspend both cadences for the duration of the block.

        On exit (normal or exceptional) the cadences resume only if they
        were running before, or if a visibility change asked for a start
        while suspended.
        """
        if self._suspended:
            raise RuntimeError("Scheduler is already suspended")

        wasRunning = self.running
        self.stop()
        self._suspended = True
        self._resumeAfterSuspend = wasRunning
        try:
            yield
        finally:
            self._suspended = False
            if self._resumeAfterSuspend and not self._closed:
                self.start()

    # ------------------------------------------------------------------
    # Discrete trigger path
    # ------------------------------------------------------------------

    def requestDiscreteRefresh(self) -> None:
        """Recompute and (re)arm the debounce timer with the fresh record.

        Repeated requests inside one debounce window cancel the previous
        pending run, so only the last request's record is projected.
        """
        if not self.running:
            return

        record = self.state.recomputeNow()

        if self.debounceDelay <= 0:
            self._fireDiscrete(record)
            return

        pending = self.sched.pendingDebounce
        self.sched.pendingDebounce = None
        if pending is not None:
            pending.cancel()

        self.sched.pendingDebounce = self._timerLoop().call_later(
            self.debounceDelay, self._fireDiscrete, record
        )

    # ------------------------------------------------------------------
    # Timer callbacks
    # ------------------------------------------------------------------

    def _frame(self) -> None:
        self.sched.continuousHandle = None
        if not self.running:
            return

        record = self.state.recomputeNow()
        self.liveTicks += 1
        self._project(self.liveProjection, record, "live")

        # reschedule only after this frame finished
        if self.running:
            self.sched.continuousHandle = self._timerLoop().call_later(
                self.frameInterval, self._frame
            )

    def _discreteTick(self) -> None:
        self.sched.discreteHandle = None
        if not self.running:
            return

        self.sched.discreteHandle = self._timerLoop().call_later(
            self.discreteInterval, self._discreteTick
        )
        self.requestDiscreteRefresh()

    def _fireDiscrete(self, record: ProgressRecord) -> None:
        self.sched.pendingDebounce = None
        if not self.running:
            return

        self.discreteTicks += 1
        self._project(self.discreteProjection, record, "discrete")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _timerLoop(self) -> TimerLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        return self._loop

    @staticmethod
    def _project(callback: Projection, record: ProgressRecord, kind: str) -> None:
        # a failing render must not kill the cadence
        try:
            callback(record)
        except Exception:
            logger.exception("[{}] Projection failed for {}", kind, record.instant)
