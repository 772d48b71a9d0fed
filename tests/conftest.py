"""Shared test fixtures for the yearbar test suite.

FakeLoop stands in for the asyncio event loop's ``call_later`` so cadence
tests can step time deterministically instead of sleeping.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest
import whenever

from yearbar.engine.calculator import ProgressRecord, computeProgress
from yearbar.engine.state import ProgressState


# ── Deterministic timer loop ──


@dataclass
class FakeHandle:
    """Stub for asyncio.TimerHandle."""

    when: float
    seq: int
    callback: Callable[..., Any]
    args: tuple
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Test double for the slice of asyncio's loop the scheduler uses.

    Nothing fires until ``advance()`` is called; callbacks then run in
    deadline order, including ones armed by earlier callbacks.
    """

    def __init__(self):
        self.now = 0.0
        self.handles: list[FakeHandle] = []
        self._seq = 0

    def time(self) -> float:
        return self.now

    def call_later(self, delay, callback, *args) -> FakeHandle:
        self._seq += 1
        handle = FakeHandle(self.now + delay, self._seq, callback, args)
        self.handles.append(handle)
        return handle

    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not (h.cancelled or h.fired)]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self.pending() if h.when <= target + 1e-9]
            if not due:
                break

            handle = min(due, key=lambda h: (h.when, h.seq))
            self.now = handle.when
            handle.fired = True
            handle.callback(*handle.args)

        self.now = target


# ── Clock / records ──


class FakeClock:
    """Wall clock that moves one second forward on every read.

    Every recompute therefore yields a distinct record, which lets tests tell
    "the record from the last trigger" apart from later ones.
    """

    def __init__(self, start: whenever.ZonedDateTime | None = None, step: int = 1):
        self.current = start or whenever.ZonedDateTime(2024, 6, 1, 12, tz="UTC")
        self.step = step
        self.reads = 0

    def now(self) -> whenever.ZonedDateTime:
        value = self.current
        self.reads += 1
        self.current = value + whenever.TimeDelta(seconds=self.step)
        return value


def makeRecord(fraction: float = 0.5) -> ProgressRecord:
    """A real record with its fraction overridden (for formatting tests)."""
    base = computeProgress(whenever.ZonedDateTime(2023, 7, 2, tz="UTC"))
    return dataclasses.replace(base, fractionElapsed=fraction)


# ── Capability fakes ──


@dataclass
class FakeClipboard:
    """Records writes; optional hook runs mid-write (simulates ticks during the await)."""

    result: bool = True
    error: Exception | None = None
    writes: list[str] = field(default_factory=list)
    duringWrite: Callable[[], None] | None = None

    async def writeText(self, text: str) -> bool:
        if self.duringWrite:
            self.duringWrite()

        if self.error:
            raise self.error

        self.writes.append(text)
        return self.result


@dataclass
class FakeRenderer:
    """Returns canned bytes; optional hook runs while 'rendering'."""

    image: bytes = b"\x89PNG fake"
    error: Exception | None = None
    duringRender: Callable[[], Any] | None = None
    calls: list[tuple] = field(default_factory=list)

    async def renderToImage(self, scope, options) -> bytes:
        self.calls.append((scope, options))
        if self.duringRender:
            result = self.duringRender()
            if hasattr(result, "__await__"):
                await result

        if self.error:
            raise self.error

        return self.image


# ── Fixtures ──


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def progress_state(fake_clock) -> ProgressState:
    return ProgressState(fake_clock.now)
