"""yearbar engine layer — progress math, scheduling and snapshots, no REPL dependency.

All modules use ``from __future__ import annotations`` and modern
Python typing (``str | None``, ``@dataclass(slots=True)``, etc.).

Modules
-------
primitives
    Constants (precision, cadence intervals, clipboard glyphs, default color),
    ``Visibility`` / ``SchedulerMode`` enums, ``clamp01``, ``isHexColor``.

calculator
    - ``ProgressRecord``: immutable snapshot of year progress for one instant
    - ``computeProgress``: instant -> record (pure, clamped, leap-year aware)
    - ``isLeapYear``, ``daysInYear``

clock
    - ``AppClock``: local wall-clock source (``whenever.ZonedDateTime``)
    - ``systemTimezone``, ``resolveTimezone``

state
    - ``ProgressState``: the single stored record; ``recomputeNow()`` / ``readLast()``

scheduler
    - ``SchedulerState``: timer handles + mode
    - ``RefreshScheduler``: continuous and debounced discrete cadences,
      idempotent ``start()``/``stop()``, ``paused()`` export suspension

visibility
    - ``VisibilityGate``: hidden -> stop, visible -> start

snapshot
    - ``formatClipboardText``, ``ClipboardCopier``, ``ExportController``
    - ``CapabilityError``, ``ExportBusyError``, ``CopyResult``, ``ExportResult``

protocols
    Interfaces for the consumed capabilities (clipboard, image renderer, timer loop).

toolbar
    - ``ToolbarRenderer``: live/discrete projections into a prompt_toolkit toolbar
    - ``ViewState``: what is on screen (export scope)

export
    - ``PillowRenderer``: ``ViewState`` -> PNG bytes

clipboard
    - ``TerminalClipboard``: prompt_toolkit clipboard (+ optional OSC 52)

translations
    zh-CN / en strings, ``lookup``, ``template``, ``detectLanguage``

prefs
    - ``Preferences``: persisted color / theme / language (diskcache)

session
    - ``SessionConfig``: ``YEARBAR_*`` settings from ``.env.yearbar`` and the environment
"""

# Convenience re-exports for common usage:
# from yearbar.engine import RefreshScheduler, ProgressState, computeProgress
from yearbar.engine.calculator import ProgressRecord, computeProgress, daysInYear, isLeapYear
from yearbar.engine.primitives import SchedulerMode, Visibility
from yearbar.engine.scheduler import RefreshScheduler, SchedulerState
from yearbar.engine.snapshot import (
    CapabilityError,
    ClipboardCopier,
    ExportBusyError,
    ExportController,
    formatClipboardText,
)
from yearbar.engine.state import ProgressState
from yearbar.engine.visibility import VisibilityGate

__all__ = [
    "ProgressRecord",
    "computeProgress",
    "daysInYear",
    "isLeapYear",
    "SchedulerMode",
    "Visibility",
    "RefreshScheduler",
    "SchedulerState",
    "CapabilityError",
    "ClipboardCopier",
    "ExportBusyError",
    "ExportController",
    "formatClipboardText",
    "ProgressState",
    "VisibilityGate",
]
