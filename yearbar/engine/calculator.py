"""Year progress math: one wall-clock instant in, one immutable record out.

Nothing here keeps state. Year boundaries are rebuilt from the instant on
every call so a long-running scheduler crosses New Year's Eve correctly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import whenever

from yearbar.engine.primitives import PERCENTAGE_PRECISION, SECONDS_PER_DAY, clamp01


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    """Snapshot of how far the containing calendar year has progressed."""

    instant: whenever.ZonedDateTime
    yearStart: whenever.ZonedDateTime
    yearEndExclusive: whenever.ZonedDateTime
    totalDaysInYear: int
    fractionElapsed: float
    daysPassed: int
    daysRemaining: int

    @property
    def percentage(self) -> float:
        """Full-precision percentage (drives smooth bar animation)."""
        return self.fractionElapsed * 100

    @property
    def displayPercentage(self) -> str:
        return f"{self.percentage:.{PERCENTAGE_PRECISION}f}"

    @property
    def year(self) -> int:
        return self.yearStart.year


def isLeapYear(year: int) -> bool:
    """Proleptic Gregorian rule: every 4th year, except centuries not divisible by 400."""
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def daysInYear(year: int) -> int:
    return 366 if isLeapYear(year) else 365


def computeProgress(instant: whenever.ZonedDateTime) -> ProgressRecord:
    """Compute the progress record for ``instant`` in its own time zone.

    ``daysPassed`` and ``daysRemaining`` are floored independently, so their
    sum is ``totalDaysInYear - 1`` for any instant not exactly on a midnight
    boundary. Displayed counters depend on that, so it stays as is.
    """
    year = instant.year
    tz = instant.tz

    yearStart = whenever.ZonedDateTime(year, 1, 1, tz=tz)
    yearEnd = whenever.ZonedDateTime(year + 1, 1, 1, tz=tz)

    elapsed = (instant - yearStart).in_seconds()
    remaining = (yearEnd - instant).in_seconds()
    yearLength = (yearEnd - yearStart).in_seconds()

    # clock skew can push either side out of range; never report <0% or >100%
    fraction = clamp01(elapsed / yearLength)

    return ProgressRecord(
        instant=instant,
        yearStart=yearStart,
        yearEndExclusive=yearEnd,
        totalDaysInYear=daysInYear(year),
        fractionElapsed=fraction,
        daysPassed=max(0, math.floor(elapsed / SECONDS_PER_DAY)),
        daysRemaining=max(0, math.floor(remaining / SECONDS_PER_DAY)),
    )
