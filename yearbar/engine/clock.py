"""Coordinated application clock for consistent local time across engine modules."""
from __future__ import annotations

import dataclasses
import os
import pathlib

import whenever
from loguru import logger

# short names users type into `YEARBAR_TZ`
_TIMEZONE_ALIASES = {
    "UTC": "UTC",
    "ET": "America/New_York",
    "CT": "America/Chicago",
    "PT": "America/Los_Angeles",
    "CN": "Asia/Shanghai",
}


def resolveTimezone(val: str) -> str | None:
    """Resolve a timezone string to an IANA name, or None if invalid."""
    alias = _TIMEZONE_ALIASES.get(val.upper())
    if alias:
        return alias

    # Try as direct IANA name
    try:
        whenever.ZonedDateTime.now(val)
        return val
    except Exception:
        return None


def systemTimezone() -> str:
    """Best guess at the IANA name of the machine's local zone.

    Checks ``TZ`` first, then the ``/etc/localtime`` symlink target.
    Falls back to UTC when neither names a usable zone.
    """
    if tz := os.getenv("TZ"):
        if found := resolveTimezone(tz.removeprefix(":")):
            return found

    localtime = pathlib.Path("/etc/localtime")
    try:
        target = str(localtime.resolve())
    except OSError:
        target = ""

    if "zoneinfo/" in target:
        if found := resolveTimezone(target.split("zoneinfo/", 1)[1]):
            return found

    logger.warning("Could not detect system timezone, using UTC")
    return "UTC"


@dataclasses.dataclass
class AppClock:
    """Wall-clock source for progress computation.

    Everything that needs "now" asks the clock instead of calling
    ``ZonedDateTime.now()`` directly, which lets tests pin time.
    """

    tz: str = dataclasses.field(default_factory=systemTimezone)

    def now(self) -> whenever.ZonedDateTime:
        """Current wall-clock instant in the local zone."""
        return whenever.ZonedDateTime.now(self.tz)
