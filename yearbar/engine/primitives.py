"""Pure types and constants shared across engine modules — stdlib only."""

from __future__ import annotations

import enum
import string
from typing import Final, TypeAlias

# live percentage is shown with this many decimals
PERCENTAGE_PRECISION: Final = 6

# 60 Hz "display refresh" for the continuous cadence
FRAME_INTERVAL: Final = 1 / 60

# discrete cadence period (day counters change at most once per day anyway)
DISCRETE_INTERVAL: Final = 0.5

# rapid discrete triggers collapse into one run after this much quiet
DEBOUNCE_DELAY: Final = 0.2

CLIPBOARD_BLOCKS_TOTAL: Final = 15
CLIPBOARD_BLOCK_FILLED: Final = "▓"
CLIPBOARD_BLOCK_EMPTY: Final = "░"

DEFAULT_COLOR: Final = "#3b82f6"

SECONDS_PER_DAY: Final = 24 * 60 * 60

Seconds: TypeAlias = float


class Visibility(enum.Enum):
    HIDDEN = "hidden"
    VISIBLE = "visible"


class SchedulerMode(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def isHexColor(value: str) -> bool:
    """True for ``#rgb`` or ``#rrggbb`` strings."""
    if not value.startswith("#") or len(value) not in (4, 7):
        return False

    return all(c in string.hexdigits for c in value[1:])
