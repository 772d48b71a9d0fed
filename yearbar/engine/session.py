"""Write-once session configuration for engine modules."""
from __future__ import annotations

import dataclasses
import os
import pathlib
from collections.abc import Mapping
from typing import Any

from dotenv import dotenv_values

from yearbar.engine.clock import resolveTimezone, systemTimezone
from yearbar.engine.primitives import (
    CLIPBOARD_BLOCKS_TOTAL,
    DEBOUNCE_DELAY,
    DISCRETE_INTERVAL,
    FRAME_INTERVAL,
)

ENV_FILE = ".env.yearbar"


@dataclasses.dataclass
class SessionConfig:
    """Settings read once at startup.

    Layered like: defaults, then ``.env.yearbar``, then the process
    environment (later wins). Keys are the field names upper-cased with a
    ``YEARBAR_`` prefix (see ``fromMapping``).
    """

    tz: str = ""
    frameInterval: float = FRAME_INTERVAL
    discreteInterval: float = DISCRETE_INTERVAL
    debounce: float = DEBOUNCE_DELAY
    blocks: int = CLIPBOARD_BLOCKS_TOTAL
    exportScale: int = 6
    exportDir: pathlib.Path = pathlib.Path(".")
    logDir: pathlib.Path = pathlib.Path("runlogs")
    cacheDir: pathlib.Path = pathlib.Path("~/.yearbar").expanduser()
    osc52: bool = False
    fontPath: str | None = None

    @classmethod
    def fromMapping(cls, values: Mapping[str, Any]) -> SessionConfig:
        """Build a config from ``YEARBAR_*`` keys; raises ValueError naming the bad key."""
        cfg = cls()

        def number(key: str, kind: type, positive: bool = True, allowZero: bool = False):
            raw = values.get(key)
            if raw is None or raw == "":
                return None

            try:
                val = kind(raw)
            except (TypeError, ValueError):
                raise ValueError(f"{key}: not a number: {raw!r}") from None

            if positive and (val < 0 or (val == 0 and not allowZero)):
                raise ValueError(f"{key}: must be positive: {raw!r}")

            return val

        if tz := values.get("YEARBAR_TZ"):
            if not (resolved := resolveTimezone(tz)):
                raise ValueError(f"YEARBAR_TZ: unknown timezone: {tz!r}")
            cfg.tz = resolved

        if (v := number("YEARBAR_FRAME_INTERVAL", float)) is not None:
            cfg.frameInterval = v

        if (v := number("YEARBAR_DISCRETE_INTERVAL", float)) is not None:
            cfg.discreteInterval = v

        if (v := number("YEARBAR_DEBOUNCE", float, allowZero=True)) is not None:
            cfg.debounce = v

        if (v := number("YEARBAR_BLOCKS", int)) is not None:
            cfg.blocks = v

        if (v := number("YEARBAR_EXPORT_SCALE", int)) is not None:
            cfg.exportScale = v

        if d := values.get("YEARBAR_EXPORT_DIR"):
            cfg.exportDir = pathlib.Path(d).expanduser()

        if d := values.get("YEARBAR_LOGDIR"):
            cfg.logDir = pathlib.Path(d).expanduser()

        if d := values.get("YEARBAR_CACHE"):
            cfg.cacheDir = pathlib.Path(d).expanduser()

        if flag := values.get("YEARBAR_OSC52"):
            cfg.osc52 = flag.lower() in ("1", "true", "on", "yes")

        if font := values.get("YEARBAR_FONT"):
            cfg.fontPath = font

        return cfg

    @classmethod
    def load(cls, envFile: str | os.PathLike = ENV_FILE) -> SessionConfig:
        cfg = cls.fromMapping({**dotenv_values(envFile), **os.environ})  # type: ignore
        if not cfg.tz:
            cfg.tz = systemTimezone()

        return cfg
