"""Snapshot consumers: clipboard text and image export.

Both read ``ProgressState.readLast()`` and never recompute, so whatever they
emit matches what is currently displayed. Capability failures come back as
result objects; they never escape into (or stop) the scheduler.
"""
from __future__ import annotations

import asyncio
import math
import pathlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

from yearbar.engine.calculator import ProgressRecord
from yearbar.engine.primitives import (
    CLIPBOARD_BLOCK_EMPTY,
    CLIPBOARD_BLOCK_FILLED,
    CLIPBOARD_BLOCKS_TOTAL,
)
from yearbar.engine.protocols import ClipboardWriter, ImageRenderer
from yearbar.engine.scheduler import RefreshScheduler
from yearbar.engine.state import ProgressState

if TYPE_CHECKING:
    from yearbar.engine.toolbar import ViewState


class YearBarError(Exception):
    """Base class for yearbar errors."""


class CapabilityError(YearBarError):
    """An external capability (clipboard, renderer) failed.

    ``reason`` lets the host pick a helpful message:
    ``unavailable`` (capability missing), ``missing-target`` (nothing to
    render) or ``failed`` (anything else).
    """

    def __init__(
        self,
        message: str,
        reason: Literal["unavailable", "missing-target", "failed"] = "failed",
    ) -> None:
        super().__init__(message)
        self.reason = reason


class ExportBusyError(YearBarError):
    """An export was requested while another one is still in flight."""


@dataclass(slots=True)
class CopyResult:
    ok: bool
    text: str | None = None
    skipped: bool = False
    error: Exception | None = None


@dataclass(slots=True)
class ExportResult:
    ok: bool
    path: pathlib.Path | None = None
    busy: bool = False
    error: Exception | None = None


def roundHalfUp(x: float) -> int:
    """Round .5 away from zero for positives, like a browser's Math.round."""
    return math.floor(x + 0.5)


def formatClipboardText(
    record: ProgressRecord, blocks: int = CLIPBOARD_BLOCKS_TOTAL
) -> str:
    """Render ``▓▓▓░░░ NN%``: filled blocks proportional to the percentage,
    then the whole-number percentage.
    """
    percentage = record.percentage
    filled = min(blocks, max(0, roundHalfUp(percentage / (100 / blocks))))
    empty = blocks - filled

    return (
        CLIPBOARD_BLOCK_FILLED * filled
        + CLIPBOARD_BLOCK_EMPTY * empty
        + f" {roundHalfUp(percentage)}%"
    )


class ClipboardCopier:
    """Copies the currently displayed progress as block-glyph text."""

    def __init__(
        self,
        state: ProgressState,
        writer: ClipboardWriter,
        blocks: int = CLIPBOARD_BLOCKS_TOTAL,
    ) -> None:
        self.state = state
        self.writer = writer
        self.blocks = blocks

    async def copy(self) -> CopyResult:
        record = self.state.readLast()
        if record is None:
            logger.warning("Copy requested before first progress computation, skipping")
            return CopyResult(ok=False, skipped=True)

        # text is fixed before the first await, so later ticks can't change it
        text = formatClipboardText(record, self.blocks)

        try:
            written = await self.writer.writeText(text)
        except Exception as e:
            logger.exception("Failed to copy text: {}", text)
            return CopyResult(ok=False, text=text, error=CapabilityError(str(e)))

        if not written:
            logger.error("Clipboard rejected text: {}", text)
            return CopyResult(
                ok=False, text=text, error=CapabilityError("clipboard write rejected")
            )

        return CopyResult(ok=True, text=text)


def exportFilename(prefix: str, record: ProgressRecord) -> str:
    """``{prefix}_{YYYY-MM-DD}.png`` using the record's local date."""
    d = record.instant
    return f"{prefix or 'Progress'}_{d.year:04}-{d.month:02}-{d.day:02}.png"


class ExportController:
    """Runs one image export at a time with the scheduler suspended.

    A second request while one is pending is rejected (``busy=True``), not
    queued.

    Parameters
    ----------
    scheduler:
        Suspended via ``paused()`` for the whole capture.
    renderer:
        Image capability.
    scope:
        Returns the current visual state to capture (or None if there is
        nothing on screen yet).
    filenamePrefix:
        Returns the (translated) filename prefix at export time.
    exportDir:
        Where finished images are written.
    options:
        Extra options passed through to the renderer (e.g. ``scale``).
    """

    def __init__(
        self,
        scheduler: RefreshScheduler,
        renderer: ImageRenderer,
        scope: Callable[[], ViewState | None],
        filenamePrefix: Callable[[], str] = lambda: "Progress",
        exportDir: pathlib.Path | str = ".",
        options: dict[str, Any] | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.renderer = renderer
        self.scope = scope
        self.filenamePrefix = filenamePrefix
        self.exportDir = pathlib.Path(exportDir)
        self.options = options or {}
        self._inflight = False

    @property
    def busy(self) -> bool:
        return self._inflight

    async def export(self) -> ExportResult:
        if self._inflight:
            logger.warning("Export already in progress, rejecting new request")
            return ExportResult(
                ok=False, busy=True, error=ExportBusyError("export already in progress")
            )

        self._inflight = True
        try:
            async with self.scheduler.paused():
                scope = self.scope()
                if scope is None:
                    raise CapabilityError("export area not found", reason="missing-target")

                image = await self.renderer.renderToImage(scope, dict(self.options))
                target = self.exportDir / exportFilename(
                    self.filenamePrefix(), scope.record
                )
                await asyncio.to_thread(self._save, target, image)
        except CapabilityError as e:
            logger.error("Error exporting image ({}): {}", e.reason, e)
            return ExportResult(ok=False, error=e)
        except Exception as e:
            logger.exception("Error exporting image")
            return ExportResult(ok=False, error=CapabilityError(str(e)))
        finally:
            self._inflight = False

        logger.info("Exported image to {}", target)
        return ExportResult(ok=True, path=target)

    @staticmethod
    def _save(target: pathlib.Path, image: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(image)
