"""Narrow protocols for the capabilities the engine consumes.

The engine never talks to a terminal, clipboard or image library directly;
the host shell hands in objects satisfying these interfaces.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from yearbar.engine.calculator import ProgressRecord
    from yearbar.engine.toolbar import ViewState


Projection: TypeAlias = Callable[["ProgressRecord"], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerLoop(Protocol):
    """The slice of ``asyncio.AbstractEventLoop`` the scheduler uses."""

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle: ...


@runtime_checkable
class ClipboardWriter(Protocol):
    """Clipboard capability."""

    async def writeText(self, text: str) -> bool: ...


@runtime_checkable
class ImageRenderer(Protocol):
    """Serialize the current visual state to image bytes."""

    async def renderToImage(
        self, scope: ViewState | None, options: dict[str, Any]
    ) -> bytes: ...
