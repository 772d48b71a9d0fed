"""Clipboard capability backed by prompt_toolkit's clipboard.

prompt_toolkit keeps the text for in-app paste; with ``osc52`` enabled the
text is also sent to the terminal emulator's system clipboard.
"""
from __future__ import annotations

import base64
import sys
from typing import TextIO

from loguru import logger
from prompt_toolkit.clipboard import Clipboard, ClipboardData, InMemoryClipboard


class TerminalClipboard:
    """``writeText`` on top of a prompt_toolkit ``Clipboard``."""

    def __init__(
        self,
        clipboard: Clipboard | None = None,
        osc52: bool = False,
        stream: TextIO | None = None,
    ) -> None:
        self.clipboard = clipboard or InMemoryClipboard()
        self.osc52 = osc52
        self.stream = stream

    async def writeText(self, text: str) -> bool:
        self.clipboard.set_data(ClipboardData(text))

        if self.osc52:
            stream = self.stream or sys.stdout
            if not stream.isatty():
                logger.warning("OSC 52 clipboard needs a terminal, only kept in-app copy")
                return True

            payload = base64.b64encode(text.encode("utf-8")).decode("ascii")
            stream.write(f"\x1b]52;c;{payload}\x07")
            stream.flush()

        return True
