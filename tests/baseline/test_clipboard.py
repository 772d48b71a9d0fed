"""Tests for yearbar.engine.clipboard."""

import base64
import io

import pytest
from prompt_toolkit.application.current import create_app_session
from prompt_toolkit.clipboard import InMemoryClipboard
from prompt_toolkit.data_structures import Size
from prompt_toolkit.output.vt100 import Vt100_Output

from yearbar.cli import consoleOutput
from yearbar.engine.clipboard import TerminalClipboard
from yearbar.engine.protocols import ClipboardWriter


class FakeTty(io.StringIO):
    def isatty(self) -> bool:
        return True


class TestTerminalClipboard:
    def test_satisfies_protocol(self):
        assert isinstance(TerminalClipboard(), ClipboardWriter)

    @pytest.mark.asyncio
    async def test_in_app_copy(self):
        backing = InMemoryClipboard()
        ok = await TerminalClipboard(backing).writeText("▓░ 50%")

        assert ok
        assert backing.get_data().text == "▓░ 50%"

    @pytest.mark.asyncio
    async def test_osc52_sequence(self):
        tty = FakeTty()
        await TerminalClipboard(osc52=True, stream=tty).writeText("▓░ 50%")

        payload = base64.b64encode("▓░ 50%".encode()).decode()
        assert tty.getvalue() == f"\x1b]52;c;{payload}\x07"

    @pytest.mark.asyncio
    async def test_osc52_skipped_without_tty(self):
        stream = io.StringIO()
        ok = await TerminalClipboard(osc52=True, stream=stream).writeText("x")

        assert ok
        assert stream.getvalue() == ""

    @pytest.mark.asyncio
    async def test_no_osc52_by_default(self):
        tty = FakeTty()
        await TerminalClipboard(stream=tty).writeText("x")
        assert tty.getvalue() == ""


class TestThroughPromptStdout:
    """Writes go through the same stdout proxy the REPL installs."""

    @pytest.fixture
    def terminal(self):
        tty = FakeTty()
        output = Vt100_Output(tty, lambda: Size(rows=24, columns=80), term="xterm")
        with create_app_session(output=output):
            yield tty

    @pytest.mark.asyncio
    async def test_osc52_escape_reaches_terminal(self, terminal):
        with consoleOutput():
            ok = await TerminalClipboard(osc52=True).writeText("▓░ 50%")

        payload = base64.b64encode("▓░ 50%".encode()).decode()
        assert ok
        assert f"\x1b]52;c;{payload}\x07" in terminal.getvalue()

    def test_log_colors_survive(self, terminal):
        with consoleOutput():
            print("\x1b[32mready\x1b[0m")

        assert "\x1b[32mready\x1b[0m" in terminal.getvalue()
        assert "?[32m" not in terminal.getvalue()
