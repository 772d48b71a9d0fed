#!/usr/bin/env python3

original_print = print
import asyncio
import locale
import logging
import os
import pathlib
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Final

# http://www.grantjenks.com/docs/diskcache/
import diskcache  # type: ignore
import whenever
from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, ThreadedHistory
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import set_title
from prompt_toolkit.styles import Style

from yearbar.engine.calculator import ProgressRecord
from yearbar.engine.clipboard import TerminalClipboard
from yearbar.engine.clock import AppClock
from yearbar.engine.export import PillowRenderer
from yearbar.engine.prefs import Preferences
from yearbar.engine.primitives import Visibility
from yearbar.engine.scheduler import RefreshScheduler
from yearbar.engine.session import SessionConfig
from yearbar.engine.snapshot import (
    CapabilityError,
    ClipboardCopier,
    ExportController,
    ExportResult,
)
from yearbar.engine.state import ProgressState
from yearbar.engine.toolbar import ToolbarRenderer, styleFor
from yearbar.engine.translations import (
    detectLanguage,
    lookup,
    normalizeLanguage,
    otherLanguage,
)
from yearbar.engine.visibility import VisibilityGate

LOG_LEVELS: Final = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

HELP: Final = """Commands:
  copy                copy progress text to the clipboard
  export              save the current view as a PNG
  color <#hex|reset>  set (or reset) the bar color
  theme [light|dark]  set the theme (no argument toggles)
  lang [zh-CN|en]     set the language (no argument toggles)
  hide / show         pause / resume live updates
  loglevel <LEVEL>    change console log level
  quit                exit"""

# export failure hints, keyed by CapabilityError.reason
_EXPORT_HINTS: Final = {
    "unavailable": "exportErrorUnavailable",
    "missing-target": "exportErrorMissingTarget",
}


@dataclass
class YearBarApp:
    """Terminal host shell: owns the engine objects and the prompt loop."""

    config: SessionConfig = field(default_factory=SessionConfig.load)

    # preference storage (color/theme/language); created from config.cacheDir if not given
    cache: Mapping[Any, Any] | None = None

    exiting: bool = False

    language: str = field(init=False)
    theme: str = field(init=False)
    toolbarStyle: Style = field(init=False)
    session: PromptSession | None = field(init=False, default=None)

    # Engine modules (initialized in __post_init__)
    prefs: Preferences = field(init=False)
    clock: AppClock = field(init=False)
    state: ProgressState = field(init=False)
    toolbar: ToolbarRenderer = field(init=False)
    scheduler: RefreshScheduler = field(init=False)
    gate: VisibilityGate = field(init=False)
    clipboard: TerminalClipboard = field(init=False)
    copier: ClipboardCopier = field(init=False)
    exporter: ExportController = field(init=False)

    # background export tasks (kept so they aren't garbage collected mid-run)
    tasks: set[asyncio.Task] = field(init=False, default_factory=set)

    def __post_init__(self) -> None:
        self.setupLogging()

        if self.cache is None:
            self.config.cacheDir.mkdir(parents=True, exist_ok=True)
            self.cache = diskcache.Cache(str(self.config.cacheDir / "prefs"))

        self.prefs = Preferences(self.cache)  # type: ignore[arg-type]
        self.language = detectLanguage(
            self.prefs.language, locale.getlocale()[0] or os.getenv("LANG")
        )
        self.theme = self.prefs.theme()
        self.toolbarStyle = styleFor(self.theme)

        self.clock = AppClock(tz=self.config.tz) if self.config.tz else AppClock()
        self.state = ProgressState(self.clock.now)

        self.toolbar = ToolbarRenderer(
            color=lambda: self.prefs.color,
            theme=lambda: self.theme,
            language=self.language,
        )

        self.scheduler = RefreshScheduler(
            self.state,
            liveProjection=self.liveProjection,
            discreteProjection=self.discreteProjection,
            frameInterval=self.config.frameInterval,
            discreteInterval=self.config.discreteInterval,
            debounceDelay=self.config.debounce,
        )
        self.gate = VisibilityGate(self.scheduler)

        self.clipboard = TerminalClipboard(osc52=self.config.osc52)
        self.copier = ClipboardCopier(self.state, self.clipboard, self.config.blocks)
        self.exporter = ExportController(
            self.scheduler,
            PillowRenderer(self.config.fontPath),
            scope=self.toolbar.viewState,
            filenamePrefix=lambda: self.t("exportFilenamePrefix"),
            exportDir=self.config.exportDir,
            options=dict(scale=self.config.exportScale),
        )

        # command name -> handler(args)
        self.commands: dict[str, Callable[[list[str]], Awaitable[None] | None]] = {
            "copy": self.cmdCopy,
            "export": self.cmdExport,
            "color": self.cmdColor,
            "theme": self.cmdTheme,
            "lang": self.cmdLang,
            "hide": self.cmdHide,
            "show": self.cmdShow,
            "loglevel": self.cmdLogLevel,
            "help": self.cmdHelp,
            "quit": self.cmdQuit,
            "exit": self.cmdQuit,
        }

    def t(self, key: str) -> str:
        return lookup(self.language, key)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def setupLogging(self) -> None:
        now = whenever.ZonedDateTime.now("UTC")
        LOGDIR = self.config.logDir / f"{now.year}" / f"{now.month:02}"
        LOGDIR.mkdir(exist_ok=True, parents=True)
        LOG_FILE_TEMPLATE = str(
            LOGDIR / f"yearbar-{now.py_datetime().strftime('%Y-%m-%d_%H%M%S')}"
        )

        # anything using stdlib logging (prompt_toolkit, PIL) goes to its own file
        logging.basicConfig(
            level=logging.INFO,
            filename=LOG_FILE_TEMPLATE + "-lib.log",
            format="%(asctime)s %(message)s",
        )

        def asink(x):
            # plain print through the patch_stdout() proxy keeps log lines above the prompt
            original_print(x, end="")

        logger.remove()
        self._console_sink = asink
        self._console_handler_id = logger.add(asink, colorize=True, level="INFO")

        # user input is logged at TRACE: kept in the files, not echoed to the console
        logger.add(sink=LOG_FILE_TEMPLATE + "-yearbar.log", level="TRACE", colorize=False)
        logger.add(
            sink=LOG_FILE_TEMPLATE + "-yearbar-color.log",
            level="TRACE",
            colorize=True,
        )

        logger.info("Logging session with prefix: {}", LOG_FILE_TEMPLATE)

    def setConsoleLogLevel(self, level: str) -> None:
        """Change the console log level at runtime.

        Removes the current console handler and re-adds it at the new level."""
        logger.remove(self._console_handler_id)
        self._console_handler_id = logger.add(self._console_sink, colorize=True, level=level)
        logger.info("Console log level set to {}", level)

    # ------------------------------------------------------------------
    # Projections (scheduler -> toolbar -> screen)
    # ------------------------------------------------------------------

    def liveProjection(self, record: ProgressRecord) -> None:
        self.toolbar.liveProjection(record)
        self.invalidate()

    def discreteProjection(self, record: ProgressRecord) -> None:
        self.toolbar.discreteProjection(record)
        self.invalidate()

    def invalidate(self) -> None:
        if self.session is not None and self.session.app.is_running:
            self.session.app.invalidate()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def cmdCopy(self, args: list[str]) -> None:
        result = await self.copier.copy()
        if result.ok:
            logger.info("{} {}", self.t("copiedTooltip"), result.text)
        elif not result.skipped:
            logger.error("{}: {}", self.t("copyFailed"), result.error)

    def cmdExport(self, args: list[str]) -> None:
        if self.exporter.busy:
            logger.warning(self.t("exportBusy"))
            return

        # run in the background so the prompt stays usable during capture
        task = asyncio.create_task(self.exportImage())
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

    async def exportImage(self) -> ExportResult:
        logger.info(self.t("exportBusy"))
        result = await self.exporter.export()

        if result.ok:
            logger.info("{}: {}", self.t("exportDone"), result.path)
        elif result.busy:
            logger.warning(self.t("exportBusy"))
        else:
            message = self.t("exportError")
            if isinstance(result.error, CapabilityError) and (
                hint := _EXPORT_HINTS.get(result.error.reason)
            ):
                message += " " + self.t(hint)

            logger.error(message)

        return result

    def cmdColor(self, args: list[str]) -> None:
        if not args:
            logger.info("{}: {}", self.t("colorLabel"), self.prefs.color)
            return

        if args[0].lower() == "reset":
            self.prefs.resetColor()
        else:
            try:
                self.prefs.setColor(args[0])
            except ValueError as e:
                logger.error("{}", e)
                return

        self.invalidate()

    def cmdTheme(self, args: list[str]) -> None:
        try:
            if args:
                self.theme = self.prefs.setTheme(args[0].lower())
            else:
                self.theme = self.prefs.toggleTheme(self.theme)  # type: ignore[arg-type]
        except ValueError as e:
            logger.error("{}", e)
            return

        self.toolbarStyle = styleFor(self.theme)
        if self.session is not None:
            self.session.style = self.toolbarStyle

        logger.info("{}: {}", self.t("themeLabel"), self.theme)
        self.invalidate()

    def cmdLang(self, args: list[str]) -> None:
        self.setLanguage(args[0] if args else otherLanguage(self.language))

    def setLanguage(self, lang: str) -> None:
        lang = normalizeLanguage(lang)
        self.language = lang
        self.prefs.setLanguage(lang)
        self.toolbar.setLanguage(lang)

        self.updateTitle()
        logger.info("{}: {}", self.t("languageLabel"), lang)
        self.invalidate()

    def updateTitle(self) -> None:
        try:
            set_title(self.t("pageTitle"))
        except Exception:
            # not attached to a terminal (tests, pipes)
            logger.debug("Could not set terminal title")

    def cmdHide(self, args: list[str]) -> None:
        self.gate.notify(Visibility.HIDDEN)

    def cmdShow(self, args: list[str]) -> None:
        self.gate.notify(Visibility.VISIBLE)

    def cmdLogLevel(self, args: list[str]) -> None:
        level = (args[0] if args else "").upper()
        if level not in LOG_LEVELS:
            logger.error("Invalid log level '{}'. Valid: {}", level, ", ".join(LOG_LEVELS))
            return

        self.setConsoleLogLevel(level)

    def cmdHelp(self, args: list[str]) -> None:
        logger.info("\n{}", HELP)

    def cmdQuit(self, args: list[str]) -> None:
        self.exiting = True

    async def runCommand(self, text: str) -> None:
        parts = text.split()
        if not parts:
            return

        cmd, *args = parts
        handler = self.commands.get(cmd.lower())
        if handler is None:
            logger.error("Unknown command: {} (try 'help')", cmd)
            return

        try:
            result = handler(args)
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.exception("[{}] Command failed?", cmd)

    # ------------------------------------------------------------------
    # Runtime
    # ------------------------------------------------------------------

    async def dorepl(self) -> None:
        historyFile = pathlib.Path(self.config.cacheDir) / "history"
        historyFile.parent.mkdir(parents=True, exist_ok=True)

        self.session = PromptSession(
            history=ThreadedHistory(FileHistory(str(historyFile))),
            clipboard=self.clipboard.clipboard,
        )

        while not self.exiting:
            try:
                text1 = await self.session.prompt_async(
                    "yearbar> ",
                    bottom_toolbar=self.toolbar.render,
                    style=self.toolbarStyle,
                )

                # log user input to our active logfile(s)
                logger.trace("yearbar> {}", text1)

                await self.runCommand(text1)
            except KeyboardInterrupt:
                # Control-C pressed. Try again.
                continue
            except EOFError:
                # Control-D pressed
                logger.info("Exiting...")
                self.exiting = True

    async def runall(self) -> None:
        self.updateTitle()

        # a freshly opened terminal is visible
        self.gate.notify(Visibility.VISIBLE)
        try:
            await self.dorepl()
        finally:
            await self.cleanup()

    async def cleanup(self) -> None:
        """Tear down timers and wait for any export still running."""
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)

        self.scheduler.teardown()

        close = getattr(self.cache, "close", None)
        if close is not None:
            close()


def consoleOutput():
    """Route stdout above the prompt without escaping ANSI colors or OSC 52."""
    return patch_stdout(raw=True)


def main() -> None:
    app = YearBarApp()
    with consoleOutput():
        asyncio.run(app.runall())


if __name__ == "__main__":
    main()
