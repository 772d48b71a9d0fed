"""Bottom toolbar renderer — the terminal presentation of year progress.

Receives the scheduler's two projections:
- ``liveProjection``: bar width and the 6-decimal live percentage, every frame
- ``discreteProjection``: day counters and the total-days label

and builds the prompt_toolkit bottom toolbar HTML from whatever was last
projected. Rendering never computes progress itself.
"""
from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final

from loguru import logger
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.formatted_text.html import html_escape
from prompt_toolkit.styles import Style

from yearbar.engine.calculator import ProgressRecord
from yearbar.engine.primitives import DEFAULT_COLOR
from yearbar.engine.translations import DEFAULT_LANGUAGE, lookup, template

# left-to-right partial cells, 1/8 .. 8/8
_EIGHTHS: Final = " ▏▎▍▌▋▊▉█"

# (toolbar style, empty-track color) per theme
# note: the bottom toolbar is 'reverse' styled, so fg is what shows as background
THEME_STYLES: Final = dict(
    light=("fg:#f9fafb bg:#111827", "#e5e7eb"),
    dark=("fg:#111827 bg:#f3f4f6", "#374151"),
)


def styleFor(theme: str) -> Style:
    toolbar, _track = THEME_STYLES.get(theme, THEME_STYLES["light"])
    return Style.from_dict({"bottom-toolbar": toolbar})


def barCells(percentage: float, width: int) -> str:
    """Fixed-width bar string with eighth-block resolution."""
    width = max(1, width)
    eighths = round(max(0.0, min(100.0, percentage)) / 100 * width * 8)
    full, part = divmod(eighths, 8)

    bar = "█" * full
    if full < width:
        bar += _EIGHTHS[part] if part else " "
        bar += " " * (width - full - 1)

    return bar


def totalDaysLabel(lang: str, total: int) -> str:
    return " ".join(
        [lookup(lang, "totalDaysPrefix"), str(total), lookup(lang, "totalDaysSuffix")]
    )


@dataclass(slots=True)
class ViewState:
    """Everything currently on screen; what an export captures."""

    record: ProgressRecord
    title: str
    percentageText: str
    daysPassedText: str
    daysRemainingText: str
    totalDaysText: str
    color: str
    theme: str


class ToolbarRenderer:
    """Holds the last projected values and renders them.

    Parameters
    ----------
    color:
        Returns the current bar color (read on each render).
    theme:
        Returns the current theme name.
    language:
        Starting language for the translated labels.
    """

    def __init__(
        self,
        color: Callable[[], str] = lambda: DEFAULT_COLOR,
        theme: Callable[[], str] = lambda: "light",
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self._color = color
        self._theme = theme
        self.language = language

        # live values
        self.displayed: ProgressRecord | None = None
        self.barWidth = 0.0
        self.percentageText = ""
        self.ariaValueNow = 0
        self.ariaValueText = ""

        # discrete values
        self.discreteRecord: ProgressRecord | None = None
        self.daysPassedText = ""
        self.daysRemainingText = ""
        self.totalDaysText = ""

        self.renders = 0

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    def liveProjection(self, record: ProgressRecord) -> None:
        self.displayed = record
        self.barWidth = record.percentage
        self.percentageText = f"{record.displayPercentage}%"
        self.ariaValueNow = round(record.percentage)
        self.ariaValueText = f"{record.percentage:.1f}%"

    def discreteProjection(self, record: ProgressRecord) -> None:
        self.discreteRecord = record
        lang = self.language
        self.daysPassedText = template(lang, "daysPassedTemplate", days=record.daysPassed)
        self.daysRemainingText = template(
            lang, "daysRemainingTemplate", days=record.daysRemaining
        )
        self.totalDaysText = totalDaysLabel(lang, record.totalDaysInYear)

    def setLanguage(self, lang: str) -> None:
        """Switch labels and re-render the dynamic text right away."""
        self.language = lang
        if self.discreteRecord is not None:
            self.discreteProjection(self.discreteRecord)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def viewState(self) -> ViewState | None:
        if self.displayed is None:
            return None

        return ViewState(
            record=self.displayed,
            title=lookup(self.language, "title"),
            percentageText=self.percentageText,
            daysPassedText=self.daysPassedText,
            daysRemainingText=self.daysRemainingText,
            totalDaysText=self.totalDaysText,
            color=self._color(),
            theme=self._theme(),
        )

    def render(self, width: int | None = None) -> HTML:
        """Build the bottom toolbar; called by prompt_toolkit on every redraw."""
        self.renders += 1
        try:
            view = self.viewState()
            if view is None:
                return HTML("No data yet...")

            if width is None:
                width = shutil.get_terminal_size().columns

            _style, track = THEME_STYLES.get(view.theme, THEME_STYLES["light"])

            # bar takes the row minus the percentage text and some padding
            cells = barCells(self.barWidth, max(10, width - len(view.percentageText) - 4))

            return HTML(
                f"<b>{html_escape(view.title)}</b>\n"
                f"<aaa fg='{track}' bg='{view.color}'>{cells}</aaa>  {view.percentageText}\n"
                f"{html_escape(view.daysPassedText)}    "
                f"{html_escape(view.daysRemainingText)}    "
                f"{html_escape(view.totalDaysText)}"
            )
        except Exception:
            logger.exception("Toolbar render failed?")
            return HTML("No data yet...")
