"""Persisted user preferences (bar color, theme, language).

Stored in a diskcache ``Cache`` so they survive restarts. The progress core
never reads these; only the presentation layer and host shell do.
"""
from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Final, Literal, TypeAlias

from loguru import logger

from yearbar.engine.primitives import DEFAULT_COLOR, isHexColor

Theme: TypeAlias = Literal["light", "dark"]

THEMES: Final = ("light", "dark")

# cache keys
KEY_COLOR: Final = ("prefs", "progressBarColor")
KEY_THEME: Final = ("prefs", "theme")
KEY_LANGUAGE: Final = ("prefs", "language")


class Preferences:
    """Typed access to the preference cache.

    Parameters
    ----------
    cache:
        Any mutable mapping; normally a ``diskcache.Cache``.
    """

    def __init__(self, cache: MutableMapping[Any, Any]) -> None:
        self.cache = cache

    # ------------------------------------------------------------------
    # Color
    # ------------------------------------------------------------------

    @property
    def color(self) -> str:
        return self.cache.get(KEY_COLOR) or DEFAULT_COLOR

    def setColor(self, color: str) -> str:
        color = color.strip().lower()
        if not isHexColor(color):
            raise ValueError(f"Invalid color (expected #rgb or #rrggbb): {color}")

        self.cache[KEY_COLOR] = color
        logger.info("Progress color set to {}", color)
        return color

    def resetColor(self) -> str:
        self.cache[KEY_COLOR] = DEFAULT_COLOR
        logger.info("Progress color reset to {}", DEFAULT_COLOR)
        return DEFAULT_COLOR

    # ------------------------------------------------------------------
    # Theme
    # ------------------------------------------------------------------

    def theme(self, prefersDark: bool = False) -> Theme:
        saved = self.cache.get(KEY_THEME)
        if saved in THEMES:
            return saved

        return "dark" if prefersDark else "light"

    def setTheme(self, theme: str) -> Theme:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme} (valid: {', '.join(THEMES)})")

        self.cache[KEY_THEME] = theme
        return theme  # type: ignore[return-value]

    def toggleTheme(self, current: Theme) -> Theme:
        return self.setTheme("light" if current == "dark" else "dark")

    # ------------------------------------------------------------------
    # Language
    # ------------------------------------------------------------------

    @property
    def language(self) -> str | None:
        return self.cache.get(KEY_LANGUAGE)

    def setLanguage(self, lang: str) -> None:
        self.cache[KEY_LANGUAGE] = lang
