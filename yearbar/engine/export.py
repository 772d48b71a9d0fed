"""PNG export of the current view using Pillow.

Drawing happens in a worker thread (``asyncio.to_thread``) so the event
loop keeps running while the image is built.

Labels are drawn in the view's language when the chosen font has glyphs
for them. Pillow's bundled default font covers Latin only, so a zh-CN view
is drawn with a system CJK font when one is found, and with English labels
otherwise.
"""

from __future__ import annotations

import asyncio
import dataclasses
import io
import pathlib
from typing import Any, Final

from loguru import logger
from PIL import Image, ImageColor, ImageDraw, ImageFont, features

from yearbar.engine.snapshot import CapabilityError
from yearbar.engine.toolbar import ViewState, totalDaysLabel
from yearbar.engine.translations import lookup, template

# logical size before scaling, roughly the original card layout
BASE_WIDTH: Final = 480
BASE_HEIGHT: Final = 200
DEFAULT_SCALE: Final = 6

# (background, text, track) per theme
THEME_COLORS: Final = dict(
    light=("#ffffff", "#111827", "#e5e7eb"),
    dark=("#111827", "#f9fafb", "#374151"),
)

# first existing file wins
CJK_FONT_CANDIDATES: Final = (
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/google-noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/truetype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/truetype/wqy/wqy-microhei.ttc",
    "/usr/share/fonts/wenquanyi/wqy-microhei/wqy-microhei.ttc",
    "/System/Library/Fonts/PingFang.ttc",
    "/System/Library/Fonts/STHeiti Medium.ttc",
    "C:/Windows/Fonts/msyh.ttc",
)

# private-use code point; fonts draw it as their missing-glyph box
_UNMAPPED_CHAR: Final = "\U0010fffd"


def findCjkFont() -> str | None:
    for path in CJK_FONT_CANDIDATES:
        if pathlib.Path(path).is_file():
            return path

    return None


def _glyph(font, ch: str, size: int) -> bytes:
    img = Image.new("L", (size * 2, size * 2))
    ImageDraw.Draw(img).text((0, 0), ch, fill=255, font=font)
    return img.tobytes()


def canRender(font, text: str, size: int = 24) -> bool:
    """False if any non-ASCII character of ``text`` would draw as the missing-glyph box."""
    wide = {c for c in text if ord(c) > 0x7F and not c.isspace()}
    if not wide:
        return True

    try:
        missing = _glyph(font, _UNMAPPED_CHAR, size)
        return all(_glyph(font, c, size) != missing for c in wide)
    except UnicodeEncodeError:
        # bitmap fonts only encode latin-1
        return False


def englishLabels(view: ViewState) -> ViewState:
    record = view.record
    return dataclasses.replace(
        view,
        title=lookup("en", "title"),
        daysPassedText=template("en", "daysPassedTemplate", days=record.daysPassed),
        daysRemainingText=template(
            "en", "daysRemainingTemplate", days=record.daysRemaining
        ),
        totalDaysText=totalDaysLabel("en", record.totalDaysInYear),
    )


class PillowRenderer:
    """Render a ``ViewState`` to PNG bytes.

    ``fontPath`` defaults to the first CJK-capable system font found.
    """

    def __init__(self, fontPath: str | None = None) -> None:
        self.fontPath = fontPath or findCjkFont()

    async def renderToImage(
        self, scope: ViewState | None, options: dict[str, Any]
    ) -> bytes:
        if scope is None:
            raise CapabilityError("export area not found", reason="missing-target")

        if not features.check_codec("zlib"):
            raise CapabilityError(
                "Pillow was built without PNG (zlib) support", reason="unavailable"
            )

        scale = int(options.get("scale", DEFAULT_SCALE))
        try:
            return await asyncio.to_thread(self._draw, scope, max(1, scale))
        except OSError as e:
            raise CapabilityError(
                f"image backend failed: {e}", reason="unavailable"
            ) from e

    def _font(self, size: int):
        if self.fontPath:
            try:
                return ImageFont.truetype(self.fontPath, size)
            except OSError:
                logger.warning("Font not loadable, using default: {}", self.fontPath)

        return ImageFont.load_default(size=size)

    def legible(self, view: ViewState) -> ViewState:
        """The view itself, or its English relabeling if the font lacks its glyphs."""
        text = "".join(
            [view.title, view.daysPassedText, view.daysRemainingText, view.totalDaysText]
        )
        if canRender(self._font(24), text):
            return view

        logger.warning(
            "Export font {} has no glyphs for {!r}, using English labels",
            self.fontPath or "(Pillow default)",
            view.title,
        )
        return englishLabels(view)

    def _draw(self, view: ViewState, scale: int) -> bytes:
        view = self.legible(view)

        bg, fg, track = THEME_COLORS.get(view.theme, THEME_COLORS["light"])
        width, height = BASE_WIDTH * scale, BASE_HEIGHT * scale
        pad = 24 * scale

        img = Image.new("RGB", (width, height), ImageColor.getrgb(bg))
        draw = ImageDraw.Draw(img)

        titleFont = self._font(22 * scale)
        bigFont = self._font(30 * scale)
        smallFont = self._font(14 * scale)

        draw.text((pad, pad), view.title, fill=fg, font=titleFont)

        # progress track + fill
        barTop = pad + 40 * scale
        barBottom = barTop + 20 * scale
        barRight = width - pad
        radius = 10 * scale
        draw.rounded_rectangle(
            (pad, barTop, barRight, barBottom), radius=radius, fill=track
        )

        fillRight = pad + (barRight - pad) * view.record.fractionElapsed
        if fillRight - pad >= 1:
            draw.rounded_rectangle(
                (pad, barTop, fillRight, barBottom),
                radius=min(radius, int((fillRight - pad) / 2)),
                fill=view.color,
            )

        draw.text(
            (pad, barBottom + 12 * scale), view.percentageText, fill=fg, font=bigFont
        )

        counters = "    ".join(
            [view.daysPassedText, view.daysRemainingText, view.totalDaysText]
        )
        draw.text((pad, height - pad - 16 * scale), counters, fill=fg, font=smallFont)

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()
