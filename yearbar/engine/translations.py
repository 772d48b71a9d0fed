"""Translated UI strings and language selection."""
from __future__ import annotations

from typing import Final

from loguru import logger

DEFAULT_LANGUAGE: Final = "zh-CN"

TRANSLATIONS: Final[dict[str, dict[str, str]]] = {
    "zh-CN": {
        "pageTitle": "年度进度条",
        "title": "今年已过去",
        "daysPassedTemplate": "已过 {days} 天",
        "daysRemainingTemplate": "剩余 {days} 天",
        "totalDaysPrefix": "总计",
        "totalDaysSuffix": "天",
        "colorLabel": "进度条颜色",
        "resetColorTooltip": "恢复默认颜色",
        "themeLabel": "外观",
        "languageLabel": "语言",
        "copyLabel": "复制",
        "copyTooltip": "复制进度文本",
        "copiedTooltip": "已复制！",
        "copyFailed": "复制失败",
        "exportLabel": "保存",
        "exportBusy": "正在导出，请稍候...",
        "exportDone": "已保存",
        "exportError": "抱歉，导出图片时遇到问题。请检查日志获取更多信息。",
        "exportErrorUnavailable": "请确认已安装图像组件后重试。",
        "exportErrorMissingTarget": "请稍后重试。",
        "exportFilenamePrefix": "年度进度",
    },
    "en": {
        "pageTitle": "Year Progress Bar",
        "title": "Year Progress",
        "daysPassedTemplate": "{days} days passed",
        "daysRemainingTemplate": "{days} days remaining",
        "totalDaysPrefix": "Total",
        "totalDaysSuffix": "days",
        "colorLabel": "Progress Color",
        "resetColorTooltip": "Reset to default color",
        "themeLabel": "Theme",
        "languageLabel": "Language",
        "copyLabel": "Copy",
        "copyTooltip": "Copy progress text",
        "copiedTooltip": "Copied!",
        "copyFailed": "Copy failed",
        "exportLabel": "Export",
        "exportBusy": "Export in progress, please wait...",
        "exportDone": "Saved",
        "exportError": "Sorry, there was an error exporting the image. Please check the log for details.",
        "exportErrorUnavailable": "Please check that the image backend is installed and try again.",
        "exportErrorMissingTarget": "Please try again in a moment.",
        "exportFilenamePrefix": "Year_Progress",
    },
}


def normalizeLanguage(lang: str | None) -> str:
    """Return ``lang`` if we have strings for it, else the default (with a warning)."""
    if lang in TRANSLATIONS:
        return lang  # type: ignore[return-value]

    logger.warning("Language {} not found, defaulting to {}.", lang, DEFAULT_LANGUAGE)
    return DEFAULT_LANGUAGE


def lookup(lang: str, key: str) -> str:
    """Translated string for ``key``; the key itself if missing."""
    table = TRANSLATIONS.get(lang) or TRANSLATIONS[DEFAULT_LANGUAGE]
    if (found := table.get(key)) is None:
        logger.warning('Translation key "{}" not found for language "{}".', key, lang)
        return key

    return found


def template(lang: str, key: str, **values) -> str:
    """Fill a ``*Template`` string, e.g. ``template(lang, "daysPassedTemplate", days=3)``."""
    return lookup(lang, key).format(**values)


def detectLanguage(saved: str | None, systemLocale: str | None) -> str:
    """Pick the startup language.

    A saved preference wins; otherwise English-like locales get ``en`` and
    everything else gets ``zh-CN``.
    """
    if saved and saved in TRANSLATIONS:
        return saved

    loc = (systemLocale or "").replace("_", "-").lower()
    if loc.startswith("en"):
        return "en"

    return DEFAULT_LANGUAGE


def otherLanguage(lang: str) -> str:
    """The language the toggle switches to."""
    return "en" if lang == "zh-CN" else "zh-CN"
