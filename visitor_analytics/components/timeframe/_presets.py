"""
Preset catalog and label formatting.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from .models import LabelGranularity, Preset

PRESETS: tuple[Preset, ...] = (
    Preset("5m", 5, 5, "minute"),
    Preset("15m", 15, 15, "minute"),
    Preset("30m", 30, 10, "minute"),
    Preset("60m", 60, 12, "minute"),
    Preset("3h", 180, 12, "minute"),
    Preset("6h", 360, 12, "minute"),
    Preset("12h", 720, 12, "minute"),
    Preset("24h", 1440, 24, "minute"),
    Preset("1d", 1440, 24, "minute"),
    Preset("2d", 2880, 24, "day"),
    Preset("3d", 4320, 18, "day"),
    Preset("7d", 10080, 14, "day"),
    Preset("15d", 21600, 15, "day"),
    Preset("30d", 43200, 15, "day"),
    Preset("60d", 86400, 15, "day"),
    Preset("90d", 129600, 15, "day"),
)

PRESETS_BY_KEY: dict[str, Preset] = {p.key: p for p in PRESETS}

DEFAULT_PRESET = "24h"

# Picker groups (name, preset keys)
PRESET_GROUPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Minutes", tuple(p.key for p in PRESETS[0:4])),
    ("Hours", tuple(p.key for p in PRESETS[4:8])),
    ("Days", tuple(p.key for p in PRESETS[8:])),
)

TWO_HOURS = timedelta(minutes=120)
ONE_DAY = timedelta(days=1)


def custom_bucket_count(span: timedelta) -> int:
    """Bucket count heuristic for custom ranges."""
    if span <= TWO_HOURS:
        return 12
    if span <= ONE_DAY:
        return 24
    return 15


def custom_granularity(span: timedelta) -> LabelGranularity:
    """Time-of-day labels up to one day, calendar dates beyond."""
    return "minute" if span <= ONE_DAY else "day"


def format_label(dt: datetime, granularity: LabelGranularity) -> str:
    """
    Format a bucket label.

    minute -> "14:05", day -> "Jun 5". The caller converts `dt` to the
    display time zone first.
    """
    if granularity == "minute":
        return dt.strftime("%H:%M")
    return f"{dt.strftime('%b')} {dt.day}"
