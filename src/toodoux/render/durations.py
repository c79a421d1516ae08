"""Compact duration labels (``5s``, ``59min``, ``3d``, ``2w``, ``4mth``) and their widths."""

from __future__ import annotations

from datetime import datetime, timedelta

DATE_FORMAT = "%a, %d %b %Y at %H:%M"


def _units(dur: timedelta) -> tuple[int, str]:
    """Pick the coarsest unit whose magnitude is at least 1.

    Negative durations (clock skew) count as zero.
    """
    seconds = max(0, int(dur.total_seconds()))
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    weeks = days // 7

    if minutes < 1:
        return seconds, "s"
    if hours < 1:
        return minutes, "min"
    if days < 1:
        return hours, "h"
    if weeks < 2:
        return days, "d"
    if weeks < 4:
        return weeks, "w"
    return weeks // 4, "mth"


def friendly_duration(dur: timedelta) -> str:
    value, unit = _units(dur)
    return f"{value}{unit}"


def number_width(value: int) -> int:
    """Number of decimal digits in a non-negative integer."""
    width = 1
    while value >= 10:
        value //= 10
        width += 1
    return width


def duration_width(dur: timedelta) -> int:
    value, unit = _units(dur)
    return number_width(value) + len(unit)


def friendly_date(ts: datetime) -> str:
    return ts.strftime(DATE_FORMAT)
