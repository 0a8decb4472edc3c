"""Frame formatters for each content source."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from splitflap.data.departures_client import Departure
from splitflap.display.flaps import COLOR_CODES, center_frame, fit_frame

WEEKDAYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")
NO_SERVICES = "NO SERVICES"


def clock_accent(minute: int) -> str:
    """Colour flap shown beside the time; changes every minute."""
    return COLOR_CODES[minute % len(COLOR_CODES)]


def format_clock(now: datetime, width: int) -> str:
    text = f"{WEEKDAYS[now.weekday()]} {clock_accent(now.minute)} {now:%H}.{now:%M}"
    return center_frame(text, width)


def format_duration(ms: float, width: int) -> str:
    """``MM.SS`` with whole seconds rounded down; minutes are not capped."""
    total_seconds = max(0, int(ms // 1000))
    minutes, seconds = divmod(total_seconds, 60)
    return center_frame(f"{minutes:02d}.{seconds:02d}", width)


def format_departures(departures: Sequence[Departure], width: int) -> str:
    if not departures:
        return center_frame(NO_SERVICES, width)
    first = departures[0]
    hhmm = first.scheduled_time.replace(":", "")
    label = "CANCELLED" if first.cancelled else first.destination.upper()
    return fit_frame(f"{hhmm} {label}", width)


__all__ = ["clock_accent", "format_clock", "format_departures", "format_duration"]
