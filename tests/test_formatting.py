from __future__ import annotations

from datetime import datetime

from splitflap.data.departures_client import Departure
from splitflap.logic.formatting import (
    clock_accent,
    format_clock,
    format_departures,
    format_duration,
)


def test_format_clock_shows_weekday_accent_and_time() -> None:
    # 2024-01-01 was a Monday.
    now = datetime(2024, 1, 1, 14, 5, 30)

    frame = format_clock(now, 14)

    assert len(frame) == 14
    assert frame.strip() == f"MON {clock_accent(5)} 14.05"


def test_clock_accent_changes_each_minute() -> None:
    assert clock_accent(0) != clock_accent(1)
    assert clock_accent(0) == clock_accent(9)


def test_format_duration_rounds_down_to_whole_seconds() -> None:
    assert format_duration(65_999, 5) == "01.05"
    assert format_duration(0, 7) == " 00.00 "
    assert format_duration(-10, 5) == "00.00"


def test_format_duration_does_not_cap_minutes() -> None:
    assert format_duration(125 * 60_000, 6) == "125.00"


def test_format_departures_uses_first_service() -> None:
    departures = [
        Departure(id="1", scheduled_time="14:05", destination="Reading", status="On time"),
        Departure(id="2", scheduled_time="14:20", destination="Oxford", status="On time"),
    ]

    assert format_departures(departures, 12) == "1405 READING"


def test_format_departures_marks_cancellations() -> None:
    departures = [Departure(id="1", scheduled_time="09:30", destination="York", status="Cancelled")]

    assert format_departures(departures, 16) == "0930 CANCELLED  "


def test_format_departures_without_services() -> None:
    assert format_departures([], 13) == " NO SERVICES "
