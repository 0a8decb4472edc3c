"""Display modes: exactly one content source is live at a time."""

from __future__ import annotations

from enum import Enum


class Mode(str, Enum):
    TEXT = "text"
    TRAIN = "train"
    SEQUENCE = "sequence"
    CLOCK = "clock"
    STOPWATCH = "stopwatch"
    TIMER = "timer"

    @classmethod
    def parse(cls, value: str | Mode) -> Mode:
        """Accept a Mode or its wire name, case-insensitively."""
        if isinstance(value, Mode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown mode: {value!r}") from exc


# Modes whose frame is written directly by command rather than by a timer.
HELD_TEXT_MODES = frozenset({Mode.TEXT, Mode.TRAIN})


__all__ = ["HELD_TEXT_MODES", "Mode"]
