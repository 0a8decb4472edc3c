"""Observable state of the display: what is shown, by which mode, and why."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from splitflap.data.broker_link import ConnectionStatus, LinkStatus
from splitflap.data.departures_client import Departure
from splitflap.display.flaps import fit_frame
from splitflap.logic.modes import Mode

# Listener event kinds.
DISPLAY = "display"
MODE = "mode"
SEQUENCE = "sequence"
STOPWATCH = "stopwatch"
TIMER = "timer"
SEQUENCE_STOPPED = "sequence_stopped"
TRAIN = "train"
LINK_STATUS = "link_status"


@dataclass(frozen=True)
class StopwatchState:
    elapsed_ms: int = 0
    running: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"elapsedTime": self.elapsed_ms, "isRunning": self.running}


@dataclass(frozen=True)
class TimerState:
    target_ms: int = 0
    remaining_ms: int = 0
    running: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"targetMs": self.target_ms, "remainingMs": self.remaining_ms, "isRunning": self.running}


@dataclass(frozen=True)
class TrainState:
    from_crs: str | None = None
    to_crs: str | None = None
    departures: tuple[Departure, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        route = None
        if self.from_crs:
            route = {"fromCRS": self.from_crs, "toCRS": self.to_crs}
        return {
            "route": route,
            "departures": [departure.to_dict() for departure in self.departures],
            "error": self.error,
        }


@dataclass(frozen=True)
class StateChange:
    """One pushed change; ``data`` is the JSON-ready payload for ``kind``."""

    kind: str
    data: dict[str, Any]


@dataclass(frozen=True)
class DisplaySnapshot:
    """Full state for observers that join late."""

    text: str
    mode: Mode
    stopwatch: StopwatchState
    timer: TimerState
    sequence_playing: bool
    train: TrainState
    link: LinkStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "mode": self.mode.value,
            "stopwatch": self.stopwatch.to_dict(),
            "timer": self.timer.to_dict(),
            "sequence": {"isPlaying": self.sequence_playing},
            "train": self.train.to_dict(),
            "mqttStatus": self.link.to_dict(),
        }


@dataclass
class DisplayContext:
    """Mutable state owned by the mode controller; never shared by reference."""

    width: int
    mode: Mode = Mode.TEXT
    frame: str = ""
    text: str = ""
    train: TrainState = field(default_factory=TrainState)
    link: LinkStatus = field(default_factory=lambda: LinkStatus(ConnectionStatus.DISCONNECTED))

    def __post_init__(self) -> None:
        self.frame = fit_frame(self.frame, self.width)


__all__ = [
    "DISPLAY",
    "DisplayContext",
    "DisplaySnapshot",
    "LINK_STATUS",
    "MODE",
    "SEQUENCE",
    "SEQUENCE_STOPPED",
    "STOPWATCH",
    "StateChange",
    "StopwatchState",
    "TIMER",
    "TRAIN",
    "TimerState",
    "TrainState",
]
