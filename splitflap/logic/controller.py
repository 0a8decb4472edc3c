"""Mode controller: the single writer of the displayed frame."""

from __future__ import annotations

from datetime import datetime
import logging
import threading
import time
from typing import Callable, Sequence

from splitflap.data.broker_link import LinkStatus
from splitflap.data.departures_client import Departure
from splitflap.display.flaps import fit_frame
from splitflap.logic import state as events
from splitflap.logic.formatting import format_departures
from splitflap.logic.modes import HELD_TEXT_MODES, Mode
from splitflap.logic.sequencer import SceneScript, SceneSequencer
from splitflap.logic.sources import ClockSource, CountdownSource, StopwatchSource
from splitflap.logic.state import (
    DisplayContext,
    DisplaySnapshot,
    StateChange,
    StopwatchState,
    TimerState,
    TrainState,
)
from splitflap.logic.timing import PeriodicTicker

logger = logging.getLogger(__name__)

Listener = Callable[[StateChange], None]


class ModeController:
    """Holds exactly one active content source and arbitrates switching.

    All commands and all timer firings run under one re-entrant lock, so state
    changes never interleave. Switching modes stops the outgoing source before
    the incoming one starts; sources re-check that they are still live before
    emitting, and the controller drops frames from any mode that is not current.
    """

    def __init__(
        self,
        width: int,
        frame_sink: Callable[[str], None],
        initial_mode: Mode = Mode.TEXT,
        clock: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic,
        ticker_factory: Callable[..., PeriodicTicker] = PeriodicTicker,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self._lock = threading.RLock()
        self._frame_sink = frame_sink
        self._context = DisplayContext(width=width, mode=initial_mode)
        self._listeners: list[Listener] = []

        self._clock = ClockSource(
            self._lock, self._emitter(Mode.CLOCK), width, clock=clock, ticker_factory=ticker_factory
        )
        self._stopwatch = StopwatchSource(
            self._lock,
            self._emitter(Mode.STOPWATCH),
            width,
            on_change=self._on_stopwatch_change,
            monotonic=monotonic,
            ticker_factory=ticker_factory,
        )
        self._timer = CountdownSource(
            self._lock,
            self._emitter(Mode.TIMER),
            width,
            on_change=self._on_timer_change,
            monotonic=monotonic,
            ticker_factory=ticker_factory,
        )
        self._sequencer = SceneSequencer(
            self._lock,
            self._emitter(Mode.SEQUENCE),
            on_stopped=self._on_sequence_stopped,
            timer_factory=timer_factory,
        )
        # Text and train modes have no source: their frame is held until replaced.
        self._sources = {
            Mode.CLOCK: self._clock,
            Mode.STOPWATCH: self._stopwatch,
            Mode.TIMER: self._timer,
            Mode.SEQUENCE: self._sequencer,
        }

    @property
    def mode(self) -> Mode:
        with self._lock:
            return self._context.mode

    @property
    def frame(self) -> str:
        with self._lock:
            return self._context.frame

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def activate(self) -> None:
        """Start the initial mode's source; call once at startup."""
        with self._lock:
            self._enter(self._context.mode)

    def shutdown(self) -> None:
        """Stop every source without changing mode."""
        with self._lock:
            for source in self._sources.values():
                source.stop()

    def snapshot(self) -> DisplaySnapshot:
        with self._lock:
            return DisplaySnapshot(
                text=self._context.frame,
                mode=self._context.mode,
                stopwatch=self._stopwatch.state,
                timer=self._timer.state,
                sequence_playing=self._sequencer.playing,
                train=self._context.train,
                link=self._context.link,
            )

    # Commands

    def set_mode(self, mode: Mode | str) -> Mode:
        """Switch modes. Re-entering the current mode restarts its source."""
        new_mode = Mode.parse(mode)
        with self._lock:
            previous = self._context.mode
            source = self._sources.get(previous)
            if source is not None:
                source.stop()
            self._context.mode = new_mode
            logger.info("Mode %s -> %s", previous.value, new_mode.value)
            self._notify(events.MODE, {"mode": new_mode.value})
            self._enter(new_mode)
            return new_mode

    def set_text(self, text: str) -> bool:
        with self._lock:
            if self._context.mode not in HELD_TEXT_MODES:
                logger.info("Ignoring text while in %s mode", self._context.mode.value)
                return False
            if self._context.mode is Mode.TEXT:
                self._context.text = text
            self._write_frame(text)
            return True

    def start_stopwatch(self) -> bool:
        return self._stopwatch.start_counting()

    def stop_stopwatch(self) -> bool:
        return self._stopwatch.stop_counting()

    def reset_stopwatch(self) -> None:
        self._stopwatch.reset()

    def set_timer(self, duration_ms: int) -> bool:
        return self._timer.set_duration(duration_ms)

    def start_timer(self) -> bool:
        return self._timer.start_countdown()

    def stop_timer(self) -> bool:
        return self._timer.stop_countdown()

    def play_sequence(self, script: SceneScript) -> None:
        with self._lock:
            if self._context.mode is not Mode.SEQUENCE:
                self.set_mode(Mode.SEQUENCE)
            self._sequencer.play(script)
            self._notify(events.SEQUENCE, {"isPlaying": self._sequencer.playing})

    def stop_sequence(self) -> None:
        """Halt playback; natural completion alone reports sequence_stopped."""
        with self._lock:
            if not self._sequencer.playing:
                return
            self._sequencer.stop()
            self._notify(events.SEQUENCE, {"isPlaying": False})

    def show_departures(
        self,
        from_crs: str | None,
        to_crs: str | None,
        departures: Sequence[Departure],
        error: str | None = None,
    ) -> None:
        with self._lock:
            self._context.train = TrainState(
                from_crs=from_crs, to_crs=to_crs, departures=tuple(departures), error=error
            )
            self._notify(events.TRAIN, self._context.train.to_dict())
            if self._context.mode is Mode.TRAIN and error is None:
                self._write_frame(format_departures(departures, self._context.width))

    def update_link_status(self, status: LinkStatus) -> None:
        with self._lock:
            self._context.link = status
            self._notify(events.LINK_STATUS, status.to_dict())

    # Internals

    def _enter(self, mode: Mode) -> None:
        source = self._sources.get(mode)
        if source is not None:
            source.start()
        elif mode is Mode.TEXT:
            self._write_frame(self._context.text)
        elif mode is Mode.TRAIN and self._context.train.from_crs:
            self._write_frame(format_departures(self._context.train.departures, self._context.width))

    def _emitter(self, mode: Mode) -> Callable[[str], bool]:
        def emit(text: str) -> bool:
            with self._lock:
                if self._context.mode is not mode:
                    return False
                return self._write_frame(text)

        return emit

    def _write_frame(self, text: str) -> bool:
        frame = fit_frame(text, self._context.width)
        if frame == self._context.frame:
            return False
        self._context.frame = frame
        try:
            self._frame_sink(frame)
        except Exception:
            logger.exception("Frame sink failed")
        self._notify(events.DISPLAY, {"text": frame})
        return True

    def _notify(self, kind: str, data: dict) -> None:
        change = StateChange(kind=kind, data=data)
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("State listener failed for %s", kind)

    def _on_stopwatch_change(self, stopwatch: StopwatchState) -> None:
        self._notify(events.STOPWATCH, stopwatch.to_dict())

    def _on_timer_change(self, timer: TimerState) -> None:
        self._notify(events.TIMER, timer.to_dict())

    def _on_sequence_stopped(self) -> None:
        self._notify(events.SEQUENCE_STOPPED, {})


__all__ = ["ModeController"]
