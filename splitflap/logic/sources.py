"""Time-driven content sources: clock, stopwatch and countdown timer.

Every source shares the mode controller's lock and only emits while it is the
active source. ``stop()`` bumps a generation counter so a tick that already
fired but was waiting on the lock is discarded.
"""

from __future__ import annotations

from datetime import datetime
import logging
import threading
import time
from typing import Callable

from splitflap.logic.formatting import format_clock, format_duration
from splitflap.logic.state import StopwatchState, TimerState
from splitflap.logic.timing import PeriodicTicker

logger = logging.getLogger(__name__)

CLOCK_TICK_SECONDS = 1.0
POLL_TICK_SECONDS = 0.25

Emit = Callable[[str], bool]
TickerFactory = Callable[..., PeriodicTicker]


class ClockSource:
    """Shows the weekday and time, refreshed once per second."""

    def __init__(
        self,
        lock: threading.RLock,
        emit: Emit,
        width: int,
        clock: Callable[[], datetime] = datetime.now,
        ticker_factory: TickerFactory = PeriodicTicker,
    ) -> None:
        self._lock = lock
        self._emit = emit
        self._width = width
        self._clock = clock
        self._ticker_factory = ticker_factory
        self._ticker: PeriodicTicker | None = None
        self._active = False
        self._generation = 0

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        with self._lock:
            self._halt()
            self._active = True
            generation = self._generation
            self._ticker = self._ticker_factory(
                CLOCK_TICK_SECONDS, lambda: self._tick(generation), name="clock"
            )
            self._emit(format_clock(self._clock(), self._width))
            self._ticker.start()

    def stop(self) -> None:
        with self._lock:
            self._halt()

    def _halt(self) -> None:
        self._active = False
        self._generation += 1
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    def _tick(self, generation: int) -> None:
        with self._lock:
            if not self._active or generation != self._generation:
                return
            self._emit(format_clock(self._clock(), self._width))


class StopwatchSource:
    """Counts up from a recorded start instant rather than by accumulating ticks."""

    def __init__(
        self,
        lock: threading.RLock,
        emit: Emit,
        width: int,
        on_change: Callable[[StopwatchState], None],
        monotonic: Callable[[], float] = time.monotonic,
        ticker_factory: TickerFactory = PeriodicTicker,
    ) -> None:
        self._lock = lock
        self._emit = emit
        self._width = width
        self._on_change = on_change
        self._monotonic = monotonic
        self._ticker_factory = ticker_factory
        self._ticker: PeriodicTicker | None = None
        self._active = False
        self._generation = 0
        self._accumulated_ms = 0.0
        self._started_at: float | None = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def running(self) -> bool:
        return self._started_at is not None

    @property
    def state(self) -> StopwatchState:
        with self._lock:
            return StopwatchState(elapsed_ms=int(self._elapsed_ms()), running=self.running)

    def start(self) -> None:
        """Become the live source and show the current elapsed time."""
        with self._lock:
            self._halt()
            self._active = True
            self._emit(self._frame())

    def stop(self) -> None:
        """Stop being the live source; a running stopwatch is paused."""
        with self._lock:
            was_running = self.running
            self._pause()
            self._halt()
            if was_running:
                self._on_change(self.state)

    def start_counting(self) -> bool:
        with self._lock:
            if not self._active:
                logger.info("Ignoring stopwatch start: stopwatch mode is not active")
                return False
            if self.running:
                return False
            self._started_at = self._monotonic()
            generation = self._generation
            self._ticker = self._ticker_factory(
                POLL_TICK_SECONDS, lambda: self._tick(generation), name="stopwatch"
            )
            self._ticker.start()
            self._on_change(self.state)
            return True

    def stop_counting(self) -> bool:
        with self._lock:
            if not self.running:
                return False
            self._pause()
            self._stop_ticker()
            if self._active:
                self._emit(self._frame())
            self._on_change(self.state)
            return True

    def reset(self) -> None:
        with self._lock:
            self._stop_ticker()
            self._started_at = None
            self._accumulated_ms = 0.0
            if self._active:
                self._emit(self._frame())
            self._on_change(self.state)

    def _elapsed_ms(self) -> float:
        if self._started_at is None:
            return self._accumulated_ms
        return self._accumulated_ms + (self._monotonic() - self._started_at) * 1000.0

    def _frame(self) -> str:
        return format_duration(self._elapsed_ms(), self._width)

    def _pause(self) -> None:
        if self._started_at is not None:
            self._accumulated_ms = self._elapsed_ms()
            self._started_at = None

    def _stop_ticker(self) -> None:
        self._generation += 1
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    def _halt(self) -> None:
        self._active = False
        self._stop_ticker()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if not self._active or generation != self._generation or not self.running:
                return
            if self._emit(self._frame()):
                self._on_change(self.state)


class CountdownSource:
    """Counts down to zero from a set duration and stops itself there."""

    def __init__(
        self,
        lock: threading.RLock,
        emit: Emit,
        width: int,
        on_change: Callable[[TimerState], None],
        monotonic: Callable[[], float] = time.monotonic,
        ticker_factory: TickerFactory = PeriodicTicker,
    ) -> None:
        self._lock = lock
        self._emit = emit
        self._width = width
        self._on_change = on_change
        self._monotonic = monotonic
        self._ticker_factory = ticker_factory
        self._ticker: PeriodicTicker | None = None
        self._active = False
        self._generation = 0
        self._target_ms = 0
        self._remaining_ms = 0.0
        self._deadline: float | None = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def running(self) -> bool:
        return self._deadline is not None

    @property
    def state(self) -> TimerState:
        with self._lock:
            return TimerState(
                target_ms=self._target_ms,
                remaining_ms=int(self._current_remaining_ms()),
                running=self.running,
            )

    def start(self) -> None:
        with self._lock:
            self._halt()
            self._active = True
            self._emit(self._frame())

    def stop(self) -> None:
        with self._lock:
            was_running = self.running
            self._pause()
            self._halt()
            if was_running:
                self._on_change(self.state)

    def set_duration(self, duration_ms: int) -> bool:
        with self._lock:
            if self.running:
                logger.info("Ignoring timer duration change while the timer is running")
                return False
            self._target_ms = max(0, int(duration_ms))
            self._remaining_ms = float(self._target_ms)
            if self._active:
                self._emit(self._frame())
            self._on_change(self.state)
            return True

    def start_countdown(self) -> bool:
        with self._lock:
            if not self._active:
                logger.info("Ignoring timer start: timer mode is not active")
                return False
            if self.running:
                return False
            if self._remaining_ms <= 0:
                logger.info("Ignoring timer start: no time remaining, set a duration first")
                return False
            self._deadline = self._monotonic() + self._remaining_ms / 1000.0
            generation = self._generation
            self._ticker = self._ticker_factory(
                POLL_TICK_SECONDS, lambda: self._tick(generation), name="timer"
            )
            self._ticker.start()
            self._on_change(self.state)
            return True

    def stop_countdown(self) -> bool:
        with self._lock:
            if not self.running:
                return False
            self._pause()
            self._stop_ticker()
            if self._active:
                self._emit(self._frame())
            self._on_change(self.state)
            return True

    def _current_remaining_ms(self) -> float:
        if self._deadline is None:
            return self._remaining_ms
        return max(0.0, (self._deadline - self._monotonic()) * 1000.0)

    def _frame(self) -> str:
        return format_duration(self._current_remaining_ms(), self._width)

    def _pause(self) -> None:
        if self._deadline is not None:
            self._remaining_ms = self._current_remaining_ms()
            self._deadline = None

    def _stop_ticker(self) -> None:
        self._generation += 1
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    def _halt(self) -> None:
        self._active = False
        self._stop_ticker()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if not self._active or generation != self._generation or not self.running:
                return
            if self._current_remaining_ms() <= 0:
                self._remaining_ms = 0.0
                self._deadline = None
                self._stop_ticker()
                logger.info("Timer reached zero")
                self._emit(self._frame())
                self._on_change(self.state)
                return
            if self._emit(self._frame()):
                self._on_change(self.state)


__all__ = ["ClockSource", "CountdownSource", "StopwatchSource"]
