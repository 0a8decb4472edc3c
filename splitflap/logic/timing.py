"""Background timers used by the time-driven content sources."""

from __future__ import annotations

import threading
from typing import Callable


class PeriodicTicker:
    """Daemon thread that calls ``callback`` every ``interval_seconds`` until stopped.

    ``stop()`` only signals the thread; it never joins, so it is safe to call
    while holding a lock the callback also takes. Callers must still treat a
    tick that lands after ``stop()`` as stale.
    """

    def __init__(self, interval_seconds: float, callback: Callable[[], None], name: str = "ticker") -> None:
        self._interval_seconds = interval_seconds
        self._callback = callback
        self._name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        """Start the background thread."""
        if self.running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop, args=(self._stop_event,), name=self._name, daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the background thread to stop."""
        self._stop_event.set()

    def _run_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(timeout=self._interval_seconds):
            self._callback()


__all__ = ["PeriodicTicker"]
