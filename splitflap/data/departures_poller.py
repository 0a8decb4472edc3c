"""Threaded poller that periodically refreshes departure board data."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
import time
from typing import Callable

from splitflap.data.departures_client import Departure, DeparturesClient, DeparturesClientError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollResult:
    """Snapshot of the latest departure board poll attempt."""

    from_crs: str
    to_crs: str | None
    departures: list[Departure]
    fetched_at: float
    error: str | None


class DeparturePoller:
    """Background poller that refreshes departures for one route on a schedule."""

    def __init__(
        self,
        client: DeparturesClient,
        from_crs: str,
        to_crs: str | None = None,
        num_rows: int = 10,
        poll_interval_seconds: float = 60,
        on_update: Callable[[PollResult], None] | None = None,
    ) -> None:
        self._client = client
        self._from_crs = from_crs
        self._to_crs = to_crs
        self._num_rows = num_rows
        self._poll_interval_seconds = poll_interval_seconds
        self._on_update = on_update
        self._latest: PollResult | None = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def route(self) -> tuple[str, str | None]:
        with self._lock:
            return self._from_crs, self._to_crs

    def get_latest(self) -> PollResult | None:
        """Return the most recent poll result, if any."""
        with self._lock:
            return self._latest

    def set_route(self, from_crs: str, to_crs: str | None = None) -> None:
        """Switch route; the next poll happens immediately if running."""
        with self._lock:
            self._from_crs = from_crs
            self._to_crs = to_crs
            self._latest = None
        if self._thread and self._thread.is_alive():
            self.stop()
            self.start()

    def start(self) -> None:
        """Start the background polling thread."""
        if self._thread and self._thread.is_alive() and not self._stop_event.is_set():
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run_loop, args=(self._stop_event,), daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal the polling thread to stop."""
        self._stop_event.set()

    def _run_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            result = self._fetch_once()
            if stop_event.is_set():
                break
            with self._lock:
                self._latest = result
            if self._on_update is not None:
                try:
                    self._on_update(result)
                except Exception:
                    logger.exception("Departure update handler failed")
            stop_event.wait(timeout=self._poll_interval_seconds)

    def _fetch_once(self) -> PollResult:
        from_crs, to_crs = self.route
        try:
            departures = self._client.get_departures(from_crs, to_crs, num_rows=self._num_rows)
            logger.info("Fetched %d departures for %s", len(departures), from_crs)
            return PollResult(
                from_crs=from_crs,
                to_crs=to_crs,
                departures=departures,
                fetched_at=time.time(),
                error=None,
            )
        except (DeparturesClientError, ValueError) as exc:
            logger.warning("Departure lookup for %s failed: %s", from_crs, exc)
            return PollResult(
                from_crs=from_crs,
                to_crs=to_crs,
                departures=[],
                fetched_at=time.time(),
                error=str(exc),
            )


__all__ = ["PollResult", "DeparturePoller"]
