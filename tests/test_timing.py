from __future__ import annotations

import threading
import time

from splitflap.logic.sequencer import SceneLine, SceneScript, SceneSequencer
from splitflap.logic.timing import PeriodicTicker


def test_ticker_calls_back_until_stopped() -> None:
    ticks: list[float] = []
    ticked = threading.Event()

    def callback() -> None:
        ticks.append(time.monotonic())
        if len(ticks) >= 3:
            ticked.set()

    ticker = PeriodicTicker(0.01, callback, name="test-ticker")
    ticker.start()

    assert ticked.wait(timeout=2)
    assert ticker.running

    ticker.stop()
    thread = ticker._thread
    assert thread is not None
    thread.join(timeout=2)

    assert not thread.is_alive()
    assert not ticker.running
    count = len(ticks)
    time.sleep(0.05)
    assert len(ticks) == count


def test_ticker_start_is_idempotent() -> None:
    ticker = PeriodicTicker(0.05, lambda: None)
    ticker.start()
    first_thread = ticker._thread

    ticker.start()

    assert ticker._thread is first_thread
    ticker.stop()


def test_sequencer_finishes_on_real_timer() -> None:
    emitted: list[str] = []
    stopped = threading.Event()

    def emit(text: str) -> bool:
        emitted.append(text)
        return True

    sequencer = SceneSequencer(threading.RLock(), emit, stopped.set)
    sequencer.play(SceneScript(lines=(SceneLine(text="AAA", duration_ms=100),)))

    assert stopped.wait(timeout=2)
    assert emitted == ["AAA"]
    assert not sequencer.playing
